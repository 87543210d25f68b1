"""
Scenarios - integration-test harnesses run against a live chain.

Each harness is a flat sequence of transact, read back and compare steps;
the first mismatch raises ExpectationError.
"""
