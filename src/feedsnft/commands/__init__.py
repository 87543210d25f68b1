"""
Commands - Click commands of the feedsnft CLI.

Every command connects to the configured RPC endpoint, does one linear
sequence of calls and transactions, and exits 1 with a red message on the
first failure.
"""
