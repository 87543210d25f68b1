"""
Proxy - upgrade the logic contract behind a FeedsContractProxy.
"""
