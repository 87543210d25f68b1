"""
Chain - JSON-RPC, ABI codec, transaction signing and contract handles.
"""
