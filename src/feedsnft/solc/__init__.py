"""
Solc - compile the Feeds contracts and write their ABI artifacts.
"""
