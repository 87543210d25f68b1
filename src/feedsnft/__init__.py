"""
Feeds NFT - deployment, upgrade and integration-test tooling for the
Feeds NFT Sticker, Pasar and Galleria contracts.
"""

__version__ = "1.2.0"
