"""
ECDSA / secp256k1 accounts for deployers and test actors.

Each role (deployer, owner, creator, seller, buyer, bidder) is a plain
private key passed on the command line or through the environment.

Dependencies: eth-account
"""

from __future__ import annotations

import re

from eth_account import Account
from eth_account.signers.local import LocalAccount


_HEX_KEY = re.compile(r"^0x[0-9a-fA-F]{64}$")


def normalize_private_key(private_key: str) -> str:
    """Return the key 0x-prefixed, raising ValueError if it is malformed."""
    if not private_key:
        raise ValueError("Private key is empty")
    private_key = private_key.strip()
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    if not _HEX_KEY.match(private_key):
        raise ValueError("Private key must be 32 bytes of hex")
    return private_key


def get_account(private_key: str) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Args:
        private_key: Hex private key, with or without 0x prefix

    Returns:
        LocalAccount instance for signing transactions
    """
    return Account.from_key(normalize_private_key(private_key))
