"""
Proxy Upgrader - Point an upgradeable proxy at a new logic contract.

Every Feeds proxy exposes the same two-method proxiable interface.  The
proxy keeps its storage; only the code address changes.
"""

from __future__ import annotations

import logging
from typing import Optional

from eth_account.signers.local import LocalAccount

from ..chain import rpc
from ..chain.tx import send_contract_tx

logger = logging.getLogger(__name__)

PROXIABLE_ABI = [
    {
        "inputs": [],
        "name": "getCodeAddress",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "_newAddress", "type": "address"}],
        "name": "updateCodeAddress",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class UpgradeFailedError(RuntimeError):
    """updateCodeAddress was mined with a failed status."""

    exit_code = 1

    def __init__(self, proxy_addr: str, tx_hash: Optional[str] = None):
        self.proxy_addr = proxy_addr
        self.tx_hash = tx_hash
        super().__init__(
            f"Upgrade logic contract for proxy contract {proxy_addr} transaction failed"
        )


def get_code_address(proxy_addr: str, rpc_url: Optional[str] = None) -> str:
    """Current logic contract behind ``proxy_addr``."""
    return rpc.read_contract(proxy_addr, "getCodeAddress", abi=PROXIABLE_ABI, rpc_url=rpc_url)


def upgrade_logic(
    owner: LocalAccount,
    proxy_addr: str,
    new_code_addr: str,
    gas_price: Optional[int] = None,
    rpc_url: Optional[str] = None,
) -> dict:
    """
    Send ``updateCodeAddress(new_code_addr)`` to the proxy as ``owner``.

    Args:
        owner: Proxy owner account
        proxy_addr: Proxy contract address
        new_code_addr: New logic contract address
        gas_price: Gas price in wei (default: ask the node)

    Returns:
        Transaction result dict

    Raises:
        UpgradeFailedError: If the receipt status is not successful
    """
    result = send_contract_tx(
        owner,
        proxy_addr,
        "updateCodeAddress",
        [new_code_addr],
        abi=PROXIABLE_ABI,
        gas_price=gas_price,
        rpc_url=rpc_url,
    )
    if result.get("status") != 1:
        raise UpgradeFailedError(proxy_addr, result.get("tx_hash"))
    logger.info(
        "Logic contract upgraded to %s for proxy contract %s", new_code_addr, proxy_addr
    )
    return result
