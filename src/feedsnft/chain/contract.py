"""
Contract handle: an ABI bound to an address.

Wraps the module-level RPC and transaction helpers so scenario code reads
as ``sticker.call("balanceOf", addr, token_id)`` and
``pasar.transact(seller, "cancelOrder", order_id)``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount

from . import rpc, tx
from .abi import Record, decode_event, event_topic, find_event

logger = logging.getLogger(__name__)


class Contract:
    """A deployed contract, or the logic ABI viewed through a proxy address."""

    def __init__(self, abi: list, address: str, rpc_url: Optional[str] = None):
        self.abi = abi
        self.address = address
        self.rpc_url = rpc_url

    def __repr__(self) -> str:
        return f"Contract({self.address})"

    def at(self, address: str) -> "Contract":
        """Same ABI at another address (e.g. a proxy in front of this logic)."""
        return Contract(self.abi, address, rpc_url=self.rpc_url)

    def call(self, function_name: str, *args: Any) -> Any:
        """eth_call a view function and return the decoded result."""
        return rpc.read_contract(
            self.address, function_name, list(args), abi=self.abi, rpc_url=self.rpc_url
        )

    def transact(
        self,
        account: LocalAccount,
        function_name: str,
        *args: Any,
        value: int = 0,
        gas_price: Optional[int] = None,
        gas: Optional[int] = None,
    ) -> dict:
        """
        Send a state-changing call from ``account`` and wait for its receipt.

        Returns the send_tx_wait_for_receipt result dict; the caller decides
        whether a failed status is an error.
        """
        logger.debug("%s.%s%r from %s", self.address, function_name, args, account.address)
        return tx.send_contract_tx(
            account,
            self.address,
            function_name,
            args,
            abi=self.abi,
            value=value,
            gas_price=gas_price,
            gas_limit=gas,
            rpc_url=self.rpc_url,
        )

    def events(
        self,
        event_name: str,
        from_block: Any = "earliest",
        to_block: Any = "latest",
    ) -> list[Record]:
        """Fetch and decode every ``event_name`` log emitted in the block range."""
        entry = find_event(self.abi, event_name)
        logs = rpc.get_logs(
            self.address,
            topics=[event_topic(entry)],
            from_block=from_block,
            to_block=to_block,
            rpc_url=self.rpc_url,
        )
        return [decode_event(entry, log) for log in logs]

    @classmethod
    def deploy(
        cls,
        account: LocalAccount,
        abi: list,
        bytecode: str,
        constructor_args: Sequence[Any] = (),
        gas_price: Optional[int] = None,
        rpc_url: Optional[str] = None,
    ) -> tuple["Contract", dict]:
        """
        Deploy ``bytecode`` and return the bound contract with the tx result.

        Raises:
            TransactionFailedError: If the creation transaction reverts or
                no contract address comes back
        """
        result = tx.deploy_contract(
            account,
            bytecode,
            abi=abi,
            constructor_args=constructor_args,
            gas_price=gas_price,
            rpc_url=rpc_url,
        )
        address = result.get("contract_address")
        if result.get("status") != 1 or not address or len(address) != 42:
            raise tx.TransactionFailedError("Deploy", result.get("tx_hash"))
        return cls(abi, address, rpc_url=rpc_url), result
