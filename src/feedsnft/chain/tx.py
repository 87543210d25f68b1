"""
Transaction Builder - Build, sign, and send Ethereum transactions.

Uses eth-account for signing and httpx-based JSON-RPC for sending.
Every send is a single attempt: fill gas price and gas limit, sign,
broadcast, then block until the receipt arrives.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount

from .abi import encode_constructor_args, encode_function_call, keccak256
from .rpc import (
    estimate_gas,
    get_chain_id,
    get_gas_price,
    get_nonce,
    send_raw_transaction,
    wait_for_receipt,
)

logger = logging.getLogger(__name__)

# eth_estimateGas result is padded by this factor
GAS_ESTIMATE_MARGIN = 1.2

_SIGNED_FIELDS = ("to", "data", "value", "nonce", "gas", "gasPrice", "chainId")


class TransactionFailedError(RuntimeError):
    """A mined transaction whose receipt status is not 1."""

    def __init__(self, what: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        suffix = f" (tx {tx_hash})" if tx_hash else ""
        super().__init__(f"{what} transaction failed{suffix}")


def to_checksum_address(address: str) -> str:
    """Convert an address to EIP-55 checksummed format.

    eth-account requires checksummed addresses in transaction fields.
    """
    addr = address.lower().replace("0x", "")
    addr_hash = keccak256(addr.encode("utf-8")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result


def send_tx_wait_for_receipt(
    tx: dict,
    account: LocalAccount,
    timeout: int = 120,
    rpc_url: Optional[str] = None,
) -> dict:
    """
    Sign a transaction, broadcast it and wait for the receipt.

    Missing ``gasPrice`` is taken from the node; missing ``gas`` is the
    node's estimate padded by GAS_ESTIMATE_MARGIN.  The caller's dict is
    not modified, so the same tx can be sent twice.

    Args:
        tx: Transaction dict (to, data, value, optional gas / gasPrice)
        account: Signing account
        timeout: Receipt wait timeout in seconds

    Returns:
        Dict with tx_hash, receipt, status, gas_used and contract_address
    """
    tx = dict(tx)
    tx["from"] = account.address
    tx["value"] = int(tx.get("value") or 0)
    if tx.get("to"):
        tx["to"] = to_checksum_address(tx["to"])
    else:
        tx.pop("to", None)

    if not tx.get("gasPrice"):
        tx["gasPrice"] = get_gas_price(rpc_url=rpc_url)
    tx["gasPrice"] = int(tx["gasPrice"])
    if not tx.get("gas"):
        tx["gas"] = int(estimate_gas(tx, rpc_url=rpc_url) * GAS_ESTIMATE_MARGIN + 0.5)
    tx["nonce"] = get_nonce(account.address, rpc_url=rpc_url)
    tx["chainId"] = get_chain_id(rpc_url=rpc_url)

    signable = {k: tx[k] for k in _SIGNED_FIELDS if k in tx}
    logger.debug("signing tx from %s: %s", account.address, signable)
    signed = account.sign_transaction(signable)
    raw_tx = "0x" + bytes(signed.raw_transaction).hex()

    tx_hash = send_raw_transaction(raw_tx, rpc_url=rpc_url)
    receipt = wait_for_receipt(tx_hash, timeout=timeout, rpc_url=rpc_url)

    return {
        "tx_hash": tx_hash,
        "receipt": receipt,
        "status": int(receipt.get("status", "0x0"), 16),
        "gas_used": int(receipt.get("gasUsed", "0x0"), 16),
        "contract_address": receipt.get("contractAddress"),
    }


def build_contract_tx(
    contract_address: str,
    function_name: str,
    args: Sequence[Any],
    abi: list,
    value: int = 0,
    gas_price: Optional[int] = None,
    gas_limit: Optional[int] = None,
) -> dict:
    """
    Build a contract call transaction (unsigned, no nonce yet).

    Args:
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        args: Function arguments
        abi: Contract ABI
        value: Native coin value in wei (default: 0)
        gas_price: Gas price in wei (default: ask the node)
        gas_limit: Gas limit (default: estimate)
    """
    tx: dict[str, Any] = {
        "to": contract_address,
        "data": encode_function_call(abi, function_name, list(args)),
        "value": value,
    }
    if gas_price:
        tx["gasPrice"] = gas_price
    if gas_limit:
        tx["gas"] = gas_limit
    return tx


def send_contract_tx(
    account: LocalAccount,
    contract_address: str,
    function_name: str,
    args: Sequence[Any],
    abi: Optional[list] = None,
    contract_name: Optional[str] = None,
    value: int = 0,
    gas_price: Optional[int] = None,
    gas_limit: Optional[int] = None,
    rpc_url: Optional[str] = None,
) -> dict:
    """
    Build, sign, and send a contract call transaction.

    Convenience function combining build + sign + send.
    """
    if abi is None:
        if contract_name is None:
            raise ValueError("Either abi or contract_name must be provided")
        from .abi import load_abi

        abi = load_abi(contract_name)

    tx = build_contract_tx(
        contract_address=contract_address,
        function_name=function_name,
        args=args,
        abi=abi,
        value=value,
        gas_price=gas_price,
        gas_limit=gas_limit,
    )
    return send_tx_wait_for_receipt(tx, account, rpc_url=rpc_url)


def deploy_contract(
    account: LocalAccount,
    bytecode: str,
    abi: Optional[list] = None,
    constructor_args: Optional[Sequence[Any]] = None,
    gas_price: Optional[int] = None,
    gas_limit: Optional[int] = None,
    timeout: int = 180,
    rpc_url: Optional[str] = None,
) -> dict:
    """
    Deploy a contract to the chain.

    Builds a creation transaction (no ``to``), signs, sends, and returns
    the result of send_tx_wait_for_receipt, whose ``contract_address``
    holds the new address.

    Args:
        account: Deployer account
        bytecode: Creation bytecode, with or without 0x
        abi: Contract ABI (needed only with constructor_args)
        constructor_args: Constructor arguments (default: none)
    """
    deploy_data = bytecode[2:] if bytecode.startswith("0x") else bytecode
    if constructor_args:
        if abi is None:
            raise ValueError("abi is required to encode constructor arguments")
        deploy_data += encode_constructor_args(abi, list(constructor_args))

    tx: dict[str, Any] = {"data": "0x" + deploy_data, "value": 0}
    if gas_price:
        tx["gasPrice"] = gas_price
    if gas_limit:
        tx["gas"] = gas_limit

    return send_tx_wait_for_receipt(tx, account, timeout=timeout, rpc_url=rpc_url)
