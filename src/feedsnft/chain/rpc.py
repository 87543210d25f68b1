"""
JSON-RPC client for Ethereum-compatible nodes (Elastos ESC by default).

Lightweight alternative to web3.py: uses httpx for HTTP + eth-abi for encoding.
Supports contract reads, balance / block / log queries and transaction
receipt polling.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional

import httpx

from .abi import decode_function_result, encode_function_call

logger = logging.getLogger(__name__)


class RpcError(RuntimeError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, error: Any):
        self.method = method
        self.error = error
        message = error.get("message") if isinstance(error, dict) else error
        super().__init__(f"RPC error in {method}: {message}")


def get_rpc_url() -> str:
    """Get the RPC URL from environment or the active network profile."""
    from ..config import default_rpc_url

    return default_rpc_url()


def use_rpc_url(url: str) -> None:
    """Point every subsequent RPC call without an explicit URL at ``url``."""
    os.environ["FEEDS_RPC_URL"] = url


def _rpc_call(method: str, params: list, rpc_url: Optional[str] = None) -> Any:
    """
    Make a JSON-RPC call.

    Args:
        method: RPC method name (e.g., "eth_call")
        params: RPC parameters
        rpc_url: RPC endpoint URL

    Returns:
        Result field from the RPC response

    Raises:
        RpcError: If the node returns an error object
    """
    url = rpc_url or get_rpc_url()
    payload = {
        "jsonrpc": "2.0",
        "method": method,
        "params": params,
        "id": 1,
    }
    logger.debug("rpc %s %s -> %s", method, params, url)

    with httpx.Client(timeout=30) as client:
        response = client.post(url, json=payload)
        response.raise_for_status()
        data = response.json()

    if "error" in data:
        raise RpcError(method, data["error"])

    return data.get("result")


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def call(to: str, data: str, block: str = "latest", rpc_url: Optional[str] = None) -> str:
    """Raw eth_call; returns the 0x-prefixed return data."""
    return _rpc_call("eth_call", [{"to": to, "data": data}, block], rpc_url=rpc_url)


def read_contract(
    contract_address: str,
    function_name: str,
    args: Optional[list] = None,
    abi: Optional[list] = None,
    contract_name: Optional[str] = None,
    rpc_url: Optional[str] = None,
) -> Any:
    """
    Read from a smart contract (eth_call).

    Args:
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        args: Function arguments (default: [])
        abi: Contract ABI
        contract_name: Name of the ABI artifact to load when abi is None
        rpc_url: RPC endpoint URL

    Returns:
        Decoded return value(s)
    """
    if abi is None:
        if contract_name is None:
            raise ValueError("Either abi or contract_name must be provided")
        from .abi import load_abi

        abi = load_abi(contract_name)

    args = args or []
    calldata = encode_function_call(abi, function_name, args)
    result = call(contract_address, calldata, rpc_url=rpc_url)

    if result is None or result == "0x":
        return None

    return decode_function_result(abi, function_name, result, nargs=len(args))


def get_chain_id(rpc_url: Optional[str] = None) -> int:
    """Chain ID from CHAIN_ID, else asked from the node."""
    configured = os.environ.get("CHAIN_ID")
    if configured:
        return int(configured)
    return _to_int(_rpc_call("eth_chainId", [], rpc_url=rpc_url))


def get_balance(address: str, rpc_url: Optional[str] = None) -> int:
    """
    Get native coin balance for an address.

    Returns:
        Balance in wei
    """
    result = _rpc_call("eth_getBalance", [address, "latest"], rpc_url=rpc_url)
    return _to_int(result)


def get_nonce(address: str, block: str = "pending", rpc_url: Optional[str] = None) -> int:
    result = _rpc_call("eth_getTransactionCount", [address, block], rpc_url=rpc_url)
    return _to_int(result)


def get_gas_price(rpc_url: Optional[str] = None) -> int:
    """
    Get current gas price.

    Returns:
        Gas price in wei
    """
    result = _rpc_call("eth_gasPrice", [], rpc_url=rpc_url)
    return _to_int(result)


def estimate_gas(tx: dict, rpc_url: Optional[str] = None) -> int:
    """eth_estimateGas for an unsigned transaction dict."""
    query: dict[str, Any] = {}
    for key in ("from", "to", "data"):
        if tx.get(key):
            query[key] = tx[key]
    if tx.get("value"):
        query["value"] = hex(int(tx["value"]))
    if tx.get("gasPrice"):
        query["gasPrice"] = hex(int(tx["gasPrice"]))
    return _to_int(_rpc_call("eth_estimateGas", [query], rpc_url=rpc_url))


def send_raw_transaction(raw_tx: str, rpc_url: Optional[str] = None) -> str:
    """
    Send a signed raw transaction.

    Returns:
        Transaction hash (0x-prefixed hex)
    """
    return _rpc_call("eth_sendRawTransaction", [raw_tx], rpc_url=rpc_url)


def get_transaction(tx_hash: str, rpc_url: Optional[str] = None) -> Optional[dict]:
    return _rpc_call("eth_getTransactionByHash", [tx_hash], rpc_url=rpc_url)


def get_transaction_fee(tx_hash: str, gas_used: int, rpc_url: Optional[str] = None) -> int:
    """Wei paid for gas by a mined transaction: gasUsed * gasPrice."""
    tx = get_transaction(tx_hash, rpc_url=rpc_url)
    if tx is None:
        raise RpcError("eth_getTransactionByHash", f"transaction {tx_hash} not found")
    return gas_used * _to_int(tx["gasPrice"])


def get_block(block: str = "latest", rpc_url: Optional[str] = None) -> dict:
    """Block header (without transaction bodies)."""
    if isinstance(block, int):
        block = hex(block)
    return _rpc_call("eth_getBlockByNumber", [block, False], rpc_url=rpc_url)


def get_block_timestamp(block: str = "latest", rpc_url: Optional[str] = None) -> int:
    return _to_int(get_block(block, rpc_url=rpc_url)["timestamp"])


def get_logs(
    address: str,
    topics: Optional[list] = None,
    from_block: Any = "earliest",
    to_block: Any = "latest",
    rpc_url: Optional[str] = None,
) -> list[dict]:
    """eth_getLogs for one contract; block bounds may be ints or tags."""
    query: dict[str, Any] = {
        "address": address,
        "fromBlock": hex(from_block) if isinstance(from_block, int) else from_block,
        "toBlock": hex(to_block) if isinstance(to_block, int) else to_block,
    }
    if topics:
        query["topics"] = topics
    return _rpc_call("eth_getLogs", [query], rpc_url=rpc_url) or []


def wait_for_receipt(
    tx_hash: str,
    timeout: int = 120,
    poll_interval: float = 2.0,
    rpc_url: Optional[str] = None,
) -> dict:
    """
    Wait for a transaction receipt.

    Args:
        tx_hash: Transaction hash
        timeout: Maximum wait time in seconds
        poll_interval: Polling interval in seconds
        rpc_url: RPC endpoint URL

    Returns:
        Transaction receipt dict

    Raises:
        TimeoutError: If receipt not found within timeout
    """
    start = time.time()
    while time.time() - start < timeout:
        receipt = _rpc_call(
            "eth_getTransactionReceipt", [tx_hash], rpc_url=rpc_url
        )
        if receipt is not None:
            return receipt
        time.sleep(poll_interval)

    raise TimeoutError(f"Transaction {tx_hash} not confirmed within {timeout}s")
