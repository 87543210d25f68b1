"""
Steps shared by the scenario harnesses.

Native-coin balances, gas fees, block time and the auction timer all go
through this module so a whole scenario can run against in-memory fakes.
"""

from __future__ import annotations

import time
from typing import Any, Optional, Sequence

import click
from eth_account.signers.local import LocalAccount

from ..chain import rpc
from ..chain.contract import Contract
from ..solc.compiler import CompiledContract
from .expect import ExpectationError, expect_address, expect_status


def eth_balance(address: str) -> int:
    return rpc.get_balance(address)


def gas_fee(result: dict) -> int:
    """Wei the sender paid for gas on a mined transaction."""
    return rpc.get_transaction_fee(result["tx_hash"], result["gas_used"])


def block_time() -> int:
    """Timestamp of the latest block."""
    return rpc.get_block_timestamp("latest")


def wait_for_auction(seconds: int) -> None:
    click.echo(f"Wait {seconds}s for auction to end...")
    time.sleep(seconds)
    click.echo("Auction should have ended by now")


def bind(abi: list, address: str, like: Any = None) -> Contract:
    """Contract handle at ``address`` using the same endpoint as ``like``."""
    return Contract(abi, address, rpc_url=getattr(like, "rpc_url", None))


def token_balance(sticker: Contract, address: str, token_id: int) -> int:
    return int(sticker.call("balanceOf", address, token_id))


def erc20_balance(erc20: Contract, address: str) -> int:
    return int(erc20.call("balanceOf", address))


def send(
    contract: Contract,
    account: LocalAccount,
    function_name: str,
    *args: Any,
    what: str,
    value: int = 0,
    gas_price: Optional[int] = None,
) -> dict:
    """Transact and require a successful receipt."""
    result = contract.transact(account, function_name, *args, value=value, gas_price=gas_price)
    return expect_status(result, what)


def last_open_order(pasar: Contract) -> Any:
    count = int(pasar.call("getOpenOrderCount"))
    if count < 1:
        raise ExpectationError("Open order count: expected at least 1, got 0")
    return pasar.call("getOpenOrderByIndex", count - 1)


def require_at_least(actual: int, needed: int, what: str) -> None:
    if actual < needed:
        raise ExpectationError(f"{what}: need at least {needed}, have {actual}")


def deploy_checked(
    deployer: LocalAccount,
    compiled: CompiledContract,
    label: str,
    constructor_args: Sequence[Any] = (),
    gas_price: Optional[int] = None,
) -> Contract:
    """Deploy, verify the new address and report it."""
    contract, _ = Contract.deploy(
        deployer,
        compiled.abi,
        compiled.bytecode,
        constructor_args,
        gas_price=gas_price,
    )
    expect_address(contract.address, f"{label} contract address")
    click.echo(f"{label} contract deployed successfully at address {contract.address}")
    return contract
