"""
Options and helpers shared by every command.

Each option falls back to an environment variable (which may come from a
``.env`` file), then to the active network profile.
"""

from __future__ import annotations

import sys
from typing import Callable, NoReturn, Optional

import click
import httpx
from eth_abi.exceptions import EncodingError
from eth_account.signers.local import LocalAccount

from .. import config
from ..chain.rpc import RpcError, use_rpc_url
from ..keys import get_account

# Errors from reaching the node or encoding arguments for it.
CHAIN_ERRORS = (RpcError, httpx.HTTPError, EncodingError, TimeoutError)


def fail(message: str, exit_code: int = 1) -> NoReturn:
    click.secho(f"ERROR: {message}", fg="red")
    sys.exit(exit_code)


def rpc_url_option(f: Callable) -> Callable:
    return click.option(
        "--rpc-url",
        envvar="FEEDS_RPC_URL",
        default=lambda: config.default_rpc_url(),
        show_default="network profile URL",
        help="Ethereum-compatible JSON-RPC URL",
    )(f)


def gas_price_option(f: Callable) -> Callable:
    return click.option(
        "--gas-price",
        envvar="FEEDS_GAS_PRICE",
        default=lambda: config.default_gas_price(),
        show_default="ask the node",
        help="Gas price in wei (empty: eth_gasPrice)",
    )(f)


def key_option(name: str, envvar: str, help: str) -> Callable:
    """Private key option, e.g. key_option("--seller-pk", "FEEDS_SELLER_PK", ...)."""
    return click.option(name, envvar=envvar, default=None, help=help)


def address_option(name: str, envvar: Optional[str], help: str) -> Callable:
    return click.option(name, envvar=envvar, default=None, help=help)


def connect(rpc_url: str) -> None:
    """Point all RPC helpers at ``rpc_url`` and report it."""
    if not rpc_url:
        fail("No RPC URL configured. Pass --rpc-url or set FEEDS_RPC_URL.")
    use_rpc_url(rpc_url)
    click.echo(f"  RPC:      {rpc_url}")


def gas_price_wei(value: Optional[str]) -> Optional[int]:
    try:
        return config.parse_gas_price(value)
    except ValueError:
        fail(f"Invalid gas price: {value!r}")


def account_for(private_key: Optional[str], role: str, option: str) -> LocalAccount:
    """Build the signing account for ``role`` or exit with a red error."""
    if not private_key:
        fail(f"{role} private key required ({option}).")
    try:
        return get_account(private_key)
    except ValueError as exc:
        fail(f"{role} private key: {exc}")


def parse_block(value: Optional[str]):
    """Block bound as int, or a tag such as 'earliest' / 'latest'."""
    if value is None or value == "":
        return None
    if value.isdigit():
        return int(value)
    if value.startswith("0x"):
        return int(value, 16)
    return value
