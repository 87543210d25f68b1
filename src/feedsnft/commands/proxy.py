"""
Proxy - Upgradeable proxy demo and single-proxy upgrade.
"""

from __future__ import annotations

from typing import Optional

import click

from .. import config
from ..chain.tx import TransactionFailedError
from ..proxy.demo import run_demo
from ..proxy.upgrader import UpgradeFailedError, get_code_address, upgrade_logic
from ..scenarios.expect import ExpectationError
from ..solc.compiler import CompileError
from ._options import (
    CHAIN_ERRORS,
    account_for,
    connect,
    fail,
    gas_price_option,
    gas_price_wei,
    key_option,
    rpc_url_option,
)


@click.group()
def proxy() -> None:
    """Upgradeable proxy tools."""
    pass


@proxy.command()
@rpc_url_option
@gas_price_option
@key_option("--owner-pk", "FEEDS_OWNER_PK", "Private key of the proxy owner")
def demo(rpc_url: str, gas_price: Optional[str], owner_pk: Optional[str]) -> None:
    """
    Deploy Demo1 behind a proxy, upgrade it to Demo2 and check storage survives.
    """
    click.echo("=== Proxy Upgrade Demo ===")
    click.echo("")

    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    owner = account_for(owner_pk or config.default_deploy_pk(), "Owner", "--owner-pk")
    click.echo(f"  Owner:    {owner.address}")
    click.echo("")

    try:
        run_demo(owner, gas)
    except (CompileError, TransactionFailedError, UpgradeFailedError, ExpectationError,
            FileNotFoundError) + CHAIN_ERRORS as exc:
        fail(str(exc))

    click.secho("Proxy demo passed", fg="green")


@proxy.command("upgrade")
@rpc_url_option
@gas_price_option
@key_option("--owner-pk", "FEEDS_OWNER_PK", "Private key of the proxy owner")
@click.option("--proxy-addr", required=True, help="Proxy contract address")
@click.option("--new-code-addr", required=True, help="New logic contract address")
def upgrade_proxy(
    rpc_url: str,
    gas_price: Optional[str],
    owner_pk: Optional[str],
    proxy_addr: str,
    new_code_addr: str,
) -> None:
    """
    Point one proxy at a new logic contract.
    """
    click.echo("=== Proxy Upgrade ===")
    click.echo("")

    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    owner = account_for(owner_pk or config.default_deploy_pk(), "Owner", "--owner-pk")

    try:
        click.echo(f"  Proxy:       {proxy_addr}")
        click.echo(f"  Old logic:   {get_code_address(proxy_addr)}")
        result = upgrade_logic(owner, proxy_addr, new_code_addr, gas_price=gas)
        click.echo(f"  New logic:   {get_code_address(proxy_addr)}")
    except (UpgradeFailedError,) + CHAIN_ERRORS as exc:
        fail(str(exc))

    click.echo(f"  Tx:          {result['tx_hash']}")
    click.secho(
        f"Logic contract upgraded to {new_code_addr} for proxy contract {proxy_addr}",
        fg="green",
    )
