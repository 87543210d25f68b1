"""
Upgrade - Point the proxied Sticker / Pasar / Galleria at new logic.
"""

from __future__ import annotations

from typing import Optional

import click

from .. import config
from ..proxy.upgrader import UpgradeFailedError, upgrade_logic
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


@click.command()
@rpc_url_option
@gas_price_option
@key_option("--owner-pk", "FEEDS_OWNER_PK", "Private key of the proxy owner")
@click.option("--proxied-nft-addr", envvar="FEEDS_STICKER_ADDRESS", default=None,
              help="Proxied Sticker contract address")
@click.option("--new-nft-addr", default=None, help="New Sticker logic contract address")
@click.option("--proxied-pasar-addr", envvar="FEEDS_PASAR_ADDRESS", default=None,
              help="Proxied Pasar contract address")
@click.option("--new-pasar-addr", default=None, help="New Pasar logic contract address")
@click.option("--proxied-galleria-addr", envvar="FEEDS_GALLERIA_ADDRESS", default=None,
              help="Proxied Galleria contract address")
@click.option("--new-galleria-addr", default=None, help="New Galleria logic contract address")
def upgrade(
    rpc_url: str,
    gas_price: Optional[str],
    owner_pk: Optional[str],
    proxied_nft_addr: Optional[str],
    new_nft_addr: Optional[str],
    proxied_pasar_addr: Optional[str],
    new_pasar_addr: Optional[str],
    proxied_galleria_addr: Optional[str],
    new_galleria_addr: Optional[str],
) -> None:
    """
    Upgrade logic contracts behind their proxies.

    A contract is upgraded only when both its proxied address and its new
    logic address are given.
    """
    click.echo("=== Start to upgrade contracts ===")
    click.echo("")

    connect(rpc_url)
    gas = gas_price_wei(gas_price)

    pairs = [
        ("NFT", proxied_nft_addr, new_nft_addr),
        ("Pasar", proxied_pasar_addr, new_pasar_addr),
        ("Galleria", proxied_galleria_addr, new_galleria_addr),
    ]
    for label, proxied, new in pairs:
        click.echo(f"  Proxied{label}Addr: {proxied or '-'}")
        click.echo(f"  New{label}Addr:     {new or '-'}")
    click.echo("")

    todo = [(label, proxied, new) for label, proxied, new in pairs if proxied and new]
    owner = None
    if todo:
        owner = account_for(owner_pk or config.default_deploy_pk(), "Owner", "--owner-pk")

    for label, proxied, new in pairs:
        if not (proxied and new):
            click.echo(f"No need to upgrade for logic {label} contract")
            continue
        click.echo(f"=== upgrade logic {label} contract")
        try:
            upgrade_logic(owner, proxied, new, gas_price=gas)
        except (UpgradeFailedError,) + CHAIN_ERRORS as exc:
            fail(f"Upgrade contracts failed: {exc}")
        click.secho(f"Logic {label} contract successfully has been upgraded", fg="green")

    click.echo("=== Upgrade contracts finished ===")
