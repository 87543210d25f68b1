"""
Update Platform - Change the Galleria platform address and minimum fee.
"""

from __future__ import annotations

import os
from typing import Optional

import click

from .. import config
from ..chain.abi import load_abi
from ..chain.contract import Contract
from ._options import (
    CHAIN_ERRORS,
    account_for,
    address_option,
    connect,
    fail,
    gas_price_option,
    gas_price_wei,
    key_option,
    rpc_url_option,
)
from .version import show_version


def show_fee_params(galleria: Contract) -> None:
    params = galleria.call("getFeeParams")
    click.echo(f"  platformAddr:     {params['_platformAddress']}")
    click.echo(f"  minFee:           {params['_minFee']}")


@click.command("update-platform")
@rpc_url_option
@gas_price_option
@key_option("--deploy-pk", "FEEDS_DEPLOY_PK", "Private key of the Galleria owner")
@address_option("--galleria-addr", "FEEDS_GALLERIA_ADDRESS", "Proxied Galleria contract address")
@address_option("--new-platform-addr", None, "New platform fee receiver")
@click.option("--new-min-fee", type=int, default=None, help="New minimum panel fee in wei")
def update_platform(
    rpc_url: str,
    gas_price: Optional[str],
    deploy_pk: Optional[str],
    galleria_addr: Optional[str],
    new_platform_addr: Optional[str],
    new_min_fee: Optional[int],
) -> None:
    """
    Set new fee parameters on the Galleria contract.

    Shows the version and fee parameters before and after the change.
    """
    click.echo("=== Feeds NFT Update Platform ===")
    click.echo("")

    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    try:
        deploy_pk = deploy_pk or config.default_deploy_pk()
    except ValueError as exc:
        fail(str(exc))
    if not deploy_pk:
        net_type = os.environ.get("FEEDS_NET_TYPE", config.DEFAULT_NET_TYPE)
        fail(f"Deploy PK is empty, current netType is {net_type}")
    account = account_for(deploy_pk, "Deployer", "--deploy-pk")

    click.echo(f"  Account:         {account.address}")
    click.echo(f"  galleriaAddr:    {galleria_addr or '-'}")
    click.echo(f"  newPlatformAddr: {new_platform_addr or '-'}")
    click.echo(f"  newMinFee:       {new_min_fee if new_min_fee is not None else '-'}")
    click.echo("")

    if not (galleria_addr and new_platform_addr and new_min_fee is not None):
        fail("--galleria-addr, --new-platform-addr and --new-min-fee are all required.")

    try:
        galleria = Contract(load_abi(config.GALLERIA), galleria_addr)

        click.echo("====>>> Origin Galleria info =====")
        show_version(galleria)
        show_fee_params(galleria)
        click.echo("--------")

        result = galleria.transact(
            account, "setFeeParams", new_platform_addr, new_min_fee, gas_price=gas
        )
        click.echo(f"  transactionHash: {result['tx_hash']}")
        click.echo(f"  gasUsed:         {result['gas_used']}")
        click.echo(f"  status:          {result['status']}")
        click.echo("--------")

        click.echo("====>>> New Galleria info =====")
        show_version(galleria)
        show_fee_params(galleria)
    except CHAIN_ERRORS + (FileNotFoundError, ValueError) as exc:
        fail(f"Update platform failed: {exc}")

    if result["status"] != 1:
        fail(f"setFeeParams transaction failed (tx {result['tx_hash']})")
    click.secho("Galleria fee params updated", fg="green")
