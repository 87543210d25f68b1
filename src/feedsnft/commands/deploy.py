"""
Deploy - Deploy the Sticker and Pasar logic contracts behind proxies.
"""

from __future__ import annotations

from typing import Optional

import click

from .. import config
from ..chain.tx import TransactionFailedError
from ..scenarios.deploy import deploy_release
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


@click.command()
@rpc_url_option
@gas_price_option
@key_option("--deploy-pk", "FEEDS_DEPLOY_PK", "Private key of the deployer account")
@click.option("--with-nft/--no-nft", default=True, help="Deploy the Sticker logic contract")
@click.option("--with-pasar/--no-pasar", default=True, help="Deploy the Pasar logic contract")
@click.option("--with-proxy/--no-proxy", default=True, help="Deploy and initialize proxies")
@click.option(
    "--nft-addr",
    envvar="FEEDS_STICKER_ADDRESS",
    default=None,
    help="Existing proxied Sticker for Pasar when --no-nft",
)
@click.option("--save", is_flag=True, help="Save the proxied addresses to the env file")
def deploy(
    rpc_url: str,
    gas_price: Optional[str],
    deploy_pk: Optional[str],
    with_nft: bool,
    with_pasar: bool,
    with_proxy: bool,
    nft_addr: Optional[str],
    save: bool,
) -> None:
    """
    Compile and deploy the Feeds contracts.

    Each logic contract gets its own FeedsContractProxy; the proxied
    Sticker is initialized, and the proxied Pasar is initialized with the
    proxied Sticker address.
    """
    click.echo("=== Feeds NFT Deploy ===")
    click.echo("")

    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    deploy_pk = deploy_pk or config.default_deploy_pk()
    deployer = account_for(deploy_pk, "Deployer", "--deploy-pk")
    click.echo(f"  gasPrice: {gas if gas else 'auto'}")
    click.echo(f"  Deployer: {deployer.address}")
    click.echo("")

    try:
        release = deploy_release(
            deployer,
            with_nft=with_nft,
            with_pasar=with_pasar,
            with_proxy=with_proxy,
            nft_addr=nft_addr,
            gas_price=gas,
        )
    except (CompileError, TransactionFailedError, ExpectationError,
            ValueError) + CHAIN_ERRORS as exc:
        fail(f"Contracts deployed failed: {exc}")

    click.echo("")
    click.echo(f"Logic contract address (NFT)    : {release.logic_nft or '-'}")
    click.echo(f"Logic contract address (Pasar)  : {release.logic_pasar or '-'}")
    click.echo(f"Proxied contract address (NFT)  : {release.proxied_nft or '-'}")
    click.echo(f"Proxied contract address (Pasar): {release.proxied_pasar or '-'}")

    if save:
        saved = None
        if release.proxied_nft:
            saved = config.save_env_value("FEEDS_STICKER_ADDRESS", release.proxied_nft)
        if release.proxied_pasar:
            saved = config.save_env_value("FEEDS_PASAR_ADDRESS", release.proxied_pasar)
        if saved:
            click.echo(f"  Saved to: {saved}")

    click.secho("Contracts deployed successfully", fg="green")
