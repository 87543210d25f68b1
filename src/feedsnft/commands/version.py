"""
Version - Show version, magic and logic address of proxied contracts.
"""

from __future__ import annotations

from typing import Optional

import click

from .. import config
from ..chain.abi import load_abi
from ..chain.contract import Contract
from ..proxy.upgrader import get_code_address
from ._options import CHAIN_ERRORS, address_option, connect, fail, rpc_url_option


def show_version(contract: Contract) -> None:
    """Print getVersion / getMagic and the logic address behind the proxy."""
    version = contract.call("getVersion")
    magic = contract.call("getMagic")
    logic_addr = get_code_address(contract.address, rpc_url=contract.rpc_url)

    click.echo(f"  Contract address: {contract.address}")
    click.echo(f"  Version:          {version}")
    click.echo(f"  Magic:            {magic}")
    click.echo(f"  LogicAddr:        {logic_addr}")


def show_platform_fee(pasar: Contract) -> None:
    fee = pasar.call("getPlatformFee")
    click.echo(f"  platformAddr:     {fee['_platformAddress']}")
    click.echo(f"  platformFee:      {fee['_platformFeeRate']}")


@click.command()
@rpc_url_option
@address_option("--nft-addr", "FEEDS_STICKER_ADDRESS", "Proxied Sticker contract address")
@address_option("--pasar-addr", "FEEDS_PASAR_ADDRESS", "Proxied Pasar contract address")
@address_option("--galleria-addr", "FEEDS_GALLERIA_ADDRESS", "Proxied Galleria contract address")
def version(
    rpc_url: str,
    nft_addr: Optional[str],
    pasar_addr: Optional[str],
    galleria_addr: Optional[str],
) -> None:
    """
    Show version details of the proxied Feeds contracts.
    """
    click.echo("=== Feeds NFT Version ===")
    click.echo("")

    connect(rpc_url)
    click.echo(f"  nftAddr:      {nft_addr or '-'}")
    click.echo(f"  pasarAddr:    {pasar_addr or '-'}")
    click.echo(f"  galleriaAddr: {galleria_addr or '-'}")
    click.echo("")

    if not (nft_addr or pasar_addr or galleria_addr):
        fail("No contract address given (--nft-addr, --pasar-addr or --galleria-addr).")

    try:
        if nft_addr:
            click.echo("====>>> NFT contract address details =====")
            show_version(Contract(load_abi(config.STICKER), nft_addr))

        if pasar_addr:
            click.echo("====>>> Pasar contract address details =====")
            pasar = Contract(load_abi(config.PASAR), pasar_addr)
            show_version(pasar)
            show_platform_fee(pasar)

        if galleria_addr:
            click.echo("====>>> Galleria contract address details =====")
            show_version(Contract(load_abi(config.GALLERIA), galleria_addr))
    except CHAIN_ERRORS + (FileNotFoundError, ValueError) as exc:
        fail(f"Failed to read contract details: {exc}")
