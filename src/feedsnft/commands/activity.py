"""
Activity - Supply and order counters of the Sticker and Pasar contracts.
"""

from __future__ import annotations

from typing import Optional

import click

from .. import config
from ..chain.abi import load_abi
from ..chain.contract import Contract
from ._options import CHAIN_ERRORS, address_option, connect, fail, rpc_url_option


@click.command()
@rpc_url_option
@address_option("--nft-addr", "FEEDS_STICKER_ADDRESS", "Proxied Sticker contract address")
@address_option("--pasar-addr", "FEEDS_PASAR_ADDRESS", "Proxied Pasar contract address")
def activity(rpc_url: str, nft_addr: Optional[str], pasar_addr: Optional[str]) -> None:
    """
    Show token supply and marketplace order statistics.
    """
    click.echo("=== Feeds NFT Activity ===")
    click.echo("")

    connect(rpc_url)
    click.echo(f"  nftAddr:   {nft_addr or '-'}")
    click.echo(f"  pasarAddr: {pasar_addr or '-'}")
    click.echo("")

    if not (nft_addr or pasar_addr):
        fail("No contract address given (--nft-addr or --pasar-addr).")

    try:
        if nft_addr:
            sticker = Contract(load_abi(config.STICKER), nft_addr)
            supply = sticker.call("totalSupply")
            click.echo("====>>> NFT contract address details =====")
            click.echo(f"  Contract address:                    {nft_addr}")
            click.echo(f"  Total supply:                        {supply}")

        if pasar_addr:
            pasar = Contract(load_abi(config.PASAR), pasar_addr)
            open_orders = pasar.call("getOpenOrderCount")
            buyers = pasar.call("getBuyerCount")
            sellers = pasar.call("getSellerCount")
            orders = pasar.call("getOrderCount")
            click.echo("====>>> Pasar contract address details =====")
            click.echo(f"  Contract address:                    {pasar_addr}")
            click.echo(f"  Total orders (onsale):               {open_orders}")
            click.echo(f"  Total buyers:                        {buyers}")
            click.echo(f"  Total sellers:                       {sellers}")
            click.echo(f"  Total orders (bought/canceled/onsale): {orders}")
    except CHAIN_ERRORS + (FileNotFoundError, ValueError) as exc:
        fail(f"Failed to read contract data: {exc}")
