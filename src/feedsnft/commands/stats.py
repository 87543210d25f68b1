"""
Filled Total - Sum OrderFilled events of the Pasar contract.
"""

from __future__ import annotations

from typing import Optional

import click

from .. import config
from ..chain.abi import load_abi
from ..chain.contract import Contract
from ..stats import filled_total as sum_filled
from ._options import CHAIN_ERRORS, address_option, connect, fail, parse_block, rpc_url_option


@click.command("filled-total")
@rpc_url_option
@address_option("--pasar-addr", "FEEDS_PASAR_ADDRESS", "Proxied Pasar contract address")
@click.option("--from-block", default="earliest", show_default=True, help="First block to scan")
@click.option("--to-block", default="latest", show_default=True, help="Last block to scan")
def filled_total(
    rpc_url: str,
    pasar_addr: Optional[str],
    from_block: str,
    to_block: str,
) -> None:
    """
    Count filled orders and total their price and royalty.
    """
    click.echo("=== Feeds NFT Filled Total ===")
    click.echo("")

    connect(rpc_url)
    if not pasar_addr:
        fail("Pasar contract address required (--pasar-addr or FEEDS_PASAR_ADDRESS).")

    try:
        pasar = Contract(load_abi(config.PASAR), pasar_addr)
        totals = sum_filled(pasar, parse_block(from_block), parse_block(to_block))
    except CHAIN_ERRORS + (FileNotFoundError, ValueError) as exc:
        fail(f"Failed to scan OrderFilled events: {exc}")

    click.echo(
        f"filled count: {totals.count} "
        f"total filled: {totals.total_price} "
        f"total royalty: {totals.total_royalty}"
    )
