"""
End-to-end runners: deploy a fresh set of contracts, then run every
scenario against it in order.
"""

from __future__ import annotations

from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from .. import config
from .deploy import V1Deployment, V2Deployment, deploy_v1, deploy_v2
from .galleria import check_galleria
from .pasar import AUCTION_DURATION, check_pasar
from .pasar_v2 import AUCTION_WAIT_V2, check_pasar_v2
from .sticker import check_sticker


def run_v1(
    deployer: LocalAccount,
    creator: LocalAccount,
    seller: LocalAccount,
    buyer: LocalAccount,
    bidder: LocalAccount,
    token_id: int = config.DEFAULT_TOKEN_ID,
    gas_price: Optional[int] = None,
    auction_wait: int = AUCTION_DURATION,
) -> V1Deployment:
    click.echo("=== Deploy contracts ===")
    deployment = deploy_v1(deployer, gas_price)
    click.echo("=== Contracts deployed ===")

    check_sticker(deployment.sticker, creator, seller, token_id, gas_price)
    click.echo("=== Sticker token tests complete")

    check_pasar(deployment.pasar, deployment.sticker.abi, creator, seller, buyer, bidder,
               token_id, gas_price, auction_wait)
    click.echo("=== Pasar contract tests complete")

    check_galleria(deployment.galleria, deployment.sticker.abi, creator, token_id, gas_price)
    click.echo("=== Galleria contract tests complete")
    return deployment


def run_v2(
    deployer: LocalAccount,
    creator: LocalAccount,
    seller: LocalAccount,
    buyer: LocalAccount,
    bidder: LocalAccount,
    token_id: int = config.DEFAULT_TOKEN_ID,
    gas_price: Optional[int] = None,
    auction_wait: int = AUCTION_WAIT_V2,
) -> V2Deployment:
    click.echo("=== Deploy contracts ===")
    deployment = deploy_v2(deployer, creator, seller, buyer, bidder, token_id, gas_price)
    click.echo("=== Contracts deployed ===")

    check_pasar_v2(deployment.pasar, deployment.sticker.abi, deployment.erc20.abi,
                  deployment.erc20.address, creator, seller, buyer, bidder, token_id,
                  gas_price, auction_wait)
    click.echo("=== PasarV2 contract tests complete")
    return deployment
