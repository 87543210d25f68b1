"""
Sticker token scenario: mint, transfer, approved transfer, burn, burnFrom.

Every step reads balances before and after and checks the exact delta.
"""

from __future__ import annotations

from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from .. import config
from ..chain.contract import Contract
from .common import send, token_balance
from .expect import expect_equal, expect_true

TRANSFER_AMOUNT = 25
APPROVED_TRANSFER_AMOUNT = 35
BURN_AMOUNT = 5
APPROVED_BURN_AMOUNT = 6


def check_sticker(
    sticker: Contract,
    creator: LocalAccount,
    seller: LocalAccount,
    token_id: int = config.DEFAULT_TOKEN_ID,
    gas_price: Optional[int] = None,
) -> bool:
    """
    Exercise the Sticker token through its proxy.

    The creator mints ``STICKER_SUPPLY`` copies of ``token_id``, which must
    not exist yet, and ends with 60 fewer (given to the seller) and 11
    fewer burned.

    Raises:
        ExpectationError: On the first read-back that does not match
    """
    click.echo("Creator and seller accounts generated")

    # Mint
    before = token_balance(sticker, creator.address, token_id)
    expect_equal(before, 0, f"Token balance of id {token_id} before mint")
    send(sticker, creator, "mint", token_id, config.STICKER_SUPPLY, config.STICKER_URI,
         config.STICKER_ROYALTY, what="Mint token", gas_price=gas_price)
    after_mint = token_balance(sticker, creator.address, token_id)
    expect_equal(after_mint, config.STICKER_SUPPLY, f"Token balance of id {token_id} after mint")
    click.echo(
        f"Mint token with id {token_id} supply {config.STICKER_SUPPLY} "
        f"to address {creator.address} successfully"
    )

    # Transfer creator -> seller
    seller_before = token_balance(sticker, seller.address, token_id)
    send(sticker, creator, "safeTransferFrom", creator.address, seller.address, token_id,
         TRANSFER_AMOUNT, what="Transfer token", gas_price=gas_price)
    creator_after = token_balance(sticker, creator.address, token_id)
    seller_after = token_balance(sticker, seller.address, token_id)
    expect_equal(after_mint - creator_after, TRANSFER_AMOUNT,
                 "Token transfer balance changed for creator")
    expect_equal(seller_after - seller_before, TRANSFER_AMOUNT,
                 "Token transfer balance changed for seller")
    click.echo(f"Token transfer from {creator.address} to {seller.address} successfully")

    # Creator approves seller
    send(sticker, creator, "setApprovalForAll", seller.address, True,
         what="Approve token", gas_price=gas_price)
    expect_true(sticker.call("isApprovedForAll", creator.address, seller.address),
                "Seller is approved by creator")
    click.echo(f"{creator.address} approved {seller.address} successfully")

    # Seller moves the creator's tokens
    creator_before, seller_before = creator_after, seller_after
    send(sticker, seller, "safeTransferFrom", creator.address, seller.address, token_id,
         APPROVED_TRANSFER_AMOUNT, what="Approved transfer token", gas_price=gas_price)
    creator_after = token_balance(sticker, creator.address, token_id)
    seller_after = token_balance(sticker, seller.address, token_id)
    expect_equal(creator_before - creator_after, APPROVED_TRANSFER_AMOUNT,
                 "Token approved transfer balance changed for creator")
    expect_equal(seller_after - seller_before, APPROVED_TRANSFER_AMOUNT,
                 "Token approved transfer balance changed for seller")
    click.echo(f"Token approved transfer from {creator.address} to {seller.address} successfully")

    # Burn
    creator_before = creator_after
    send(sticker, creator, "burn", token_id, BURN_AMOUNT, what="Burn token", gas_price=gas_price)
    creator_after = token_balance(sticker, creator.address, token_id)
    expect_equal(creator_before - creator_after, BURN_AMOUNT,
                 "Token burn balance change for creator")
    click.echo(f"Token burned from {creator.address} successfully")

    # Approved burn
    creator_before = creator_after
    send(sticker, seller, "burnFrom", creator.address, token_id, APPROVED_BURN_AMOUNT,
         what="Approved burn token", gas_price=gas_price)
    creator_after = token_balance(sticker, creator.address, token_id)
    expect_equal(creator_before - creator_after, APPROVED_BURN_AMOUNT,
                 "Token approved burn balance change for creator")
    click.echo(f"Token approved burned from {creator.address} by {seller.address} successfully")

    return True
