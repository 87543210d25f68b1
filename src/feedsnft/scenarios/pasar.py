"""
Pasar (v1) marketplace scenario, paid in the native coin.

Covers a fixed-price sale, a two-bid auction settled after it expires and
an order whose price is changed and then cancelled.  v1 order records are
read positionally.
"""

from __future__ import annotations

from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from .. import config
from ..chain.contract import Contract
from .common import (
    bind,
    block_time,
    eth_balance,
    gas_fee,
    last_open_order,
    require_at_least,
    send,
    token_balance,
    wait_for_auction,
)
from .expect import expect_equal, expect_true

# positions in the getOrderById tuple
ORDER_STATE = 2
ORDER_PRICE = 5
ORDER_FILLED = 12
ORDER_ROYALTY = 14

ORDER_CANCELED = 3

SALE_AMOUNT = 1
SALE_PRICE = 600_000_000_000_000_000
AUCTION_AMOUNT = 3
AUCTION_PRICE = 1_500_000_000_000_000_000
BID1_PRICE = 1_500_000_000_000_000_000
BID2_PRICE = 1_700_000_000_000_000_000
ORDER_AMOUNT = 7
ORDER_PRICE_1 = 800_000_000_000_000_000
ORDER_PRICE_2 = 1_300_000_000_000_000_000

AUCTION_DURATION = 120


def check_pasar(
    pasar: Contract,
    sticker_abi: list,
    creator: LocalAccount,
    seller: LocalAccount,
    buyer: LocalAccount,
    bidder: LocalAccount,
    token_id: int = config.DEFAULT_TOKEN_ID,
    gas_price: Optional[int] = None,
    auction_wait: int = AUCTION_DURATION,
) -> bool:
    """
    Exercise the Pasar marketplace through its proxy.

    The seller must hold at least 11 copies of ``token_id``; the buyer and
    bidder need enough native coin for their purchase and bids.

    Raises:
        ExpectationError: On the first read-back that does not match
    """
    sticker = bind(sticker_abi, pasar.call("getTokenAddress"), pasar)
    click.echo("Creator, seller, buyer and bidder accounts generated")

    # Pre-conditions
    require_at_least(
        token_balance(sticker, seller.address, token_id),
        SALE_AMOUNT + AUCTION_AMOUNT + ORDER_AMOUNT,
        f"Seller token balance of id {token_id} before test",
    )
    require_at_least(eth_balance(buyer.address), SALE_PRICE + BID1_PRICE + config.GAS_BUFFER,
                     "Buyer ETH balance before test")
    require_at_least(eth_balance(bidder.address), BID2_PRICE + config.GAS_BUFFER,
                     "Bidder ETH balance before test")
    click.echo("Pre-conditions checked, all accounts have enough balances")

    # Seller approves Pasar
    send(sticker, seller, "setApprovalForAll", pasar.address, True,
         what="Approve token", gas_price=gas_price)
    expect_true(sticker.call("isApprovedForAll", seller.address, pasar.address),
                "Pasar is approved by seller")
    click.echo(f"{seller.address} approved {pasar.address} successfully")

    # ---- Fixed-price sale ----
    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "createOrderForSale", token_id, SALE_AMOUNT, SALE_PRICE,
         what="Sale order", gas_price=gas_price)
    expect_equal(before - token_balance(sticker, seller.address, token_id), SALE_AMOUNT,
                 "Seller token balance changed placing sale order")
    sale_order_id = last_open_order(pasar)[0]
    click.echo(f"{seller.address} successfully placed token for sale with order id {sale_order_id}")

    creator_eth = eth_balance(creator.address)
    seller_eth = eth_balance(seller.address)
    buyer_eth = eth_balance(buyer.address)
    buyer_tokens = token_balance(sticker, buyer.address, token_id)
    result = send(pasar, buyer, "buyOrder", sale_order_id, value=SALE_PRICE,
                  what="Purchase order", gas_price=gas_price)
    fee = gas_fee(result)
    order = pasar.call("getOrderById", sale_order_id)
    filled, royalty = int(order[ORDER_FILLED]), int(order[ORDER_ROYALTY])
    expect_equal(eth_balance(creator.address) - creator_eth, royalty,
                 "Creator eth balance changed by sale royalty")
    expect_equal(eth_balance(seller.address) - seller_eth, filled - royalty,
                 "Seller eth balance changed by sale earning")
    expect_equal(token_balance(sticker, buyer.address, token_id) - buyer_tokens, SALE_AMOUNT,
                 "Buyer token balance changed by purchasing token")
    expect_equal(buyer_eth - fee - eth_balance(buyer.address), filled,
                 "Buyer eth balance changed by purchasing token")
    click.echo(f"{buyer.address} successfully purchased token from sale with order id {sale_order_id}")

    # ---- Auction ----
    end_time = block_time() + AUCTION_DURATION
    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "createOrderForAuction", token_id, AUCTION_AMOUNT, AUCTION_PRICE, end_time,
         what="Auction order", gas_price=gas_price)
    expect_equal(before - token_balance(sticker, seller.address, token_id), AUCTION_AMOUNT,
                 "Seller token balance changed placing auction order")
    auction_order_id = last_open_order(pasar)[0]
    click.echo(
        f"{seller.address} successfully placed token for auction with order id {auction_order_id}"
    )

    buyer_eth = eth_balance(buyer.address)
    result = send(pasar, buyer, "bidForOrder", auction_order_id, value=BID1_PRICE,
                  what="First bid", gas_price=gas_price)
    expect_equal(buyer_eth - gas_fee(result) - eth_balance(buyer.address), BID1_PRICE,
                 "Buyer eth balance changed by first bid on token")
    click.echo(
        f"{buyer.address} successfully placed first bid on token for auction "
        f"with order id {auction_order_id}"
    )

    buyer_eth = eth_balance(buyer.address)
    bidder_eth = eth_balance(bidder.address)
    result = send(pasar, bidder, "bidForOrder", auction_order_id, value=BID2_PRICE,
                  what="Second bid", gas_price=gas_price)
    expect_equal(eth_balance(buyer.address) - buyer_eth, BID1_PRICE,
                 "Buyer eth balance returned by second bid on token")
    expect_equal(bidder_eth - gas_fee(result) - eth_balance(bidder.address), BID2_PRICE,
                 "Bidder eth balance changed by second bid on token")
    click.echo(
        f"{bidder.address} successfully placed second bid on token for auction "
        f"with order id {auction_order_id}"
    )

    wait_for_auction(auction_wait)

    # anyone may settle an ended auction; the buyer does it here
    creator_eth = eth_balance(creator.address)
    seller_eth = eth_balance(seller.address)
    bidder_tokens = token_balance(sticker, bidder.address, token_id)
    send(pasar, buyer, "settleAuctionOrder", auction_order_id,
         what="Settle auction order", gas_price=gas_price)
    order = pasar.call("getOrderById", auction_order_id)
    filled, royalty = int(order[ORDER_FILLED]), int(order[ORDER_ROYALTY])
    expect_equal(eth_balance(creator.address) - creator_eth, royalty,
                 "Creator eth balance changed by auction royalty")
    expect_equal(eth_balance(seller.address) - seller_eth, filled - royalty,
                 "Seller eth balance changed by auction earning")
    expect_equal(token_balance(sticker, bidder.address, token_id) - bidder_tokens, AUCTION_AMOUNT,
                 "Bidder token balance changed by winning auction token")
    click.echo(
        f"{bidder.address} successfully won token from auction with order id {auction_order_id}"
    )

    # ---- Change price, then cancel ----
    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "createOrderForSale", token_id, ORDER_AMOUNT, ORDER_PRICE_1,
         what="Test order", gas_price=gas_price)
    expect_equal(before - token_balance(sticker, seller.address, token_id), ORDER_AMOUNT,
                 "Seller token balance changed placing test order")
    order_id = last_open_order(pasar)[0]
    click.echo(f"{seller.address} successfully placed token order for test with order id {order_id}")

    expect_equal(int(pasar.call("getOrderById", order_id)[ORDER_PRICE]), ORDER_PRICE_1,
                 "Test order price before change")
    send(pasar, seller, "changeOrderPrice", order_id, ORDER_PRICE_2,
         what="Test change price", gas_price=gas_price)
    expect_equal(int(pasar.call("getOrderById", order_id)[ORDER_PRICE]), ORDER_PRICE_2,
                 "Test order price after change")
    click.echo(f"{seller.address} successfully changed order price with order id {order_id}")

    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "cancelOrder", order_id, what="Test cancel order", gas_price=gas_price)
    expect_equal(token_balance(sticker, seller.address, token_id) - before, ORDER_AMOUNT,
                 "Seller token balance changed canceling test order")
    expect_equal(int(pasar.call("getOrderById", order_id)[ORDER_STATE]), ORDER_CANCELED,
                 "Order state after getting canceled")
    click.echo(f"{seller.address} successfully canceled order with order id {order_id}")

    return True
