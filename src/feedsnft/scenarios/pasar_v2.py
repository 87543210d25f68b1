"""
PasarV2 marketplace scenario, paid in an ERC-20 token.

Same sale / auction / change-price / cancel flow as v1, plus DID URIs on
every order and bid, the platform fee taken on every fill and a splittable
order that is partly bought and then cancelled.  v2 records are read by
field name.
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
    erc20_balance,
    last_open_order,
    require_at_least,
    send,
    token_balance,
    wait_for_auction,
)
from .expect import expect_equal, expect_true
from .pasar import (
    AUCTION_AMOUNT,
    AUCTION_DURATION,
    AUCTION_PRICE,
    BID1_PRICE,
    BID2_PRICE,
    ORDER_AMOUNT,
    ORDER_CANCELED,
    ORDER_PRICE_1,
    ORDER_PRICE_2,
    SALE_AMOUNT,
    SALE_PRICE,
)

ERC20_APPROVE_VALUE = 10**24
SELLER_DID_URI = "https://github.com/elastos-trinity/feeds-nft-contract"
BUYER_DID_URI = "https://github.com/elastos-trinity/pasarV2-contracts"

SPLITTABLE_AMOUNT = 20
SPLITTABLE_PRICE = 9_000_000_000_000_000_000
PARTIAL_AMOUNT = 12
PARTIAL_PRICE = SPLITTABLE_PRICE * PARTIAL_AMOUNT // SPLITTABLE_AMOUNT

# v2 auctions are given extra time past their end before settling
AUCTION_WAIT_V2 = 150


class _Balances:
    """ERC-20 balances of the parties to a fill, snapshotted before it."""

    def __init__(self, erc20: Contract, platform: str, creator: str, seller: str, buyer: str):
        self.erc20 = erc20
        self.addresses = {"platform": platform, "creator": creator, "seller": seller, "buyer": buyer}
        self.before = self.read()

    def read(self) -> dict[str, int]:
        return {k: erc20_balance(self.erc20, a) for k, a in self.addresses.items()}

    def deltas(self) -> dict[str, int]:
        after = self.read()
        return {k: after[k] - self.before[k] for k in after}


def _check_fill(
    deltas: dict[str, int],
    filled: int,
    royalty: int,
    platform_fee: int,
    kind: str,
    payer: str = "buyer",
) -> None:
    expect_equal(deltas["creator"], royalty, f"Creator erc20 balance changed by {kind} royalty")
    expect_equal(deltas["platform"], platform_fee,
                 f"Platform erc20 balance changed by {kind} platform fee")
    expect_equal(deltas["seller"], filled - royalty - platform_fee,
                 f"Seller erc20 balance changed by {kind} earning")
    if payer == "buyer":
        expect_equal(-deltas["buyer"], filled, f"Buyer erc20 balance changed by {kind}")


def check_pasar_v2(
    pasar: Contract,
    sticker_abi: list,
    erc20_abi: list,
    erc20_address: str,
    creator: LocalAccount,
    seller: LocalAccount,
    buyer: LocalAccount,
    bidder: LocalAccount,
    token_id: int = config.DEFAULT_TOKEN_ID,
    gas_price: Optional[int] = None,
    auction_wait: int = AUCTION_WAIT_V2,
    platform_address: str = config.PLATFORM_ADDRESS,
) -> bool:
    """
    Exercise PasarV2 through its proxy with ERC-20 payments.

    The seller must hold at least 31 copies of ``token_id``; buyer and
    bidder need ERC-20 balances covering their purchases and bids.

    Raises:
        ExpectationError: On the first read-back that does not match
    """
    sticker = bind(sticker_abi, pasar.call("getTokenAddress"), pasar)
    erc20 = bind(erc20_abi, erc20_address, pasar)
    click.echo("Creator, seller, buyer and bidder accounts generated")

    require_at_least(
        token_balance(sticker, seller.address, token_id),
        SALE_AMOUNT + AUCTION_AMOUNT + ORDER_AMOUNT + SPLITTABLE_AMOUNT,
        f"Seller token balance of id {token_id} before test",
    )
    require_at_least(erc20_balance(erc20, buyer.address), SALE_PRICE + BID1_PRICE + PARTIAL_PRICE,
                     "Buyer ERC20 balance before test")
    require_at_least(erc20_balance(erc20, bidder.address), BID2_PRICE,
                     "Bidder ERC20 balance before test")
    click.echo("Pre-conditions checked, all accounts have enough balances")

    send(sticker, seller, "setApprovalForAll", pasar.address, True,
         what="Approve token", gas_price=gas_price)
    expect_true(sticker.call("isApprovedForAll", seller.address, pasar.address),
                "Pasar is approved by seller")
    click.echo(f"{seller.address} approved {pasar.address} successfully")

    for payer, label in ((buyer, "erc20BuyerApprove"), (bidder, "erc20BidderApprove")):
        send(erc20, payer, "approve", pasar.address, ERC20_APPROVE_VALUE,
             what=label, gas_price=gas_price)
        click.echo(f"erc20 approve from {payer.address} to {pasar.address} successfully")

    def snapshot() -> _Balances:
        return _Balances(erc20, platform_address, creator.address, seller.address, buyer.address)

    # ---- Fixed-price sale ----
    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "createOrderForSale", token_id, SALE_AMOUNT, erc20_address, SALE_PRICE,
         SELLER_DID_URI, what="Sale order", gas_price=gas_price)
    expect_equal(before - token_balance(sticker, seller.address, token_id), SALE_AMOUNT,
                 "Seller token balance changed placing sale order")
    sale_order_id = last_open_order(pasar)["orderId"]
    click.echo(f"{seller.address} successfully placed token for sale with order id {sale_order_id}")

    balances = snapshot()
    buyer_tokens = token_balance(sticker, buyer.address, token_id)
    send(pasar, buyer, "buyOrder", sale_order_id, BUYER_DID_URI,
         what="Purchase order", gas_price=gas_price)
    order = pasar.call("getOrderById", sale_order_id)
    extra = pasar.call("getOrderExtraById", sale_order_id)
    _check_fill(balances.deltas(), int(order["filled"]), int(order["royaltyFee"]),
                int(extra["platformFee"]), "sale")
    expect_equal(token_balance(sticker, buyer.address, token_id) - buyer_tokens, SALE_AMOUNT,
                 "Buyer token balance changed by purchasing token")
    expect_equal(extra["sellerUri"], SELLER_DID_URI, "Seller DID URI recorded in the order")
    expect_equal(extra["buyerUri"], BUYER_DID_URI, "Buyer DID URI recorded in the order")
    click.echo(f"{buyer.address} successfully purchased token from sale with order id {sale_order_id}")

    # ---- Auction ----
    end_time = block_time() + AUCTION_DURATION
    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "createOrderForAuction", token_id, AUCTION_AMOUNT, erc20_address,
         AUCTION_PRICE, end_time, SELLER_DID_URI, what="Auction order", gas_price=gas_price)
    expect_equal(before - token_balance(sticker, seller.address, token_id), AUCTION_AMOUNT,
                 "Seller token balance changed placing auction order")
    auction_order_id = last_open_order(pasar)["orderId"]
    click.echo(
        f"{seller.address} successfully placed token for auction with order id {auction_order_id}"
    )

    buyer_erc20 = erc20_balance(erc20, buyer.address)
    send(pasar, buyer, "bidForOrder", auction_order_id, BID1_PRICE, BUYER_DID_URI,
         what="First bid", gas_price=gas_price)
    expect_equal(buyer_erc20 - erc20_balance(erc20, buyer.address), BID1_PRICE,
                 "Buyer erc20 balance changed by first bid on token")
    click.echo(
        f"{buyer.address} successfully placed first bid on token for auction "
        f"with order id {auction_order_id}"
    )

    buyer_erc20 = erc20_balance(erc20, buyer.address)
    bidder_erc20 = erc20_balance(erc20, bidder.address)
    send(pasar, bidder, "bidForOrder", auction_order_id, BID2_PRICE, BUYER_DID_URI,
         what="Second bid", gas_price=gas_price)
    expect_equal(erc20_balance(erc20, buyer.address) - buyer_erc20, BID1_PRICE,
                 "Buyer erc20 balance returned by second bid on token")
    expect_equal(bidder_erc20 - erc20_balance(erc20, bidder.address), BID2_PRICE,
                 "Bidder erc20 balance changed by second bid on token")
    click.echo(
        f"{bidder.address} successfully placed second bid on token for auction "
        f"with order id {auction_order_id}"
    )

    wait_for_auction(auction_wait)

    balances = snapshot()
    bidder_tokens = token_balance(sticker, bidder.address, token_id)
    send(pasar, buyer, "settleAuctionOrder", auction_order_id,
         what="Settle auction order", gas_price=gas_price)
    order = pasar.call("getOrderById", auction_order_id)
    extra = pasar.call("getOrderExtraById", auction_order_id)
    _check_fill(balances.deltas(), int(order["filled"]), int(order["royaltyFee"]),
                int(extra["platformFee"]), "auction", payer="bidder")
    expect_equal(token_balance(sticker, bidder.address, token_id) - bidder_tokens, AUCTION_AMOUNT,
                 "Bidder token balance changed by winning auction token")
    expect_equal(extra["sellerUri"], SELLER_DID_URI, "Seller DID URI recorded in the order")
    expect_equal(extra["buyerUri"], BUYER_DID_URI, "Buyer DID URI recorded in the order")
    click.echo(
        f"{bidder.address} successfully won token from auction with order id {auction_order_id}"
    )

    # ---- Change price, then cancel ----
    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "createOrderForSale", token_id, ORDER_AMOUNT, erc20_address,
         ORDER_PRICE_1, SELLER_DID_URI, what="Test order", gas_price=gas_price)
    expect_equal(before - token_balance(sticker, seller.address, token_id), ORDER_AMOUNT,
                 "Seller token balance changed placing test order")
    order_id = last_open_order(pasar)["orderId"]
    click.echo(f"{seller.address} successfully placed token order for test with order id {order_id}")

    expect_equal(int(pasar.call("getOrderById", order_id)["price"]), ORDER_PRICE_1,
                 "Test order price before change")
    send(pasar, seller, "changeOrderPrice", order_id, ORDER_PRICE_2,
         what="Test change price", gas_price=gas_price)
    expect_equal(int(pasar.call("getOrderById", order_id)["price"]), ORDER_PRICE_2,
                 "Test order price after change")
    click.echo(f"{seller.address} successfully changed order price with order id {order_id}")

    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "cancelOrder", order_id, what="Test cancel order", gas_price=gas_price)
    expect_equal(token_balance(sticker, seller.address, token_id) - before, ORDER_AMOUNT,
                 "Seller token balance changed canceling test order")
    expect_equal(int(pasar.call("getOrderById", order_id)["orderState"]), ORDER_CANCELED,
                 "Order state after getting canceled")
    click.echo(f"{seller.address} successfully canceled order with order id {order_id}")

    # ---- Splittable order ----
    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "createSplittableOrder", token_id, SPLITTABLE_AMOUNT, erc20_address,
         SPLITTABLE_PRICE, SELLER_DID_URI, what="Splittable order", gas_price=gas_price)
    expect_equal(before - token_balance(sticker, seller.address, token_id), SPLITTABLE_AMOUNT,
                 "Seller token balance changed placing splittable order")
    split_order_id = last_open_order(pasar)["orderId"]
    click.echo(
        f"{seller.address} successfully placed splittable order with order id {split_order_id}"
    )

    balances = snapshot()
    buyer_tokens = token_balance(sticker, buyer.address, token_id)
    send(pasar, buyer, "buySplittableOrder", split_order_id, PARTIAL_AMOUNT, BUYER_DID_URI,
         what="Partial purchase order", gas_price=gas_price)
    extra = pasar.call("getOrderExtraById", split_order_id)
    fill = extra["partialFills"][-1]
    filled_value, filled_amount = int(fill["value"]), int(fill["amount"])
    _check_fill(balances.deltas(), filled_value, int(fill["royaltyFee"]),
                int(fill["platformFee"]), "partial order")
    expect_equal(filled_value, PARTIAL_PRICE, "Value paid for partial purchase order")
    expect_equal(token_balance(sticker, buyer.address, token_id) - buyer_tokens, filled_amount,
                 "Buyer token balance changed by partial purchase order")
    expect_equal(int(extra["priceLeft"]), SPLITTABLE_PRICE - filled_value,
                 "Order price left after partial purchase order")
    expect_equal(int(extra["amountLeft"]), SPLITTABLE_AMOUNT - filled_amount,
                 "Order amount left after partial purchase order")
    expect_equal(fill["buyerUri"], BUYER_DID_URI, "Buyer DID URI recorded in the partial order")
    click.echo(
        f"{buyer.address} successfully purchased partial order with order id {split_order_id}"
    )

    before = token_balance(sticker, seller.address, token_id)
    send(pasar, seller, "cancelOrder", split_order_id,
         what="Cancel splittable order", gas_price=gas_price)
    returned = token_balance(sticker, seller.address, token_id) - before
    amount_left = int(pasar.call("getOrderExtraById", split_order_id)["amountLeft"])
    expect_equal(returned, amount_left, "Seller token balance changed canceling splittable order")
    expect_equal(int(pasar.call("getOrderById", split_order_id)["orderState"]), ORDER_CANCELED,
                 "Splittable order state after getting canceled")
    click.echo(
        f"{seller.address} successfully canceled splittable order with order id {split_order_id}"
    )

    return True
