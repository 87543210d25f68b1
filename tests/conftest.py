"""
Shared fixtures: a scripted JSON-RPC node and an in-memory chain.

``fake_rpc`` replaces the HTTP layer (``feedsnft.chain.rpc._rpc_call``)
with canned responses.  ``chain`` replaces balances, block time, sleeping
and contract handles used by the scenario harnesses with Python objects
that mimic the Feeds contracts closely enough to run whole flows offline.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Optional
from unittest.mock import patch

import pytest
from eth_account import Account

from feedsnft import config


# ============ Scripted RPC ============


class FakeRpc:
    """Answers JSON-RPC methods from a table of values or callables."""

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {}
        self.calls: list[tuple[str, list]] = []

    def __call__(self, method: str, params: list, rpc_url: Optional[str] = None) -> Any:
        self.calls.append((method, params))
        if method not in self.responses:
            raise AssertionError(f"unexpected RPC call {method}")
        response = self.responses[method]
        return response(params) if callable(response) else response

    def methods(self) -> list[str]:
        return [m for m, _ in self.calls]

    def params(self, method: str) -> list:
        return [p for m, p in self.calls if m == method]


@pytest.fixture()
def fake_rpc():
    rpc = FakeRpc()
    with patch("feedsnft.chain.rpc._rpc_call", rpc):
        yield rpc


# ============ In-memory chain ============


class Revert(Exception):
    """A fake contract rejected the call; the transaction gets status 0."""


def _a(address: str) -> str:
    return address.lower()


class FakeChain:
    GAS_USED = 50_000
    GAS_PRICE = 1_000_000_000

    def __init__(self) -> None:
        self.eth: defaultdict[str, int] = defaultdict(int)
        self.timestamp = 1_700_000_000
        self.contracts: dict[str, "FakeContract"] = {}
        self.tx_count = 0
        self._next_address = 0x1000
        self.Contract = _ContractFactory(self)

    # rpc module surface used by the harnesses
    def get_balance(self, address: str, rpc_url: Optional[str] = None) -> int:
        return self.eth[_a(address)]

    def get_transaction_fee(self, tx_hash: str, gas_used: int, rpc_url: Optional[str] = None) -> int:
        return gas_used * self.GAS_PRICE

    def get_block_timestamp(self, block: str = "latest", rpc_url: Optional[str] = None) -> int:
        return self.timestamp

    def sleep(self, seconds: float) -> None:
        self.timestamp += int(seconds)

    def fund(self, *accounts: Any, amount: int = 10**21) -> None:
        for account in accounts:
            self.eth[_a(account.address)] += amount

    def new_address(self) -> str:
        self._next_address += 1
        return f"0x{self._next_address:040x}"

    def register(self, contract: "FakeContract") -> "FakeContract":
        self.contracts[_a(contract.address)] = contract
        return contract

    def mine(self, account: Any, value: int, status: int = 1) -> dict:
        """Charge value and gas to ``account`` and return a result dict."""
        self.tx_count += 1
        self.eth[_a(account.address)] -= self.GAS_USED * self.GAS_PRICE
        if status == 1:
            self.eth[_a(account.address)] -= value
        return {
            "tx_hash": f"0x{self.tx_count:064x}",
            "receipt": {},
            "status": status,
            "gas_used": self.GAS_USED,
            "contract_address": None,
        }


class _ContractFactory:
    """Stands in for the Contract class: binding and deploying."""

    def __init__(self, chain: FakeChain) -> None:
        self.chain = chain

    def __call__(self, abi: list, address: str, rpc_url: Optional[str] = None) -> "FakeContract":
        return self.chain.contracts[_a(address)]

    def deploy(
        self,
        account: Any,
        abi: list,
        bytecode: str,
        constructor_args: Any = (),
        gas_price: Optional[int] = None,
        rpc_url: Optional[str] = None,
    ) -> tuple["FakeContract", dict]:
        # bytecode carries the contract name in these tests
        cls = FAKE_CONTRACTS[bytecode]
        contract = cls(self.chain, self.chain.new_address(), abi=abi)
        contract.on_deploy(_a(account.address), *constructor_args)
        self.chain.register(contract)
        result = self.chain.mine(account, 0)
        result["contract_address"] = contract.address
        return contract, result


class FakeContract:
    """Dispatches call() to view_<fn> and transact() to tx_<fn>."""

    rpc_url = None

    def __init__(self, chain: FakeChain, address: str, abi: Optional[list] = None) -> None:
        self.chain = chain
        self.address = address
        self.abi = abi or []
        self.initialized = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"

    def on_deploy(self, deployer: str, *args: Any) -> None:
        pass

    def at(self, address: str) -> "FakeContract":
        return self.chain.register(type(self)(self.chain, address, abi=self.abi))

    def call(self, function_name: str, *args: Any) -> Any:
        return getattr(self, f"view_{function_name}")(*args)

    def transact(
        self,
        account: Any,
        function_name: str,
        *args: Any,
        value: int = 0,
        gas_price: Optional[int] = None,
        gas: Optional[int] = None,
    ) -> dict:
        handler: Callable = getattr(self, f"tx_{function_name}")
        try:
            handler(_a(account.address), *args, value=value)
        except Revert:
            return self.chain.mine(account, value, status=0)
        return self.chain.mine(account, value)

    def pay(self, to: str, amount: int) -> None:
        self.chain.eth[_a(self.address)] -= amount
        self.chain.eth[_a(to)] += amount

    def view_initialized(self) -> bool:
        return self.initialized

    def view_getVersion(self) -> str:
        return "v0.1"

    def view_getMagic(self) -> str:
        return "20210801"


class FakeProxy(FakeContract):
    def on_deploy(self, deployer: str, logic: str = "") -> None:
        self.logic = logic


class FakeLibrary(FakeContract):
    pass


class FakeSticker(FakeContract):
    ROYALTY_BASE = 1_000_000

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.balances: defaultdict[tuple[str, int], int] = defaultdict(int)
        self.approvals: set[tuple[str, str]] = set()
        self.royalty: dict[int, tuple[str, int]] = {}
        self.supply = 0

    def mint_to(self, owner: str, token_id: int, amount: int,
                creator: Optional[str] = None, royalty: int = config.STICKER_ROYALTY) -> None:
        self.balances[(_a(owner), token_id)] += amount
        self.royalty[token_id] = (_a(creator or owner), royalty)
        self.supply += 1

    def move(self, operator: str, frm: str, to: str, token_id: int, amount: int) -> None:
        frm, to = _a(frm), _a(to)
        if operator != frm and (frm, operator) not in self.approvals:
            raise Revert("not approved")
        if self.balances[(frm, token_id)] < amount:
            raise Revert("insufficient balance")
        self.balances[(frm, token_id)] -= amount
        self.balances[(to, token_id)] += amount

    def royalty_of(self, token_id: int, price: int) -> tuple[str, int]:
        owner, rate = self.royalty[token_id]
        return owner, price * rate // self.ROYALTY_BASE

    def view_balanceOf(self, owner: str, token_id: int) -> int:
        return self.balances[(_a(owner), token_id)]

    def view_isApprovedForAll(self, owner: str, operator: str) -> bool:
        return (_a(owner), _a(operator)) in self.approvals

    def view_totalSupply(self) -> int:
        return self.supply

    def tx_initialize(self, sender: str, value: int = 0) -> None:
        self.initialized = True

    def tx_mint(self, sender: str, token_id: int, supply: int, uri: str, royalty: int,
                did_uri: Optional[str] = None, value: int = 0) -> None:
        if (sender, token_id) in self.balances and self.balances[(sender, token_id)]:
            raise Revert("token exists")
        self.mint_to(sender, token_id, supply, royalty=royalty)

    def tx_safeTransferFrom(self, sender: str, frm: str, to: str, token_id: int, amount: int,
                            value: int = 0) -> None:
        self.move(sender, frm, to, token_id, amount)

    def tx_setApprovalForAll(self, sender: str, operator: str, approved: bool, value: int = 0) -> None:
        if approved:
            self.approvals.add((sender, _a(operator)))
        else:
            self.approvals.discard((sender, _a(operator)))

    def tx_burn(self, sender: str, token_id: int, amount: int, value: int = 0) -> None:
        self.move(sender, sender, "0x" + "0" * 40, token_id, amount)

    def tx_burnFrom(self, sender: str, owner: str, token_id: int, amount: int, value: int = 0) -> None:
        self.move(sender, owner, "0x" + "0" * 40, token_id, amount)


class FakeERC20(FakeContract):
    INITIAL_SUPPLY = 10**27

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.balances: defaultdict[str, int] = defaultdict(int)
        self.allowances: defaultdict[tuple[str, str], int] = defaultdict(int)

    def on_deploy(self, deployer: str, *args: Any) -> None:
        self.balances[deployer] = self.INITIAL_SUPPLY

    def move(self, frm: str, to: str, amount: int) -> None:
        frm, to = _a(frm), _a(to)
        if self.balances[frm] < amount:
            raise Revert("insufficient erc20 balance")
        self.balances[frm] -= amount
        self.balances[to] += amount

    def pull(self, spender: str, frm: str, amount: int) -> None:
        """transferFrom(frm, spender, amount) as called by ``spender``."""
        key = (_a(frm), _a(spender))
        if self.allowances[key] < amount:
            raise Revert("insufficient allowance")
        self.allowances[key] -= amount
        self.move(frm, spender, amount)

    def view_balanceOf(self, owner: str) -> int:
        return self.balances[_a(owner)]

    def tx_approve(self, sender: str, spender: str, amount: int, value: int = 0) -> None:
        self.allowances[(sender, _a(spender))] = amount

    def tx_transfer(self, sender: str, to: str, amount: int, value: int = 0) -> None:
        self.move(sender, to, amount)


class _FakeMarket(FakeContract):
    OPEN, FILLED, CANCELED = 1, 2, 3
    SALE, AUCTION = 1, 2
    FEE_BASE = 1_000_000

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.token: Optional[FakeSticker] = None
        self.library = ""
        self.platform = ("0x" + "0" * 40, 0)
        self.orders: list[dict] = []
        self.open_ids: list[int] = []
        self.buyers: set[str] = set()
        self.sellers: set[str] = set()

    def tx_initialize(self, sender: str, token: str, value: int = 0) -> None:
        self.token = self.chain.contracts[_a(token)]
        self.initialized = True

    def tx_setLibraryLogicContract(self, sender: str, library: str, value: int = 0) -> None:
        self.library = library

    def tx_setPlatformFee(self, sender: str, platform: str, rate: int, value: int = 0) -> None:
        self.platform = (platform, rate)

    def view_getTokenAddress(self) -> str:
        return self.token.address

    def view_getLibraryLogicContract(self) -> str:
        return self.library

    def view_getPlatformFee(self) -> dict:
        return {"_platformAddress": self.platform[0], "_platformFeeRate": self.platform[1]}

    def view_getOpenOrderCount(self) -> int:
        return len(self.open_ids)

    def view_getOrderCount(self) -> int:
        return len(self.orders)

    def view_getBuyerCount(self) -> int:
        return len(self.buyers)

    def view_getSellerCount(self) -> int:
        return len(self.sellers)

    def new_order(self, seller: str, order_type: int, token_id: int, amount: int,
                  price: int, end_time: int = 0, **extra: Any) -> dict:
        self.token.move(_a(self.address), seller, self.address, token_id, amount)
        order = {
            "orderId": len(self.orders),
            "orderType": order_type,
            "orderState": self.OPEN,
            "tokenId": token_id,
            "amount": amount,
            "price": price,
            "endTime": end_time,
            "sellerAddr": seller,
            "buyerAddr": "",
            "bids": 0,
            "lastBidder": "",
            "lastBid": 0,
            "filled": 0,
            "royaltyOwner": "",
            "royaltyFee": 0,
            "platformFee": 0,
        }
        order.update(extra)
        self.orders.append(order)
        self.open_ids.append(order["orderId"])
        self.sellers.add(seller)
        return order

    def open_order(self, order_id: int) -> dict:
        order = self.orders[order_id]
        if order["orderState"] != self.OPEN:
            raise Revert("order not open")
        return order

    def close(self, order: dict, state: int) -> None:
        order["orderState"] = state
        self.open_ids.remove(order["orderId"])

    def tx_changeOrderPrice(self, sender: str, order_id: int, price: int, value: int = 0) -> None:
        order = self.open_order(order_id)
        if order["sellerAddr"] != sender:
            raise Revert("not seller")
        order["price"] = price

    def tx_cancelOrder(self, sender: str, order_id: int, value: int = 0) -> None:
        order = self.open_order(order_id)
        if order["sellerAddr"] != sender:
            raise Revert("not seller")
        amount = order.get("amountLeft", order["amount"])
        self.token.move(_a(self.address), self.address, sender, order["tokenId"], amount)
        self.close(order, self.CANCELED)


class FakePasar(_FakeMarket):
    """v1 marketplace: native coin payments, positional order records."""

    FIELDS = (
        "orderId", "orderType", "orderState", "tokenId", "amount", "price", "endTime",
        "sellerAddr", "buyerAddr", "bids", "lastBidder", "lastBid", "filled",
        "royaltyOwner", "royaltyFee", "createTime", "updateTime",
    )

    def record(self, order: dict) -> tuple:
        return tuple(order.get(f, 0) for f in self.FIELDS)

    def view_getOpenOrderByIndex(self, index: int) -> tuple:
        return self.record(self.orders[self.open_ids[index]])

    def view_getOrderById(self, order_id: int) -> tuple:
        return self.record(self.orders[order_id])

    def settle(self, order: dict, buyer: str, price: int) -> None:
        creator, royalty = self.token.royalty_of(order["tokenId"], price)
        self.pay(creator, royalty)
        self.pay(order["sellerAddr"], price - royalty)
        self.token.move(_a(self.address), self.address, buyer, order["tokenId"], order["amount"])
        order.update(buyerAddr=buyer, filled=price, royaltyOwner=creator, royaltyFee=royalty)
        self.buyers.add(buyer)
        self.close(order, self.FILLED)

    def tx_createOrderForSale(self, sender: str, token_id: int, amount: int, price: int,
                              value: int = 0) -> None:
        self.new_order(sender, self.SALE, token_id, amount, price)

    def tx_createOrderForAuction(self, sender: str, token_id: int, amount: int, min_price: int,
                                 end_time: int, value: int = 0) -> None:
        self.new_order(sender, self.AUCTION, token_id, amount, min_price, end_time)

    def tx_buyOrder(self, sender: str, order_id: int, value: int = 0) -> None:
        order = self.open_order(order_id)
        if order["orderType"] != self.SALE or value != order["price"]:
            raise Revert("wrong payment")
        self.chain.eth[_a(self.address)] += value
        self.settle(order, sender, value)

    def tx_bidForOrder(self, sender: str, order_id: int, value: int = 0) -> None:
        order = self.open_order(order_id)
        if value < order["price"] or value <= order["lastBid"]:
            raise Revert("bid too low")
        self.chain.eth[_a(self.address)] += value
        if order["lastBidder"]:
            self.pay(order["lastBidder"], order["lastBid"])
        order.update(lastBidder=sender, lastBid=value, bids=order["bids"] + 1)

    def tx_settleAuctionOrder(self, sender: str, order_id: int, value: int = 0) -> None:
        order = self.open_order(order_id)
        if self.chain.timestamp < order["endTime"]:
            raise Revert("auction not ended")
        self.settle(order, order["lastBidder"], order["lastBid"])


class FakePasarV2(_FakeMarket):
    """v2 marketplace: ERC-20 payments, DID URIs, platform fee, splittable orders."""

    SPLITTABLE = 3

    def erc20(self, address: str) -> FakeERC20:
        return self.chain.contracts[_a(address)]

    def view_getOpenOrderByIndex(self, index: int) -> dict:
        return dict(self.orders[self.open_ids[index]])

    def view_getOrderById(self, order_id: int) -> dict:
        return dict(self.orders[order_id])

    def view_getOrderExtraById(self, order_id: int) -> dict:
        order = self.orders[order_id]
        return {
            "platformFee": order["platformFee"],
            "sellerUri": order["sellerUri"],
            "buyerUri": order["buyerUri"],
            "partialFills": list(order["partialFills"]),
            "priceLeft": order["priceLeft"],
            "amountLeft": order["amountLeft"],
        }

    def distribute(self, order: dict, price: int) -> tuple[int, int]:
        erc20 = self.erc20(order["quoteToken"])
        creator, royalty = self.token.royalty_of(order["tokenId"], price)
        platform_fee = price * self.platform[1] // self.FEE_BASE
        erc20.move(self.address, creator, royalty)
        erc20.move(self.address, self.platform[0], platform_fee)
        erc20.move(self.address, order["sellerAddr"], price - royalty - platform_fee)
        return royalty, platform_fee

    def new_v2_order(self, seller: str, order_type: int, token_id: int, amount: int,
                     quote_token: str, price: int, did_uri: str, end_time: int = 0) -> dict:
        return self.new_order(
            seller, order_type, token_id, amount, price, end_time,
            quoteToken=quote_token, sellerUri=did_uri, buyerUri="", partialFills=[],
            priceLeft=price, amountLeft=amount,
        )

    def fill(self, order: dict, buyer: str, price: int, buyer_uri: str) -> None:
        royalty, platform_fee = self.distribute(order, price)
        self.token.move(_a(self.address), self.address, buyer, order["tokenId"], order["amount"])
        order.update(buyerAddr=buyer, buyerUri=buyer_uri, filled=price, royaltyFee=royalty,
                     platformFee=platform_fee, priceLeft=0, amountLeft=0)
        self.buyers.add(buyer)
        self.close(order, self.FILLED)

    def tx_createOrderForSale(self, sender: str, token_id: int, amount: int, quote_token: str,
                              price: int, did_uri: str, value: int = 0) -> None:
        self.new_v2_order(sender, self.SALE, token_id, amount, quote_token, price, did_uri)

    def tx_createOrderForAuction(self, sender: str, token_id: int, amount: int, quote_token: str,
                                 min_price: int, end_time: int, did_uri: str, value: int = 0) -> None:
        self.new_v2_order(sender, self.AUCTION, token_id, amount, quote_token, min_price,
                          did_uri, end_time)

    def tx_createSplittableOrder(self, sender: str, token_id: int, amount: int, quote_token: str,
                                 price: int, did_uri: str, value: int = 0) -> None:
        self.new_v2_order(sender, self.SPLITTABLE, token_id, amount, quote_token, price, did_uri)

    def tx_buyOrder(self, sender: str, order_id: int, did_uri: str, value: int = 0) -> None:
        order = self.open_order(order_id)
        if order["orderType"] != self.SALE:
            raise Revert("not a sale order")
        self.erc20(order["quoteToken"]).pull(self.address, sender, order["price"])
        self.fill(order, sender, order["price"], did_uri)

    def tx_bidForOrder(self, sender: str, order_id: int, price: int, did_uri: str,
                       value: int = 0) -> None:
        order = self.open_order(order_id)
        if price < order["price"] or price <= order["lastBid"]:
            raise Revert("bid too low")
        erc20 = self.erc20(order["quoteToken"])
        erc20.pull(self.address, sender, price)
        if order["lastBidder"]:
            erc20.move(self.address, order["lastBidder"], order["lastBid"])
        order.update(lastBidder=sender, lastBid=price, lastBidUri=did_uri, bids=order["bids"] + 1)

    def tx_settleAuctionOrder(self, sender: str, order_id: int, value: int = 0) -> None:
        order = self.open_order(order_id)
        if self.chain.timestamp < order["endTime"]:
            raise Revert("auction not ended")
        self.fill(order, order["lastBidder"], order["lastBid"], order["lastBidUri"])

    def tx_buySplittableOrder(self, sender: str, order_id: int, amount: int, did_uri: str,
                              value: int = 0) -> None:
        order = self.open_order(order_id)
        if order["orderType"] != self.SPLITTABLE or amount > order["amountLeft"]:
            raise Revert("bad partial amount")
        price = order["priceLeft"] * amount // order["amountLeft"]
        self.erc20(order["quoteToken"]).pull(self.address, sender, price)
        royalty, platform_fee = self.distribute(order, price)
        self.token.move(_a(self.address), self.address, sender, order["tokenId"], amount)
        order["partialFills"].append({
            "value": price,
            "amount": amount,
            "royaltyFee": royalty,
            "platformFee": platform_fee,
            "buyerUri": did_uri,
        })
        order["priceLeft"] -= price
        order["amountLeft"] -= amount
        order["filled"] += price
        self.buyers.add(sender)


class FakeGalleria(FakeContract):
    ACTIVE, REMOVED = 1, 2

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.token: Optional[FakeSticker] = None
        self.platform = "0x" + "0" * 40
        self.min_fee = 0
        self.panels: list[dict] = []
        self.active_ids: list[int] = []

    def tx_initialize(self, sender: str, token: str, platform: str, min_fee: int,
                      value: int = 0) -> None:
        self.token = self.chain.contracts[_a(token)]
        self.platform = platform
        self.min_fee = min_fee
        self.initialized = True

    def tx_setFeeParams(self, sender: str, platform: str, min_fee: int, value: int = 0) -> None:
        self.platform = platform
        self.min_fee = min_fee

    def view_getTokenAddress(self) -> str:
        return self.token.address

    def view_getFeeParams(self) -> dict:
        return {"_platformAddress": self.platform, "_minFee": self.min_fee}

    def view_getActivePanelCount(self) -> int:
        return len(self.active_ids)

    def view_getActivePanelByIndex(self, index: int) -> dict:
        return dict(self.panels[self.active_ids[index]])

    def view_getPanelById(self, panel_id: int) -> dict:
        return dict(self.panels[panel_id])

    def tx_createPanel(self, sender: str, token_id: int, amount: int, did_uri: str,
                       value: int = 0) -> None:
        if value < self.min_fee:
            raise Revert("fee too low")
        self.token.move(_a(self.address), sender, self.address, token_id, amount)
        self.chain.eth[_a(self.platform)] += value
        panel = {
            "panelId": len(self.panels),
            "panelState": self.ACTIVE,
            "userAddr": sender,
            "tokenId": token_id,
            "amount": amount,
            "fee": value,
            "didUri": did_uri,
        }
        self.panels.append(panel)
        self.active_ids.append(panel["panelId"])

    def tx_removePanel(self, sender: str, panel_id: int, value: int = 0) -> None:
        panel = self.panels[panel_id]
        if panel["panelState"] != self.ACTIVE or panel["userAddr"] != sender:
            raise Revert("cannot remove panel")
        self.token.move(_a(self.address), self.address, sender, panel["tokenId"], panel["amount"])
        panel["panelState"] = self.REMOVED
        self.active_ids.remove(panel_id)


FAKE_CONTRACTS: dict[str, type] = {
    config.STICKER: FakeSticker,
    config.PASAR: FakePasar,
    config.PASAR_LIBRARY: FakeLibrary,
    config.PASAR_V2: FakePasarV2,
    config.PASAR_V2_LIBRARY: FakeLibrary,
    config.GALLERIA: FakeGalleria,
    config.PROXY: FakeProxy,
    config.ERC20_TOKEN: FakeERC20,
}


@pytest.fixture()
def chain():
    """In-memory chain wired into the scenario harnesses."""
    fake = FakeChain()
    with patch("feedsnft.scenarios.common.rpc", fake), \
            patch("feedsnft.scenarios.common.Contract", fake.Contract), \
            patch("feedsnft.scenarios.common.time") as fake_time:
        fake_time.sleep.side_effect = fake.sleep
        yield fake


# ============ Accounts ============


class Actors:
    def __init__(self) -> None:
        self.deployer = Account.create()
        self.creator = Account.create()
        self.seller = Account.create()
        self.buyer = Account.create()
        self.bidder = Account.create()

    def all(self) -> tuple:
        return (self.deployer, self.creator, self.seller, self.buyer, self.bidder)


@pytest.fixture()
def actors() -> Actors:
    return Actors()
