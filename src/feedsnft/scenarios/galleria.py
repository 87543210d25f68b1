"""
Galleria scenario: put tokens on show in a paid panel, then take them back.
"""

from __future__ import annotations

from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from .. import config
from ..chain.contract import Contract
from .common import bind, eth_balance, gas_fee, require_at_least, send, token_balance
from .expect import expect_equal, expect_true

SHOW_AMOUNT = 6
CREATOR_DID_URI = "https://github.com/elastos-trinity/pasar-contracts"

PANEL_ACTIVE = 1
PANEL_REMOVED = 2


def check_galleria(
    galleria: Contract,
    sticker_abi: list,
    creator: LocalAccount,
    token_id: int = config.DEFAULT_TOKEN_ID,
    gas_price: Optional[int] = None,
    show_fee: int = config.GALLERIA_MIN_FEE,
    platform_address: str = config.PLATFORM_ADDRESS,
) -> bool:
    """
    Create a panel for ``SHOW_AMOUNT`` copies of ``token_id`` and remove it.

    The panel fee goes to ``platform_address`` in full; removing the panel
    returns the tokens and drops the active panel count by one.

    Raises:
        ExpectationError: On the first read-back that does not match
    """
    sticker = bind(sticker_abi, galleria.call("getTokenAddress"), galleria)
    click.echo("Creator account generated")

    require_at_least(token_balance(sticker, creator.address, token_id), SHOW_AMOUNT,
                     f"Creator token balance of id {token_id} before test")
    require_at_least(eth_balance(creator.address), show_fee + config.GAS_BUFFER,
                     "Creator ETH balance before test")
    click.echo("Pre-conditions checked, account has enough balances")

    send(sticker, creator, "setApprovalForAll", galleria.address, True,
         what="Approve token", gas_price=gas_price)
    expect_true(sticker.call("isApprovedForAll", creator.address, galleria.address),
                "Galleria is approved by creator")
    click.echo(f"{creator.address} approved {galleria.address} successfully")

    # Create panel
    tokens_before = token_balance(sticker, creator.address, token_id)
    platform_before = eth_balance(platform_address)
    creator_eth = eth_balance(creator.address)
    result = send(galleria, creator, "createPanel", token_id, SHOW_AMOUNT, CREATOR_DID_URI,
                  value=show_fee, what="Create panel", gas_price=gas_price)
    fee = gas_fee(result)

    active_count = int(galleria.call("getActivePanelCount"))
    panel = galleria.call("getActivePanelByIndex", active_count - 1)
    panel_id = int(panel["panelId"])
    expect_equal(creator_eth - fee - eth_balance(creator.address), show_fee,
                 "Creator eth balance changed by creating panel")
    expect_equal(eth_balance(platform_address) - platform_before, show_fee,
                 "Platform eth balance changed by panel platform fee")
    expect_equal(tokens_before - token_balance(sticker, creator.address, token_id), SHOW_AMOUNT,
                 "Creator token balance changed by creating panel")
    expect_equal(panel["didUri"], CREATOR_DID_URI, "Creator DID URI recorded in the panel")
    expect_equal(int(panel["panelState"]), PANEL_ACTIVE, "State of active panel")
    click.echo(f"{creator.address} successfully placed token for show with panel id {panel_id}")

    # Remove panel
    tokens_before = token_balance(sticker, creator.address, token_id)
    active_before = int(galleria.call("getActivePanelCount"))
    send(galleria, creator, "removePanel", panel_id, what="Remove panel", gas_price=gas_price)
    expect_equal(token_balance(sticker, creator.address, token_id) - tokens_before, SHOW_AMOUNT,
                 "Creator token balance changed by removing panel")
    expect_equal(active_before - int(galleria.call("getActivePanelCount")), 1,
                 "Active panel count changed by removing panel")
    removed = galleria.call("getPanelById", panel_id)
    expect_equal(int(removed["panelState"]), PANEL_REMOVED, "State of removed panel")
    click.echo(f"{creator.address} successfully removed panel with id {panel_id}")

    return True
