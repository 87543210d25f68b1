"""
Marketplace statistics from event logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .chain.contract import Contract


@dataclass
class FilledTotal:
    count: int = 0
    total_price: int = 0
    total_royalty: int = 0


def filled_total(pasar: Contract, from_block: Any = "earliest", to_block: Any = "latest") -> FilledTotal:
    """Sum ``_price`` and ``_royalty`` over the OrderFilled events in a block range."""
    totals = FilledTotal()
    for event in pasar.events("OrderFilled", from_block or "earliest", to_block or "latest"):
        totals.count += 1
        totals.total_price += int(event["_price"])
        totals.total_royalty += int(event["_royalty"])
    return totals
