"""
Assertions for on-chain scenarios.

Each check names the quantity it verifies so a failed run reports e.g.
``Seller token balance after transfer: expected 25, got 0``.
"""

from __future__ import annotations

from typing import Any, Optional


class ExpectationError(AssertionError):
    """An on-chain read-back did not match the expected value."""

    exit_code = 1


def _norm(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("0x") and len(value) == 42:
        return value.lower()
    return value


def expect_equal(actual: Any, expected: Any, what: str) -> Any:
    """Compare ``actual`` with ``expected``; addresses compare case-insensitively."""
    if _norm(actual) != _norm(expected):
        raise ExpectationError(f"{what}: expected {expected!r}, got {actual!r}")
    return actual


def expect_true(value: Any, what: str) -> None:
    if not value:
        raise ExpectationError(f"{what}: expected true, got {value!r}")


def expect_status(result: Optional[dict], what: str) -> dict:
    """The transaction result must exist and carry receipt status 1."""
    if not result or result.get("status") != 1:
        tx_hash = (result or {}).get("tx_hash", "unknown")
        raise ExpectationError(f"{what} transaction status: failed (tx {tx_hash})")
    return result


def expect_address(address: Optional[str], what: str) -> str:
    if not isinstance(address, str) or len(address) != 42 or not address.startswith("0x"):
        raise ExpectationError(f"{what}: expected a 42 character address, got {address!r}")
    return address
