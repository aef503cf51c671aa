"""Helpers for converting between decimal amounts and integer cents."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """Convert a decimal currency amount into integer cents."""

    return int((amount * Decimal("100")).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / Decimal("100")).quantize(CENT)


def format_amount(amount: Decimal) -> str:
    """Render an amount with exactly two decimal places."""

    return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))
