"""
Money helpers shared by the ledger engine and the API layer.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENTS = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without inheriting binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Number) -> Decimal:
    """Round half-up to whole cents."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Number, symbol: str = "") -> str:
    """Format an amount for user-facing messages, e.g. ``₹12.50``."""
    return f"{symbol}{round_money(value):.2f}"