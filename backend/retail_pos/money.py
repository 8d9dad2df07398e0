"""Currency arithmetic helpers.

Amounts are computed as Decimal and stored in records as plain JSON numbers.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation


def to_decimal(value, field: str = "amount") -> Decimal:
    """
    Convert a stored or submitted amount to Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary
    expansion. None counts as zero.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field} must be a number")


def to_number(value: Decimal):
    """Decimal -> int when integral, float otherwise (JSON-safe)."""
    value = to_decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def percent_to_rate(percent) -> Decimal:
    """19 -> Decimal('0.19')."""
    return to_decimal(percent, "taxRate") / Decimal(100)
