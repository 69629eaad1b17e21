"""Decimal helpers for money amounts"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

TWO_PLACES = Decimal("0.01")

# Largest amount (or rate) accepted from a caller. Keeps every product and
# quotient the ledger computes well inside the decimal context's exponent range.
MAX_AMOUNT = Decimal("1e15")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal via str() so floats keep their printed value (0.1 -> 0.1)"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a money amount")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal amount: {value!r}") from e


def is_positive(value: Decimal) -> bool:
    """True for finite amounts strictly above zero (NaN and infinities are rejected)"""
    return value.is_finite() and value > 0


def within_limit(value: Decimal) -> bool:
    """True for finite amounts no larger than MAX_AMOUNT in magnitude"""
    return value.is_finite() and abs(value) <= MAX_AMOUNT


def round_money(amount: Number) -> Decimal:
    """Round to cents for display, half up"""
    return to_decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
