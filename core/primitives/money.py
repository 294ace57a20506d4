"""
TSC Money Primitive
=====================
All monetary values in the settlement core are Decimal, quantized to
two places with ROUND_HALF_UP. No floats ever.

Percent values are Decimal in [0, 100].
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

from core.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal(100)

MoneyInput = Union[Decimal, int, str]


def to_money(value: MoneyInput, *, field: str = "amount") -> Decimal:
    """
    Coerce to a 2-place Decimal.

    Floats are refused: they cannot represent cents exactly.
    """
    if isinstance(value, float):
        raise ValidationError(
            f"{field} must be Decimal, int or str, got float. "
            f"Use Decimal('{value}')."
        )
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be numeric, got bool.")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} is not a valid amount: {value!r}.") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}.")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_percent(value: MoneyInput, *, field: str = "percent") -> Decimal:
    """Coerce to Decimal and enforce 0 <= value <= 100."""
    if isinstance(value, (float, bool)):
        raise ValidationError(f"{field} must be Decimal, int or str.")
    try:
        percent = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} is not a valid percent: {value!r}.") from exc
    if not percent.is_finite() or percent < 0 or percent > HUNDRED:
        raise ValidationError(f"{field} must be between 0 and 100, got {value}.")
    return percent


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """amount × percent / 100, rounded to cents."""
    return (amount * percent / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)
