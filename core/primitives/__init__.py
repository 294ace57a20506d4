"""
TSC Core Primitives
=====================
Shared, engine-agnostic building blocks:

- Pure Python (no Django dependency)
- Deterministic (same input → same output)

Primitives:
    money — Decimal money and percent coercion, cent rounding
"""

from core.primitives.money import (
    CENT,
    HUNDRED,
    ZERO,
    money_sum,
    percent_of,
    to_money,
    to_percent,
)

__all__ = [
    "CENT",
    "HUNDRED",
    "ZERO",
    "money_sum",
    "percent_of",
    "to_money",
    "to_percent",
]
