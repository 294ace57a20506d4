"""
TSC Pricing Engine — Payment Adjustments
==========================================
Surcharge / discount per payment method, applied after the cart total
is known. A card with a 10% surcharge turns a 1000 cart into 1100.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from core.config.rules import ConfigStore, PaymentMethod
from core.errors import ValidationError
from core.primitives.money import money_sum, percent_of, to_money


@dataclass(frozen=True)
class PaymentComponent:
    """One slice of a payment split: method code + amount owed."""

    method_code: str
    amount: Decimal
    reference: Optional[str] = None

    def __post_init__(self):
        if not self.method_code:
            raise ValidationError("method_code must be non-empty.")
        amount = to_money(self.amount)
        if amount <= 0:
            raise ValidationError(
                f"Payment amount must be positive, got {amount}."
            )
        object.__setattr__(self, "amount", amount)


@dataclass(frozen=True)
class PaymentQuote:
    method_code: str
    base_total: Decimal
    surcharge: Decimal
    discount: Decimal

    @property
    def adjustment(self) -> Decimal:
        return self.surcharge - self.discount

    @property
    def final_total(self) -> Decimal:
        return self.base_total + self.adjustment


def quote_payment(total: Decimal, method: PaymentMethod) -> PaymentQuote:
    """Price a whole cart total under one payment method."""
    base = to_money(total, field="total")
    return PaymentQuote(
        method_code=method.code,
        base_total=base,
        surcharge=percent_of(base, method.surcharge_percent),
        discount=percent_of(base, method.discount_percent),
    )


def resolve_method(registry: ConfigStore, code: str) -> PaymentMethod:
    method = registry.get_payment_method(code)
    if method is None:
        raise ValidationError(f"Unknown or inactive payment method '{code}'.")
    return method


def adjustment_for_split(
    components: Iterable[PaymentComponent], registry: ConfigStore,
) -> Decimal:
    """Net surcharge minus discount across a multi-method split."""
    total = []
    for component in components:
        method = resolve_method(registry, component.method_code)
        total.append(
            percent_of(component.amount, method.surcharge_percent)
            - percent_of(component.amount, method.discount_percent)
        )
    return money_sum(total)
