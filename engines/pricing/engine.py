"""
TSC Pricing Engine — Cart Recompute
=====================================
Pure function from (cart lines, promotion rules, cart discount) to
priced lines and totals.

Rules (NON-NEGOTIABLE):
- Same inputs → same outputs. No clock, no config, no I/O.
- Promo discounts are recomputed from zero on every call, so feeding
  priced lines back in yields the same totals.
- Rules stack in creation order; no rule disables another.
- A line subtotal never goes below zero.

Variant evaluation happens in exactly one place: VARIANT_EVALUATORS.
Adding a variant means adding its dataclass to
engines.promotion.rules and its evaluator here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from core.errors import RuleEvaluationError, ValidationError
from core.primitives.money import ZERO, money_sum, percent_of, to_money, to_percent
from engines.promotion.rules import (
    FixedPrice,
    NxM,
    Percentage,
    PromotionRule,
    ordered,
)

logger = logging.getLogger("tsc.pricing")


# ══════════════════════════════════════════════════════════════
# CART LINE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartLine:
    """
    One product on the cart.

    promo_discount and promo_label are outputs of recompute_cart;
    whatever the caller passes in is discarded on the next recompute.
    """

    product_id: str
    unit_price: Decimal
    quantity: int = 1
    manual_discount_percent: Decimal = Decimal(0)
    promo_discount: Decimal = ZERO
    promo_label: Optional[str] = None
    name: str = ""

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError("product_id must be non-empty.")
        if (
            not isinstance(self.quantity, int)
            or isinstance(self.quantity, bool)
            or self.quantity < 1
        ):
            raise ValidationError(
                f"quantity must be an integer >= 1, got {self.quantity!r}."
            )
        price = to_money(self.unit_price, field="unit_price")
        if price < 0:
            raise ValidationError("unit_price must be non-negative.")
        promo = to_money(self.promo_discount, field="promo_discount")
        if promo < 0:
            raise ValidationError("promo_discount must be non-negative.")
        object.__setattr__(self, "unit_price", price)
        object.__setattr__(self, "promo_discount", promo)
        object.__setattr__(
            self, "manual_discount_percent",
            to_percent(self.manual_discount_percent, field="manual_discount_percent"),
        )

    @property
    def gross(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def manual_discount_amount(self) -> Decimal:
        return percent_of(self.gross, self.manual_discount_percent)

    @property
    def subtotal(self) -> Decimal:
        return max(
            ZERO, self.gross - self.manual_discount_amount - self.promo_discount,
        )


# ══════════════════════════════════════════════════════════════
# CART TOTALS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartTotals:
    """Priced lines and cart-level figures."""

    lines: Tuple[CartLine, ...]
    gross: Decimal
    manual_discount: Decimal
    promo_discount: Decimal
    subtotal: Decimal
    cart_discount_percent: Decimal
    global_discount_amount: Decimal
    total: Decimal
    applied_rule_ids: Tuple[str, ...] = ()

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def line_for(self, product_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None


# ══════════════════════════════════════════════════════════════
# VARIANT EVALUATORS
# ══════════════════════════════════════════════════════════════
# Each evaluator receives the lines and the indexes of the lines the
# rule covers, and returns {line_index: discount_to_add}.

Evaluator = Callable[[object, Sequence[CartLine], List[int]], Dict[int, Decimal]]


def _evaluate_percentage(
    variant: Percentage, lines: Sequence[CartLine], eligible: List[int],
) -> Dict[int, Decimal]:
    return {
        idx: percent_of(lines[idx].gross, variant.discount_percent)
        for idx in eligible
    }


def _evaluate_nxm(
    variant: NxM, lines: Sequence[CartLine], eligible: List[int],
) -> Dict[int, Decimal]:
    units: List[Tuple[Decimal, int]] = []
    for idx in eligible:
        units.extend((lines[idx].unit_price, idx) for _ in range(lines[idx].quantity))

    if len(units) < variant.buy_qty:
        return {}

    sets = len(units) // variant.buy_qty
    free_count = sets * variant.free_per_set

    # Cheapest units go free. Stable sort: equal prices keep line order.
    units.sort(key=lambda unit: unit[0])

    discounts: Dict[int, Decimal] = {}
    for price, idx in units[:free_count]:
        discounts[idx] = discounts.get(idx, ZERO) + price
    return discounts


def _evaluate_fixed_price(
    variant: FixedPrice, lines: Sequence[CartLine], eligible: List[int],
) -> Dict[int, Decimal]:
    # Combo semantics (partial matches, stacking) are not settled yet;
    # the rule loads and validates but grants nothing.
    return {}


VARIANT_EVALUATORS: Dict[type, Evaluator] = {
    Percentage: _evaluate_percentage,
    NxM: _evaluate_nxm,
    FixedPrice: _evaluate_fixed_price,
}


def evaluate_rule(
    rule: PromotionRule, lines: Sequence[CartLine], eligible: List[int],
) -> Dict[int, Decimal]:
    evaluator = VARIANT_EVALUATORS.get(type(rule.variant))
    if evaluator is None:
        raise RuleEvaluationError(
            rule.rule_id,
            f"no evaluator for variant {type(rule.variant).__name__}.",
        )
    return evaluator(rule.variant, lines, eligible)


# ══════════════════════════════════════════════════════════════
# RECOMPUTE
# ══════════════════════════════════════════════════════════════

def _rule_applies(
    rule: PromotionRule,
    at: datetime,
    payment_method: Optional[str],
    apply_affinity_without_payment: bool,
) -> bool:
    if not rule.is_live_at(at):
        return False
    if rule.payment_method is None:
        return True
    if payment_method is None:
        return apply_affinity_without_payment
    return rule.matches_payment(payment_method)


def recompute_cart(
    lines: Iterable[CartLine],
    active_rules: Iterable[PromotionRule],
    cart_discount_percent: Decimal | int | str = 0,
    *,
    at: datetime,
    payment_method: Optional[str] = None,
    apply_affinity_without_payment: bool = False,
) -> CartTotals:
    """
    Price a cart.

    Args:
        lines:                 Cart lines; incoming promo fields are ignored.
        active_rules:          Rule snapshot; not mutated.
        cart_discount_percent: Global manual discount, 0–100.
        at:                    Store-local evaluation instant for rule
                               windows (see core.time.local_moment).
        payment_method:        Chosen (or assumed) method code, for
                               affinity rules.
        apply_affinity_without_payment:
                               Apply affinity rules when no method is
                               known yet.
    """
    cart_percent = to_percent(cart_discount_percent, field="cart_discount_percent")
    base = [
        replace(line, promo_discount=ZERO, promo_label=None) for line in lines
    ]

    promo = [ZERO] * len(base)
    labels: List[Optional[str]] = [None] * len(base)
    applied: List[str] = []

    for rule in ordered(active_rules):
        if not _rule_applies(rule, at, payment_method, apply_affinity_without_payment):
            continue
        eligible = [
            idx for idx, line in enumerate(base) if rule.covers(line.product_id)
        ]
        if not eligible:
            continue
        granted = evaluate_rule(rule, base, eligible)
        for idx, amount in granted.items():
            if amount <= 0:
                continue
            promo[idx] += amount
            labels[idx] = rule.name
        if any(amount > 0 for amount in granted.values()):
            applied.append(rule.rule_id)

    priced = tuple(
        replace(line, promo_discount=promo[idx], promo_label=labels[idx])
        for idx, line in enumerate(base)
    )

    subtotal = money_sum(line.subtotal for line in priced)
    global_discount = percent_of(subtotal, cart_percent)
    totals = CartTotals(
        lines=priced,
        gross=money_sum(to_money(line.gross) for line in priced),
        manual_discount=money_sum(line.manual_discount_amount for line in priced),
        promo_discount=money_sum(line.promo_discount for line in priced),
        subtotal=subtotal,
        cart_discount_percent=cart_percent,
        global_discount_amount=global_discount,
        total=subtotal - global_discount,
        applied_rule_ids=tuple(applied),
    )
    logger.debug(
        f"Recomputed cart: {len(priced)} lines, subtotal={subtotal}, "
        f"total={totals.total}, rules={list(applied)}"
    )
    return totals
