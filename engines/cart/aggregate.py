"""
TSC Cart Engine — Cart Aggregate
==================================
Mutable selling-session object wrapping the pricing engine.

Every mutation recomputes totals before returning, so the cart is
never observed with stale promo discounts. The aggregate reads no
ambient state: currency, assumed payment method and affinity policy
come from the CartConfig it was built with.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from core.config.rules import CartConfig
from core.errors import ValidationError
from core.primitives.money import to_percent
from core.time.clock import Clock, get_default_clock
from core.time.temporal import local_moment
from engines.pricing.engine import CartLine, CartTotals, recompute_cart
from engines.promotion.rules import PromotionRule

logger = logging.getLogger("tsc.cart")


class CartAggregate:
    """
    One selling session: lines, customer, global discount, rule snapshot.

    Usage:
        cart = CartAggregate(config=CartConfig(), rules=book.active_snapshot())
        cart.add_line("P1", Decimal("850"), quantity=2)
        cart.totals.total
    """

    def __init__(
        self,
        *,
        config: Optional[CartConfig] = None,
        rules: Iterable[PromotionRule] = (),
        clock: Optional[Clock] = None,
    ):
        self._config = config or CartConfig()
        self._clock = clock or get_default_clock()
        self._rules: Tuple[PromotionRule, ...] = tuple(rules)
        self._lines: List[CartLine] = []
        self._customer_id: Optional[str] = None
        self._cart_discount_percent = Decimal(0)
        self._payment_method: Optional[str] = None
        self._totals = self._recompute()

    # ── read side ─────────────────────────────────────────────

    @property
    def config(self) -> CartConfig:
        return self._config

    @property
    def totals(self) -> CartTotals:
        return self._totals

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return self._totals.lines

    @property
    def rules(self) -> Tuple[PromotionRule, ...]:
        return self._rules

    @property
    def customer_id(self) -> Optional[str]:
        return self._customer_id

    @property
    def cart_discount_percent(self) -> Decimal:
        return self._cart_discount_percent

    @property
    def payment_method(self) -> Optional[str]:
        """Chosen method, falling back to the configured default."""
        return self._payment_method or self._config.default_payment_method

    @property
    def is_empty(self) -> bool:
        return not self._lines

    # ── mutations ─────────────────────────────────────────────

    def add_line(
        self,
        product_id: str,
        unit_price: Decimal,
        quantity: int = 1,
        *,
        name: str = "",
    ) -> CartTotals:
        """Add a product; an existing product has its quantity increased."""
        idx = self._index_of(product_id)
        if idx is None:
            self._lines.append(
                CartLine(
                    product_id=product_id,
                    unit_price=unit_price,
                    quantity=quantity,
                    name=name,
                )
            )
        else:
            if (
                not isinstance(quantity, int)
                or isinstance(quantity, bool)
                or quantity < 1
            ):
                raise ValidationError(
                    f"quantity must be an integer >= 1, got {quantity!r}."
                )
            line = self._lines[idx]
            self._lines[idx] = replace(line, quantity=line.quantity + quantity)
        logger.debug(f"Cart add {product_id} x{quantity}")
        return self._refresh()

    def remove_line(self, product_id: str) -> CartTotals:
        idx = self._require_index(product_id)
        del self._lines[idx]
        return self._refresh()

    def set_quantity(self, product_id: str, quantity: int) -> CartTotals:
        """Set an absolute quantity; zero or less removes the line."""
        idx = self._require_index(product_id)
        if isinstance(quantity, int) and not isinstance(quantity, bool) and quantity <= 0:
            del self._lines[idx]
        else:
            self._lines[idx] = replace(self._lines[idx], quantity=quantity)
        return self._refresh()

    def set_line_manual_discount(
        self, product_id: str, percent: Decimal | int | str,
    ) -> CartTotals:
        idx = self._require_index(product_id)
        self._lines[idx] = replace(
            self._lines[idx], manual_discount_percent=percent,
        )
        return self._refresh()

    def set_cart_discount(self, percent: Decimal | int | str) -> CartTotals:
        self._cart_discount_percent = to_percent(
            percent, field="cart_discount_percent",
        )
        return self._refresh()

    def set_customer(self, customer_id: Optional[str]) -> CartTotals:
        self._customer_id = customer_id or None
        return self._refresh()

    def set_payment_method(self, method_code: Optional[str]) -> CartTotals:
        """Bind the chosen method; affinity rules re-evaluate against it."""
        self._payment_method = method_code or None
        return self._refresh()

    def reload_rules(self, rules: Iterable[PromotionRule]) -> CartTotals:
        """Swap in a fresh rule snapshot (e.g. after a back-office edit)."""
        self._rules = tuple(rules)
        logger.info(f"Cart rules reloaded: {len(self._rules)} rules")
        return self._refresh()

    def clear(self) -> CartTotals:
        """Reset after sale completion or cancellation."""
        self._lines = []
        self._customer_id = None
        self._cart_discount_percent = Decimal(0)
        self._payment_method = None
        return self._refresh()

    # ── internals ─────────────────────────────────────────────

    def _index_of(self, product_id: str) -> Optional[int]:
        for idx, line in enumerate(self._lines):
            if line.product_id == product_id:
                return idx
        return None

    def _require_index(self, product_id: str) -> int:
        idx = self._index_of(product_id)
        if idx is None:
            raise ValidationError(f"Product '{product_id}' is not in the cart.")
        return idx

    def _recompute(self) -> CartTotals:
        return recompute_cart(
            self._lines,
            self._rules,
            self._cart_discount_percent,
            at=local_moment(self._clock.now_utc(), self._config.zone),
            payment_method=self.payment_method,
            apply_affinity_without_payment=(
                self._config.apply_affinity_rules_without_payment
            ),
        )

    def _refresh(self) -> CartTotals:
        self._totals = self._recompute()
        # Keep stored lines aligned with the priced ones for display.
        self._lines = list(self._totals.lines)
        return self._totals
