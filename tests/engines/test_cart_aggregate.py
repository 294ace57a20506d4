"""
Tests for engines.cart — every mutation leaves fresh totals behind.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from core.config.rules import CartConfig
from core.errors import ValidationError
from core.time.clock import FixedClock
from core.time.temporal import DateWindow, WeekdayMask
from engines.cart.aggregate import CartAggregate
from engines.promotion.rules import NxM, Percentage, PromotionRule

NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
MARCH = DateWindow(start=date(2026, 3, 1), end=date(2026, 3, 31))

TEN_OFF_P = PromotionRule(
    rule_id="R1", name="10% P", variant=Percentage(discount_percent=10),
    product_ids={"P"}, dates=MARCH, sequence=1,
)
THREE_FOR_TWO_Q = PromotionRule(
    rule_id="R2", name="3x2 Q", variant=NxM(buy_qty=3, pay_qty=2),
    product_ids={"Q"}, dates=MARCH, sequence=2,
)
CASH_ONLY_P = PromotionRule(
    rule_id="R3", name="Efectivo 5%", variant=Percentage(discount_percent=5),
    product_ids={"P"}, dates=MARCH, payment_method="EFECTIVO", sequence=3,
)


def _cart(rules=(TEN_OFF_P,), config=None):
    return CartAggregate(config=config, rules=rules, clock=FixedClock(NOW))


class TestLines:
    def test_add_line_prices_immediately(self):
        cart = _cart()
        totals = cart.add_line("P", Decimal("850"), 2)
        assert totals.total == Decimal("1530.00")
        assert cart.totals is totals
        assert cart.lines[0].promo_label == "10% P"

    def test_adding_existing_product_increments_quantity(self):
        cart = _cart(rules=(THREE_FOR_TWO_Q,))
        cart.add_line("Q", Decimal("100"), 2)
        assert cart.totals.promo_discount == Decimal("0.00")

        totals = cart.add_line("Q", Decimal("100"))
        assert len(totals.lines) == 1
        assert totals.lines[0].quantity == 3
        assert totals.promo_discount == Decimal("100.00")

    def test_line_order_is_insertion_order(self):
        cart = _cart()
        cart.add_line("B", Decimal("1"))
        cart.add_line("A", Decimal("1"))
        assert [line.product_id for line in cart.lines] == ["B", "A"]

    def test_remove_line(self):
        cart = _cart()
        cart.add_line("P", Decimal("100"))
        totals = cart.remove_line("P")
        assert totals.total == Decimal("0.00")
        assert cart.is_empty

    def test_remove_unknown_product(self):
        with pytest.raises(ValidationError, match="not in the cart"):
            _cart().remove_line("NOPE")

    def test_set_quantity_recomputes(self):
        cart = _cart(rules=(THREE_FOR_TWO_Q,))
        cart.add_line("Q", Decimal("100"))
        totals = cart.set_quantity("Q", 6)
        assert totals.promo_discount == Decimal("200.00")

    def test_set_quantity_zero_removes_line(self):
        cart = _cart()
        cart.add_line("P", Decimal("100"))
        cart.set_quantity("P", 0)
        assert cart.is_empty

    def test_bad_quantity_rejected(self):
        cart = _cart()
        with pytest.raises(ValidationError):
            cart.add_line("P", Decimal("100"), 0)
        cart.add_line("P", Decimal("100"))
        with pytest.raises(ValidationError):
            cart.add_line("P", Decimal("100"), -1)
        with pytest.raises(ValidationError):
            cart.add_line("P", Decimal("100"), True)
        assert cart.lines[0].quantity == 1


class TestDiscounts:
    def test_line_manual_discount(self):
        cart = _cart(rules=())
        cart.add_line("X", Decimal("200"))
        totals = cart.set_line_manual_discount("X", 25)
        assert totals.total == Decimal("150.00")

    def test_cart_discount(self):
        cart = _cart(rules=())
        cart.add_line("X", Decimal("1000"))
        totals = cart.set_cart_discount("10")
        assert totals.global_discount_amount == Decimal("100.00")
        assert totals.total == Decimal("900.00")

    def test_cart_discount_out_of_range(self):
        with pytest.raises(ValidationError):
            _cart().set_cart_discount(150)


class TestRulesAndPayment:
    def test_reload_rules_reprices_cart(self):
        cart = _cart(rules=())
        cart.add_line("P", Decimal("100"))
        assert cart.totals.promo_discount == Decimal("0.00")

        totals = cart.reload_rules([TEN_OFF_P])
        assert totals.promo_discount == Decimal("10.00")
        assert cart.rules == (TEN_OFF_P,)

    def test_affinity_rule_waits_for_payment_method(self):
        cart = _cart(rules=(TEN_OFF_P, CASH_ONLY_P))
        cart.add_line("P", Decimal("100"))
        assert cart.totals.promo_discount == Decimal("10.00")

        totals = cart.set_payment_method("EFECTIVO")
        assert totals.promo_discount == Decimal("15.00")
        assert totals.lines[0].promo_label == "Efectivo 5%"

        totals = cart.set_payment_method("DEBITO")
        assert totals.promo_discount == Decimal("10.00")

    def test_default_payment_method_from_config(self):
        config = CartConfig(default_payment_method="EFECTIVO")
        cart = _cart(rules=(CASH_ONLY_P,), config=config)
        cart.add_line("P", Decimal("100"))
        assert cart.payment_method == "EFECTIVO"
        assert cart.totals.promo_discount == Decimal("5.00")


class TestClear:
    def test_clear_resets_session(self):
        cart = _cart()
        cart.add_line("P", Decimal("100"))
        cart.set_customer("C-42")
        cart.set_cart_discount(5)
        cart.set_payment_method("EFECTIVO")

        totals = cart.clear()

        assert totals.total == Decimal("0.00")
        assert cart.is_empty
        assert cart.customer_id is None
        assert cart.cart_discount_percent == Decimal(0)
        assert cart.payment_method is None
        assert cart.rules == (TEN_OFF_P,)


class TestStoreLocalWindows:
    # Monday 01:00 UTC is still Sunday 22:00 in Buenos Aires.
    SUNDAY_NIGHT_UTC = datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)
    SUNDAY_ONLY = PromotionRule(
        rule_id="R-DOM", name="Domingo 10%", variant=Percentage(discount_percent=10),
        product_ids={"P"}, dates=MARCH, weekdays=WeekdayMask.from_csv("0"),
        sequence=1,
    )

    def _cart(self, timezone_name):
        return CartAggregate(
            config=CartConfig(timezone=timezone_name),
            rules=(self.SUNDAY_ONLY,),
            clock=FixedClock(self.SUNDAY_NIGHT_UTC),
        )

    def test_weekday_read_on_store_wall_clock(self):
        cart = self._cart("America/Argentina/Buenos_Aires")
        totals = cart.add_line("P", Decimal("1000"))
        assert totals.lines[0].promo_discount == Decimal("100.00")
        assert totals.total == Decimal("900.00")

    def test_utc_store_already_on_monday(self):
        cart = self._cart("UTC")
        totals = cart.add_line("P", Decimal("1000"))
        assert totals.lines[0].promo_discount == Decimal("0.00")
