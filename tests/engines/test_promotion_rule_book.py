"""
Tests for engines.promotion.services — back-office rule maintenance.
"""

import pytest
from datetime import date, datetime, timezone

from core.errors import RuleEvaluationError, ValidationError
from core.events import InMemoryEventLog
from core.time.clock import FixedClock
from engines.promotion.commands import (
    RuleAddProductsRequest,
    RuleDefinitionRequest,
    RuleDeleteRequest,
    RuleToggleRequest,
)
from engines.promotion.events import (
    PROMOTION_RULE_CREATED_V1,
    PROMOTION_RULE_DEACTIVATED_V1,
    PROMOTION_RULE_DELETED_V1,
    PROMOTION_RULE_PRODUCTS_ADDED_V1,
)
from engines.promotion.rules import Percentage
from engines.promotion.services import PromotionRuleBook

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _definition(rule_id="R1", **overrides):
    fields = dict(
        rule_id=rule_id,
        name=f"Promo {rule_id}",
        type="PERCENTAGE",
        discount_percent="10",
        start_date="2026-03-01",
        end_date="2026-03-31",
        product_ids=("P1",),
    )
    fields.update(overrides)
    return RuleDefinitionRequest(**fields)


@pytest.fixture
def events():
    return InMemoryEventLog(clock=FixedClock(NOW))


@pytest.fixture
def book(events):
    return PromotionRuleBook(clock=FixedClock(NOW), event_sink=events)


class TestRequests:
    def test_malformed_nxm_rejected_at_construction(self):
        with pytest.raises(ValidationError):
            _definition(type="N_X_M", buy_qty=2, pay_qty=2, discount_percent=None)

    def test_unknown_type_rejected(self):
        with pytest.raises(RuleEvaluationError):
            _definition(type="MYSTERY")

    def test_add_products_requires_products(self):
        with pytest.raises(ValidationError):
            RuleAddProductsRequest(rule_id="R1", product_ids=())

    def test_toggle_requires_bool(self):
        with pytest.raises(ValidationError):
            RuleToggleRequest(rule_id="R1", active="yes")


class TestCreateAndUpdate:
    def test_create_assigns_creation_sequence(self, book, events):
        first = book.create(_definition("R1"))
        second = book.create(_definition("R2"))
        assert (first.sequence, second.sequence) == (1, 2)
        assert first.variant == Percentage(discount_percent=10)
        assert events.event_types() == [PROMOTION_RULE_CREATED_V1] * 2

    def test_duplicate_id_rejected(self, book):
        book.create(_definition("R1"))
        with pytest.raises(ValidationError, match="already exists"):
            book.create(_definition("R1"))

    def test_update_replaces_products_and_keeps_sequence(self, book):
        book.create(_definition("R1"))
        book.create(_definition("R2"))
        updated = book.update(
            _definition("R1", product_ids=("P9",), discount_percent="20"),
        )
        assert updated.sequence == 1
        assert updated.product_ids == frozenset({"P9"})
        assert updated.variant == Percentage(discount_percent=20)
        assert [r.rule_id for r in book.list_rules()] == ["R1", "R2"]

    def test_update_unknown_rule(self, book):
        with pytest.raises(ValidationError, match="not found"):
            book.update(_definition("NOPE"))

    def test_add_products_merges(self, book, events):
        book.create(_definition("R1"))
        rule = book.add_products(
            RuleAddProductsRequest(rule_id="R1", product_ids=("P1", "P2", "P2")),
        )
        assert rule.product_ids == frozenset({"P1", "P2"})
        added = events.events(PROMOTION_RULE_PRODUCTS_ADDED_V1)[0]
        assert added.payload["added_product_ids"] == ["P2"]


class TestToggleAndDelete:
    def test_toggle_off_hides_from_snapshot(self, book, events):
        book.create(_definition("R1"))
        book.toggle(RuleToggleRequest(rule_id="R1", active=False))
        assert book.active_snapshot() == ()
        assert events.event_types()[-1] == PROMOTION_RULE_DEACTIVATED_V1

    def test_soft_delete_keeps_history(self, book, events):
        book.create(_definition("R1"))
        deleted = book.soft_delete(RuleDeleteRequest(rule_id="R1"))

        assert deleted.deleted_at == NOW
        assert book.get("R1").is_deleted
        assert book.list_rules() == []
        assert [r.rule_id for r in book.list_rules(include_deleted=True)] == ["R1"]
        assert book.active_snapshot() == ()
        assert events.event_types()[-1] == PROMOTION_RULE_DELETED_V1

    def test_deleted_rule_cannot_be_edited(self, book):
        book.create(_definition("R1"))
        book.soft_delete(RuleDeleteRequest(rule_id="R1"))
        with pytest.raises(ValidationError, match="deleted"):
            book.toggle(RuleToggleRequest(rule_id="R1", active=True))


class TestActiveSnapshot:
    def test_expired_rules_excluded(self, book):
        book.create(_definition("OLD", start_date="2026-01-01", end_date="2026-02-28"))
        book.create(_definition("NOW"))
        book.create(_definition("NEXT", start_date="2026-04-01", end_date="2026-04-30"))

        snapshot = book.active_snapshot()
        # Future rules load now and wait for their window in the pricing engine.
        assert [r.rule_id for r in snapshot] == ["NOW", "NEXT"]

    def test_explicit_instant(self, book):
        book.create(_definition("R1"))
        later = datetime(2026, 4, 1, tzinfo=timezone.utc)
        assert book.active_snapshot(at=later) == ()
        assert book.get("R1").dates.end == date(2026, 3, 31)
