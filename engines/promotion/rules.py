"""
TSC Promotion Engine — Rule Definitions
=========================================
Immutable, time-boxed discount definitions read by the pricing engine.

Variants (exhaustive tagged union, evaluated in one place:
engines.pricing.engine):
    NxM         — buy N, pay M; the cheapest eligible units go free
    Percentage  — percent off every eligible line
    FixedPrice  — combo price; extension point, contributes no discount

A rule is never mutated mid-computation. Edits produce a new rule
value with the same rule_id and sequence; deletion is soft.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet, Iterable, Optional, Union

from core.errors import RuleEvaluationError, ValidationError
from core.primitives.money import to_money, to_percent
from core.time.temporal import DailyWindow, DateWindow, WeekdayMask, is_within


class RuleKind(Enum):
    """Back-office variant tags."""
    NXM = "N_X_M"
    PERCENTAGE = "PERCENTAGE"
    FIXED_PRICE = "FIXED_PRICE"


# ══════════════════════════════════════════════════════════════
# VARIANTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NxM:
    """Buy `buy_qty` units, pay for `pay_qty` (e.g. 3x2)."""

    buy_qty: int
    pay_qty: int

    kind = RuleKind.NXM

    def __post_init__(self):
        for name in ("buy_qty", "pay_qty"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValidationError(f"{name} must be an integer.")
        if self.pay_qty <= 0:
            raise ValidationError("pay_qty must be positive.")
        if self.buy_qty <= self.pay_qty:
            raise ValidationError(
                f"buy_qty ({self.buy_qty}) must be greater than "
                f"pay_qty ({self.pay_qty})."
            )

    @property
    def free_per_set(self) -> int:
        return self.buy_qty - self.pay_qty


@dataclass(frozen=True)
class Percentage:
    discount_percent: Decimal

    kind = RuleKind.PERCENTAGE

    def __post_init__(self):
        percent = to_percent(self.discount_percent, field="discount_percent")
        if percent <= 0:
            raise ValidationError("discount_percent must be greater than 0.")
        object.__setattr__(self, "discount_percent", percent)


@dataclass(frozen=True)
class FixedPrice:
    fixed_price: Decimal

    kind = RuleKind.FIXED_PRICE

    def __post_init__(self):
        price = to_money(self.fixed_price, field="fixed_price")
        if price < 0:
            raise ValidationError("fixed_price must be non-negative.")
        object.__setattr__(self, "fixed_price", price)


RuleVariant = Union[NxM, Percentage, FixedPrice]


# ══════════════════════════════════════════════════════════════
# PROMOTION RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PromotionRule:
    """
    One promotion as the pricing engine sees it.

    Fields:
        rule_id:        Stable identity.
        name:           Label shown on discounted cart lines.
        variant:        NxM | Percentage | FixedPrice.
        product_ids:    Eligible product set.
        dates:          Validity window, inclusive.
        weekdays:       Allowed weekdays (0 = Monday).
        hours:          Optional time-of-day window.
        payment_method: Optional payment-method affinity (method code).
        active:         Admin toggle.
        sequence:       Creation order; the stacking order of rules.
        deleted_at:     Soft-delete marker; deleted rules never apply.
    """

    rule_id: str
    name: str
    variant: RuleVariant
    product_ids: FrozenSet[str]
    dates: DateWindow
    weekdays: WeekdayMask = field(default_factory=WeekdayMask)
    hours: Optional[DailyWindow] = None
    payment_method: Optional[str] = None
    active: bool = True
    sequence: int = 0
    description: str = ""
    deleted_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.rule_id:
            raise ValidationError("rule_id must be non-empty.")
        if not self.name:
            raise ValidationError("name must be non-empty.")
        if not isinstance(self.variant, (NxM, Percentage, FixedPrice)):
            raise RuleEvaluationError(
                self.rule_id,
                f"unsupported variant {type(self.variant).__name__}.",
            )
        object.__setattr__(self, "product_ids", frozenset(self.product_ids))

    @property
    def kind(self) -> RuleKind:
        return self.variant.kind

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def covers(self, product_id: str) -> bool:
        return product_id in self.product_ids

    def is_live_at(self, moment: datetime) -> bool:
        """Active, not deleted, and inside date/weekday/hour windows."""
        if not self.active or self.is_deleted:
            return False
        return is_within(
            moment, dates=self.dates, weekdays=self.weekdays, hours=self.hours,
        )

    def is_eligible(self, product_id: str, moment: datetime) -> bool:
        return self.covers(product_id) and self.is_live_at(moment)

    def matches_payment(self, payment_method: Optional[str]) -> bool:
        """
        Affinity check. A rule without affinity matches any method;
        a rule with affinity never matches an unknown method.
        """
        if self.payment_method is None:
            return True
        return payment_method == self.payment_method


# ══════════════════════════════════════════════════════════════
# BUILDERS (back-office field layout)
# ══════════════════════════════════════════════════════════════

def build_variant(
    kind: str | RuleKind,
    *,
    buy_qty: Optional[int] = None,
    pay_qty: Optional[int] = None,
    discount_percent: Any = None,
    fixed_price: Any = None,
    rule_id: str = "?",
) -> RuleVariant:
    """
    Build a variant from flat back-office fields.

    Raises RuleEvaluationError for an unknown tag or a tag whose
    parameters are missing; ValidationError for out-of-range values.
    """
    try:
        tag = kind if isinstance(kind, RuleKind) else RuleKind(kind)
    except ValueError as exc:
        raise RuleEvaluationError(rule_id, f"unknown rule type '{kind}'.") from exc

    if tag is RuleKind.NXM:
        if buy_qty is None or pay_qty is None:
            raise RuleEvaluationError(rule_id, "N_X_M requires buy_qty and pay_qty.")
        return NxM(buy_qty=int(buy_qty), pay_qty=int(pay_qty))
    if tag is RuleKind.PERCENTAGE:
        if discount_percent is None:
            raise RuleEvaluationError(rule_id, "PERCENTAGE requires discount_percent.")
        return Percentage(discount_percent=Decimal(str(discount_percent)))
    if fixed_price is None:
        raise RuleEvaluationError(rule_id, "FIXED_PRICE requires fixed_price.")
    return FixedPrice(fixed_price=Decimal(str(fixed_price)))


def variant_fields(variant: RuleVariant) -> dict:
    """Inverse of build_variant: flat fields for storage or audit."""
    fields = {
        "type": variant.kind.value,
        "buy_qty": None,
        "pay_qty": None,
        "discount_percent": None,
        "fixed_price": None,
    }
    if isinstance(variant, NxM):
        fields.update(buy_qty=variant.buy_qty, pay_qty=variant.pay_qty)
    elif isinstance(variant, Percentage):
        fields["discount_percent"] = str(variant.discount_percent)
    else:
        fields["fixed_price"] = str(variant.fixed_price)
    return fields


def _parse_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _parse_time(value: time | str | None) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    return time.fromisoformat(value)


def rule_from_record(record: dict) -> PromotionRule:
    """
    Build a PromotionRule from a flat record (storage row or request).

    Accepts both buy_quantity/pay_quantity and the legacy
    buy_qty/pay_qty keys; days_of_week in the "0,1,..,6" Sunday-based
    form or as an iterable of Python weekdays.
    """
    rule_id = str(record.get("rule_id") or record.get("id") or "")
    try:
        variant = build_variant(
            record["type"],
            buy_qty=record.get("buy_quantity") or record.get("buy_qty"),
            pay_qty=record.get("pay_quantity") or record.get("pay_qty"),
            discount_percent=record.get("discount_percent"),
            fixed_price=record.get("fixed_price"),
            rule_id=rule_id or "?",
        )
        days = record.get("days_of_week")
        if days is None or isinstance(days, str):
            weekdays = WeekdayMask.from_csv(days)
        else:
            weekdays = WeekdayMask.of(days)
        start_time = _parse_time(record.get("start_time"))
        end_time = _parse_time(record.get("end_time"))
        hours = (
            DailyWindow(start=start_time, end=end_time)
            if start_time is not None and end_time is not None else None
        )
        start_date = _parse_date(record["start_date"])
        end_date = _parse_date(record["end_date"])
    except KeyError as exc:
        raise RuleEvaluationError(rule_id or "?", f"missing field {exc}.") from exc
    except ValueError as exc:
        raise RuleEvaluationError(rule_id or "?", str(exc)) from exc

    if start_date > end_date:
        raise ValidationError(
            f"start_date ({start_date}) must be on or before "
            f"end_date ({end_date})."
        )
    dates = DateWindow(start=start_date, end=end_date)

    return PromotionRule(
        rule_id=rule_id,
        name=record.get("name", ""),
        description=record.get("description") or "",
        variant=variant,
        product_ids=frozenset(str(p) for p in record.get("product_ids", ())),
        dates=dates,
        weekdays=weekdays,
        hours=hours,
        payment_method=record.get("payment_method") or None,
        active=bool(record.get("active", True)),
        sequence=int(record.get("sequence", 0)),
        deleted_at=record.get("deleted_at"),
    )


def ordered(rules: Iterable[PromotionRule]) -> list[PromotionRule]:
    """Deterministic stacking order: creation sequence, then id."""
    return sorted(rules, key=lambda r: (r.sequence, r.rule_id))
