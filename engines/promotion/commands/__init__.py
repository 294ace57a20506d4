"""
TSC Promotion Engine — Request Commands
=========================================
Back-office requests for the promotion rule book. Each request is
validated in full at construction by building the rule it describes,
so a malformed rule never reaches the book.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Optional, Tuple

from core.errors import ValidationError
from engines.promotion.rules import PromotionRule, rule_from_record

PROMOTION_RULE_CREATE_REQUEST = "promotion.rule.create.request"
PROMOTION_RULE_UPDATE_REQUEST = "promotion.rule.update.request"
PROMOTION_RULE_ADD_PRODUCTS_REQUEST = "promotion.rule.add_products.request"
PROMOTION_RULE_TOGGLE_REQUEST = "promotion.rule.toggle.request"
PROMOTION_RULE_DELETE_REQUEST = "promotion.rule.delete.request"

PROMOTION_COMMAND_TYPES = frozenset({
    PROMOTION_RULE_CREATE_REQUEST,
    PROMOTION_RULE_UPDATE_REQUEST,
    PROMOTION_RULE_ADD_PRODUCTS_REQUEST,
    PROMOTION_RULE_TOGGLE_REQUEST,
    PROMOTION_RULE_DELETE_REQUEST,
})


@dataclass(frozen=True)
class RuleDefinitionRequest:
    """
    Full definition of a rule, used for create and for update
    (update replaces every field, including the product set).
    """

    rule_id: str
    name: str
    type: str
    start_date: date | str
    end_date: date | str
    product_ids: Tuple[str, ...] = ()
    days_of_week: Optional[str | Tuple[int, ...]] = None
    start_time: Optional[time | str] = None
    end_time: Optional[time | str] = None
    buy_qty: Optional[int] = None
    pay_qty: Optional[int] = None
    discount_percent: Optional[Decimal | int | str] = None
    fixed_price: Optional[Decimal | int | str] = None
    payment_method: Optional[str] = None
    description: str = ""
    active: bool = True

    def __post_init__(self):
        if not self.rule_id:
            raise ValidationError("rule_id must be non-empty.")
        if not self.name:
            raise ValidationError("name must be non-empty.")
        object.__setattr__(
            self, "product_ids", tuple(str(p) for p in self.product_ids),
        )
        self.build_rule(sequence=0)

    def to_record(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "type": self.type,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "product_ids": self.product_ids,
            "days_of_week": self.days_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "buy_qty": self.buy_qty,
            "pay_qty": self.pay_qty,
            "discount_percent": self.discount_percent,
            "fixed_price": self.fixed_price,
            "payment_method": self.payment_method,
            "description": self.description,
            "active": self.active,
        }

    def build_rule(self, *, sequence: int) -> PromotionRule:
        record = self.to_record()
        record["sequence"] = sequence
        return rule_from_record(record)


@dataclass(frozen=True)
class RuleAddProductsRequest:
    rule_id: str
    product_ids: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.rule_id:
            raise ValidationError("rule_id must be non-empty.")
        products = tuple(str(p) for p in self.product_ids)
        if not products:
            raise ValidationError("product_ids must not be empty.")
        object.__setattr__(self, "product_ids", products)


@dataclass(frozen=True)
class RuleToggleRequest:
    rule_id: str
    active: bool

    def __post_init__(self):
        if not self.rule_id:
            raise ValidationError("rule_id must be non-empty.")
        if not isinstance(self.active, bool):
            raise ValidationError("active must be a bool.")


@dataclass(frozen=True)
class RuleDeleteRequest:
    rule_id: str

    def __post_init__(self):
        if not self.rule_id:
            raise ValidationError("rule_id must be non-empty.")
