"""
TSC Promotion Engine — Event Types and Payload Builders
=========================================================
Audit trail of back-office edits to the rule book.
"""

from __future__ import annotations

from engines.promotion.rules import PromotionRule, variant_fields

PROMOTION_RULE_CREATED_V1 = "promotion.rule.created.v1"
PROMOTION_RULE_UPDATED_V1 = "promotion.rule.updated.v1"
PROMOTION_RULE_PRODUCTS_ADDED_V1 = "promotion.rule.products_added.v1"
PROMOTION_RULE_ACTIVATED_V1 = "promotion.rule.activated.v1"
PROMOTION_RULE_DEACTIVATED_V1 = "promotion.rule.deactivated.v1"
PROMOTION_RULE_DELETED_V1 = "promotion.rule.deleted.v1"

PROMOTION_EVENT_TYPES = (
    PROMOTION_RULE_CREATED_V1,
    PROMOTION_RULE_UPDATED_V1,
    PROMOTION_RULE_PRODUCTS_ADDED_V1,
    PROMOTION_RULE_ACTIVATED_V1,
    PROMOTION_RULE_DEACTIVATED_V1,
    PROMOTION_RULE_DELETED_V1,
)


def build_rule_payload(rule: PromotionRule) -> dict:
    payload = {
        "rule_id": rule.rule_id,
        "name": rule.name,
        "product_ids": sorted(rule.product_ids),
        "start_date": rule.dates.start.isoformat(),
        "end_date": rule.dates.end.isoformat(),
        "days_of_week": rule.weekdays.to_csv(),
        "start_time": rule.hours.start.isoformat() if rule.hours else None,
        "end_time": rule.hours.end.isoformat() if rule.hours else None,
        "payment_method": rule.payment_method,
        "active": rule.active,
        "sequence": rule.sequence,
    }
    payload.update(variant_fields(rule.variant))
    return payload


def build_products_added_payload(
    rule: PromotionRule, added: tuple[str, ...],
) -> dict:
    return {
        "rule_id": rule.rule_id,
        "added_product_ids": list(added),
        "product_count": len(rule.product_ids),
    }


def build_rule_toggled_payload(rule: PromotionRule) -> dict:
    return {"rule_id": rule.rule_id, "active": rule.active}


def build_rule_deleted_payload(rule: PromotionRule) -> dict:
    return {
        "rule_id": rule.rule_id,
        "deleted_at": rule.deleted_at.isoformat() if rule.deleted_at else None,
    }
