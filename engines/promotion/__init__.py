"""
TSC Promotion Engine — Public API
"""

from engines.promotion.rules import (
    FixedPrice,
    NxM,
    Percentage,
    PromotionRule,
    RuleKind,
    build_variant,
    ordered,
    rule_from_record,
    variant_fields,
)

__all__ = [
    "FixedPrice",
    "NxM",
    "Percentage",
    "PromotionRule",
    "RuleKind",
    "build_variant",
    "ordered",
    "rule_from_record",
    "variant_fields",
]
