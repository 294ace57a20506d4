"""
TSC Promotion Engine — Policies
"""

from __future__ import annotations

from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason
from engines.promotion.rules import PromotionRule


def rule_must_exist_policy(
    rule_id: str, rule: Optional[PromotionRule],
) -> Optional[RejectionReason]:
    if rule is None:
        return RejectionReason(
            code=ReasonCode.VALIDATION_FAILED,
            message=f"Promotion rule '{rule_id}' not found.",
            policy_name="rule_must_exist_policy")
    return None


def rule_must_not_be_deleted_policy(
    rule: PromotionRule,
) -> Optional[RejectionReason]:
    if rule.is_deleted:
        return RejectionReason(
            code=ReasonCode.VALIDATION_FAILED,
            message=f"Promotion rule '{rule.rule_id}' was deleted.",
            policy_name="rule_must_not_be_deleted_policy")
    return None


def rule_id_must_be_unused_policy(
    rule_id: str, existing: Optional[PromotionRule],
) -> Optional[RejectionReason]:
    if existing is not None:
        return RejectionReason(
            code=ReasonCode.VALIDATION_FAILED,
            message=f"Promotion rule '{rule_id}' already exists.",
            policy_name="rule_id_must_be_unused_policy")
    return None
