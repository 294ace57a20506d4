"""
TSC Promotion Engine — Rule Book Service
==========================================
Back-office maintenance of promotion rules.

Rules are values: every edit saves a new PromotionRule with the same
rule_id and creation sequence, so the stacking order survives edits.
Deletion is soft; deleted rules stay inspectable through get() and
list_rules(include_deleted=True) but never reach a cart.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone, tzinfo
from typing import Optional, Tuple

from core.errors import ValidationError
from core.events.log import EventSink
from core.time.clock import Clock, get_default_clock
from core.time.temporal import local_moment
from engines.promotion.commands import (
    RuleAddProductsRequest,
    RuleDefinitionRequest,
    RuleDeleteRequest,
    RuleToggleRequest,
)
from engines.promotion.events import (
    PROMOTION_RULE_ACTIVATED_V1,
    PROMOTION_RULE_CREATED_V1,
    PROMOTION_RULE_DEACTIVATED_V1,
    PROMOTION_RULE_DELETED_V1,
    PROMOTION_RULE_PRODUCTS_ADDED_V1,
    PROMOTION_RULE_UPDATED_V1,
    build_products_added_payload,
    build_rule_deleted_payload,
    build_rule_payload,
    build_rule_toggled_payload,
)
from engines.promotion.policies import (
    rule_id_must_be_unused_policy,
    rule_must_exist_policy,
    rule_must_not_be_deleted_policy,
)
from engines.promotion.repository import InMemoryRuleRepository, RuleRepository
from engines.promotion.rules import PromotionRule

logger = logging.getLogger("tsc.promotion")


class PromotionRuleBook:
    """Promotion rule maintenance service."""

    def __init__(
        self,
        *,
        repository: Optional[RuleRepository] = None,
        clock: Optional[Clock] = None,
        event_sink: Optional[EventSink] = None,
        zone: tzinfo = timezone.utc,
    ):
        self._repository = repository or InMemoryRuleRepository()
        self._clock = clock or get_default_clock()
        self._event_sink = event_sink
        self._zone = zone

    # ── commands ──────────────────────────────────────────────

    def create(self, request: RuleDefinitionRequest) -> PromotionRule:
        rejection = rule_id_must_be_unused_policy(
            request.rule_id, self._repository.get(request.rule_id),
        )
        if rejection is not None:
            raise ValidationError(rejection.message)

        rule = request.build_rule(sequence=self._repository.next_sequence())
        self._repository.save(rule)
        logger.info(
            f"Promotion rule created: {rule.rule_id} ({rule.kind.value}, "
            f"seq={rule.sequence})"
        )
        self._emit(PROMOTION_RULE_CREATED_V1, build_rule_payload(rule))
        return rule

    def update(self, request: RuleDefinitionRequest) -> PromotionRule:
        """Replace every field of a live rule, keeping its sequence."""
        current = self._require_live(request.rule_id)
        rule = request.build_rule(sequence=current.sequence)
        self._repository.save(rule)
        logger.info(f"Promotion rule updated: {rule.rule_id}")
        self._emit(PROMOTION_RULE_UPDATED_V1, build_rule_payload(rule))
        return rule

    def add_products(self, request: RuleAddProductsRequest) -> PromotionRule:
        current = self._require_live(request.rule_id)
        added = tuple(
            p for p in dict.fromkeys(request.product_ids)
            if p not in current.product_ids
        )
        rule = replace(current, product_ids=current.product_ids | set(added))
        self._repository.save(rule)
        logger.info(
            f"Promotion rule {rule.rule_id}: {len(added)} products added"
        )
        self._emit(
            PROMOTION_RULE_PRODUCTS_ADDED_V1,
            build_products_added_payload(rule, added),
        )
        return rule

    def toggle(self, request: RuleToggleRequest) -> PromotionRule:
        current = self._require_live(request.rule_id)
        rule = replace(current, active=request.active)
        self._repository.save(rule)
        logger.info(
            f"Promotion rule {rule.rule_id} "
            f"{'activated' if rule.active else 'deactivated'}"
        )
        self._emit(
            PROMOTION_RULE_ACTIVATED_V1 if rule.active
            else PROMOTION_RULE_DEACTIVATED_V1,
            build_rule_toggled_payload(rule),
        )
        return rule

    def soft_delete(self, request: RuleDeleteRequest) -> PromotionRule:
        current = self._require_live(request.rule_id)
        rule = replace(current, active=False, deleted_at=self._clock.now_utc())
        self._repository.save(rule)
        logger.info(f"Promotion rule deleted: {rule.rule_id}")
        self._emit(PROMOTION_RULE_DELETED_V1, build_rule_deleted_payload(rule))
        return rule

    # ── queries ───────────────────────────────────────────────

    def get(self, rule_id: str) -> Optional[PromotionRule]:
        """Any rule by id, deleted ones included."""
        return self._repository.get(rule_id)

    def list_rules(self, *, include_deleted: bool = False) -> list[PromotionRule]:
        return self._repository.list_rules(include_deleted=include_deleted)

    def active_snapshot(
        self, at: Optional[datetime] = None,
    ) -> Tuple[PromotionRule, ...]:
        """
        Rules a cart should load: active, not deleted, not yet expired,
        in creation order. Weekday and hour windows are left to the
        pricing engine, which checks them at evaluation time.
        """
        moment = local_moment(at or self._clock.now_utc(), self._zone)
        return tuple(
            rule for rule in self._repository.list_rules()
            if rule.active and rule.dates.end >= moment.date()
        )

    # ── internals ─────────────────────────────────────────────

    def _require_live(self, rule_id: str) -> PromotionRule:
        rule = self._repository.get(rule_id)
        rejection = rule_must_exist_policy(rule_id, rule)
        if rejection is None:
            rejection = rule_must_not_be_deleted_policy(rule)
        if rejection is not None:
            logger.warning(f"Promotion rule edit refused: {rejection.message}")
            raise ValidationError(rejection.message)
        return rule

    def _emit(self, event_type: str, payload: dict) -> None:
        if self._event_sink is not None:
            self._event_sink.emit(event_type, payload)
