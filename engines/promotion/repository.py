"""
TSC Promotion Engine — Rule Repository
========================================
Storage seam for the rule book. The in-memory implementation backs
tests and bootstrap; adapters.django_store provides the durable one.
"""

from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional, Protocol

from engines.promotion.rules import PromotionRule, ordered


class RuleRepository(Protocol):
    def next_sequence(self) -> int:
        ...  # pragma: no cover

    def save(self, rule: PromotionRule) -> None:
        ...  # pragma: no cover

    def get(self, rule_id: str) -> Optional[PromotionRule]:
        ...  # pragma: no cover

    def list_rules(self, *, include_deleted: bool = False) -> List[PromotionRule]:
        ...  # pragma: no cover


class InMemoryRuleRepository:
    """Thread-safe dict-backed repository. Rules are never removed."""

    def __init__(self):
        self._rules: Dict[str, PromotionRule] = {}
        self._sequence = 0
        self._lock = Lock()

    def next_sequence(self) -> int:
        with self._lock:
            self._sequence += 1
            return self._sequence

    def save(self, rule: PromotionRule) -> None:
        with self._lock:
            self._rules[rule.rule_id] = rule
            self._sequence = max(self._sequence, rule.sequence)

    def get(self, rule_id: str) -> Optional[PromotionRule]:
        with self._lock:
            return self._rules.get(rule_id)

    def list_rules(self, *, include_deleted: bool = False) -> List[PromotionRule]:
        with self._lock:
            rules = list(self._rules.values())
        if not include_deleted:
            rules = [r for r in rules if not r.is_deleted]
        return ordered(rules)
