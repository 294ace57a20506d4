"""
TSC Settlement Store — Django Repositories
============================================
ORM-backed ShiftStore and RuleRepository.

Shift writes:
- create_open runs in one transaction; the partial unique constraint
  uq_shift_register_open turns a lost race into RegisterOccupiedError.
- replace is a conditional UPDATE on (shift_id, version) followed by
  INSERTs of the new movements, all in one transaction. Zero rows
  updated means another writer got there first.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Max

from adapters.django_store.models import (
    CashMovementRecord,
    CashShiftRecord,
    PromotionRuleRecord,
    ShiftStatusChoice,
)
from core.errors import (
    ConcurrentModificationError,
    RegisterOccupiedError,
    UnknownShiftError,
    UserShiftConflictError,
    ValidationError,
)
from engines.cash.ledger import CashMovement
from engines.cash.shift import CashShift
from engines.promotion.rules import PromotionRule, rule_from_record, variant_fields

logger = logging.getLogger("tsc.store")

REGISTER_OPEN_CONSTRAINT = "uq_shift_register_open"


def _extract_constraint_name(exc: IntegrityError) -> str | None:
    cause = getattr(exc, "__cause__", None)
    diag = getattr(cause, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if isinstance(constraint_name, str) and constraint_name:
        return constraint_name
    return None


def _is_register_conflict(exc: IntegrityError) -> bool:
    if _extract_constraint_name(exc) == REGISTER_OPEN_CONSTRAINT:
        return True
    # SQLite reports the columns, not the constraint name.
    message = str(exc)
    return (
        REGISTER_OPEN_CONSTRAINT in message
        or "tsc_cash_shift.register_id" in message
    )


# ══════════════════════════════════════════════════════════════
# ROW ↔ VALUE MAPPING
# ══════════════════════════════════════════════════════════════

def _movement_from_row(row: CashMovementRecord) -> CashMovement:
    return CashMovement(
        movement_id=row.movement_id,
        shift_id=row.shift_id,
        type=row.type,
        reason=row.reason,
        amount=row.amount,
        running_balance=row.running_balance,
        occurred_at=row.occurred_at,
        sale_ref=row.sale_ref,
        description=row.description,
    )


def _shift_from_row(row: CashShiftRecord) -> CashShift:
    movements = tuple(
        _movement_from_row(m) for m in row.movements.order_by("position")
    )
    return CashShift(
        shift_id=row.shift_id,
        shift_number=row.shift_number,
        register_id=row.register_id,
        user_id=row.user_id,
        opening_cash=row.opening_cash,
        opened_at=row.opened_at,
        status=row.status,
        movements=movements,
        closing_expected_cash=row.closing_expected_cash,
        counted_cash=row.counted_cash,
        cash_difference=row.cash_difference,
        closed_at=row.closed_at,
        notes=row.notes,
        version=row.version,
    )


def _shift_fields(shift: CashShift) -> dict:
    return {
        "shift_number": shift.shift_number,
        "register_id": shift.register_id,
        "user_id": shift.user_id,
        "status": shift.status.value,
        "opening_cash": shift.opening_cash,
        "closing_expected_cash": shift.closing_expected_cash,
        "counted_cash": shift.counted_cash,
        "cash_difference": shift.cash_difference,
        "opened_at": shift.opened_at,
        "closed_at": shift.closed_at,
        "notes": shift.notes,
        "version": shift.version,
    }


def _movement_rows(shift: CashShift, start: int) -> List[CashMovementRecord]:
    return [
        CashMovementRecord(
            movement_id=m.movement_id,
            shift_id=shift.shift_id,
            position=position,
            type=m.type.value,
            reason=m.reason.value,
            amount=m.amount,
            running_balance=m.running_balance,
            occurred_at=m.occurred_at,
            sale_ref=m.sale_ref,
            description=m.description,
        )
        for position, m in enumerate(shift.movements[start:], start=start)
    ]


# ══════════════════════════════════════════════════════════════
# SHIFT STORE
# ══════════════════════════════════════════════════════════════

class DjangoShiftStore:
    """ShiftStore backed by the settlement_store app tables."""

    def create_open(self, shift: CashShift, *, one_per_user: bool) -> None:
        if not shift.is_open:
            raise ValidationError("create_open requires an OPEN shift.")
        try:
            with transaction.atomic():
                open_rows = CashShiftRecord.objects.select_for_update().filter(
                    status=ShiftStatusChoice.OPEN,
                )
                occupied = open_rows.filter(register_id=shift.register_id).first()
                if occupied is not None:
                    raise RegisterOccupiedError(
                        shift.register_id, occupied.shift_id,
                    )
                if one_per_user:
                    held = open_rows.filter(user_id=shift.user_id).first()
                    if held is not None:
                        raise UserShiftConflictError(shift.user_id, held.shift_id)

                CashShiftRecord.objects.create(
                    shift_id=shift.shift_id, **_shift_fields(shift),
                )
                CashMovementRecord.objects.bulk_create(_movement_rows(shift, 0))
        except IntegrityError as exc:
            if _is_register_conflict(exc):
                logger.warning(
                    f"Concurrent open lost on register {shift.register_id}"
                )
                occupied = self.find_open_by_register(shift.register_id)
                raise RegisterOccupiedError(
                    shift.register_id,
                    occupied.shift_id if occupied else None,
                ) from exc
            raise

        logger.debug(f"Stored new shift {shift.shift_id}")

    def replace(self, shift: CashShift, *, expected_version: int) -> None:
        with transaction.atomic():
            fields = _shift_fields(shift)
            updated = CashShiftRecord.objects.filter(
                shift_id=shift.shift_id, version=expected_version,
            ).update(**fields)
            if updated == 0:
                if not CashShiftRecord.objects.filter(
                    shift_id=shift.shift_id,
                ).exists():
                    raise UnknownShiftError(shift.shift_id)
                logger.warning(
                    f"Version conflict on shift {shift.shift_id}: "
                    f"expected={expected_version}"
                )
                raise ConcurrentModificationError(shift.shift_id, expected_version)

            stored = CashMovementRecord.objects.filter(
                shift_id=shift.shift_id,
            ).count()
            CashMovementRecord.objects.bulk_create(_movement_rows(shift, stored))

    def get(self, shift_id: str) -> Optional[CashShift]:
        row = CashShiftRecord.objects.filter(shift_id=shift_id).first()
        return _shift_from_row(row) if row is not None else None

    def find_open_by_register(self, register_id: str) -> Optional[CashShift]:
        row = CashShiftRecord.objects.filter(
            register_id=register_id, status=ShiftStatusChoice.OPEN,
        ).first()
        return _shift_from_row(row) if row is not None else None

    def find_open_by_user(self, user_id: str) -> Optional[CashShift]:
        row = CashShiftRecord.objects.filter(
            user_id=user_id, status=ShiftStatusChoice.OPEN,
        ).first()
        return _shift_from_row(row) if row is not None else None

    def count_opened_on(self, day: date, *, zone: tzinfo = timezone.utc) -> int:
        start = datetime.combine(day, time.min, tzinfo=zone)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
        return CashShiftRecord.objects.filter(
            opened_at__gte=start, opened_at__lt=end,
        ).count()

    def list_shifts(self, *, register_id: Optional[str] = None) -> List[CashShift]:
        rows = CashShiftRecord.objects.all()
        if register_id is not None:
            rows = rows.filter(register_id=register_id)
        return [_shift_from_row(row) for row in rows.order_by("opened_at", "shift_id")]


# ══════════════════════════════════════════════════════════════
# RULE REPOSITORY
# ══════════════════════════════════════════════════════════════

def _rule_from_row(row: PromotionRuleRecord) -> PromotionRule:
    return rule_from_record({
        "rule_id": row.rule_id,
        "name": row.name,
        "description": row.description,
        "type": row.type,
        "buy_qty": row.buy_qty,
        "pay_qty": row.pay_qty,
        "discount_percent": row.discount_percent,
        "fixed_price": row.fixed_price,
        "product_ids": row.product_ids,
        "start_date": row.start_date,
        "end_date": row.end_date,
        "days_of_week": row.days_of_week,
        "start_time": row.start_time,
        "end_time": row.end_time,
        "payment_method": row.payment_method,
        "active": row.active,
        "sequence": row.sequence,
        "deleted_at": row.deleted_at,
    })


class DjangoRuleRepository:
    """RuleRepository backed by tsc_promotion_rule. Rows are never deleted."""

    def next_sequence(self) -> int:
        current = PromotionRuleRecord.objects.aggregate(top=Max("sequence"))["top"]
        return (current or 0) + 1

    def save(self, rule: PromotionRule) -> None:
        fields = variant_fields(rule.variant)
        PromotionRuleRecord.objects.update_or_create(
            rule_id=rule.rule_id,
            defaults={
                "name": rule.name,
                "description": rule.description,
                "type": fields["type"],
                "buy_qty": fields["buy_qty"],
                "pay_qty": fields["pay_qty"],
                "discount_percent": fields["discount_percent"],
                "fixed_price": fields["fixed_price"],
                "product_ids": sorted(rule.product_ids),
                "start_date": rule.dates.start,
                "end_date": rule.dates.end,
                "days_of_week": rule.weekdays.to_csv(),
                "start_time": rule.hours.start if rule.hours else None,
                "end_time": rule.hours.end if rule.hours else None,
                "payment_method": rule.payment_method,
                "active": rule.active,
                "sequence": rule.sequence,
                "deleted_at": rule.deleted_at,
            },
        )

    def get(self, rule_id: str) -> Optional[PromotionRule]:
        row = PromotionRuleRecord.objects.filter(rule_id=rule_id).first()
        return _rule_from_row(row) if row is not None else None

    def list_rules(self, *, include_deleted: bool = False) -> List[PromotionRule]:
        rows = PromotionRuleRecord.objects.all()
        if not include_deleted:
            rows = rows.filter(deleted_at__isnull=True)
        return [_rule_from_row(row) for row in rows.order_by("sequence", "rule_id")]
