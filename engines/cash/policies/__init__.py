"""
TSC Cash Engine — Policies
============================
Guards run by the shift service before touching the store. Each guard
raises the typed error whose corrective action the operator needs.
"""

from __future__ import annotations

from typing import Optional

from core.errors import ShiftClosedError, UnknownShiftError, ValidationError
from engines.cash.ledger import LIFECYCLE_REASONS, MovementReason
from engines.cash.shift import CashShift


def shift_must_exist_policy(
    shift_id: str, shift: Optional[CashShift],
) -> CashShift:
    if shift is None:
        raise UnknownShiftError(shift_id)
    return shift


def shift_must_be_open_policy(shift: CashShift) -> None:
    """Only open shifts accept movements or a close."""
    if not shift.is_open:
        raise ShiftClosedError(shift.shift_id, shift.status.value)


def manual_reason_policy(reason: MovementReason | str) -> MovementReason:
    """OPENING and CLOSING belong to the lifecycle, not to callers."""
    try:
        value = MovementReason(reason)
    except ValueError as exc:
        raise ValidationError(f"Unknown movement reason '{reason}'.") from exc
    if value in LIFECYCLE_REASONS:
        raise ValidationError(
            f"{value.value} movements are written by open/close only."
        )
    return value
