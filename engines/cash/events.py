"""
TSC Cash Engine — Event Types and Payload Builders
=====================================================
Audit trail of shift lifecycle and ledger movements.
"""

from __future__ import annotations

from engines.cash.ledger import CashMovement
from engines.cash.shift import CashShift


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

CASH_SHIFT_OPENED_V1 = "cash.shift.opened.v1"
CASH_MOVEMENT_RECORDED_V1 = "cash.movement.recorded.v1"
CASH_SHIFT_CLOSED_V1 = "cash.shift.closed.v1"
CASH_SHIFT_REVIEW_REQUIRED_V1 = "cash.shift.review_required.v1"

CASH_EVENT_TYPES = (
    CASH_SHIFT_OPENED_V1,
    CASH_MOVEMENT_RECORDED_V1,
    CASH_SHIFT_CLOSED_V1,
    CASH_SHIFT_REVIEW_REQUIRED_V1,
)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def _base_payload(shift: CashShift) -> dict:
    return {
        "shift_id": shift.shift_id,
        "shift_number": shift.shift_number,
        "register_id": shift.register_id,
        "user_id": shift.user_id,
    }


def build_shift_opened_payload(shift: CashShift) -> dict:
    payload = _base_payload(shift)
    payload.update({
        "opening_cash": str(shift.opening_cash),
        "opened_at": shift.opened_at.isoformat(),
    })
    return payload


def build_movement_recorded_payload(
    shift: CashShift, movement: CashMovement,
) -> dict:
    payload = _base_payload(shift)
    payload.update({
        "movement_id": movement.movement_id,
        "type": movement.type.value,
        "reason": movement.reason.value,
        "amount": str(movement.amount),
        "running_balance": str(movement.running_balance),
        "sale_ref": movement.sale_ref,
        "occurred_at": movement.occurred_at.isoformat(),
    })
    return payload


def build_shift_closed_payload(shift: CashShift) -> dict:
    payload = _base_payload(shift)
    payload.update({
        "status": shift.status.value,
        "expected_cash": str(shift.closing_expected_cash),
        "counted_cash": str(shift.counted_cash),
        "cash_difference": str(shift.cash_difference),
        "closed_at": shift.closed_at.isoformat() if shift.closed_at else None,
        "notes": shift.notes,
    })
    return payload
