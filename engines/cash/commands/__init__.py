"""
TSC Cash Engine — Request Commands
=====================================
Typed shift requests. Amounts are normalized to Decimal cents at
construction; a request that fails validation never reaches a shift.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.errors import ValidationError
from core.primitives.money import to_money
from engines.cash.ledger import MovementReason, MovementType


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

CASH_SHIFT_OPEN_REQUEST = "cash.shift.open.request"
CASH_MOVEMENT_ADD_REQUEST = "cash.movement.add.request"
CASH_SALE_RECORD_REQUEST = "cash.sale.record.request"
CASH_SHIFT_CLOSE_REQUEST = "cash.shift.close.request"

CASH_COMMAND_TYPES = frozenset({
    CASH_SHIFT_OPEN_REQUEST,
    CASH_MOVEMENT_ADD_REQUEST,
    CASH_SALE_RECORD_REQUEST,
    CASH_SHIFT_CLOSE_REQUEST,
})


def _money(value, field: str, *, allow_zero: bool) -> Decimal:
    amount = to_money(value, field=field)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(
            f"{field} must be {'non-negative' if allow_zero else 'positive'}, "
            f"got {amount}."
        )
    return amount


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ShiftOpenRequest:
    register_id: str
    user_id: str
    opening_cash: Decimal

    command_type = CASH_SHIFT_OPEN_REQUEST

    def __post_init__(self):
        if not self.register_id:
            raise ValidationError("register_id must be non-empty.")
        if not self.user_id:
            raise ValidationError("user_id must be non-empty.")
        object.__setattr__(
            self, "opening_cash",
            _money(self.opening_cash, "opening_cash", allow_zero=True),
        )


@dataclass(frozen=True)
class MovementAddRequest:
    shift_id: str
    type: MovementType
    reason: MovementReason
    amount: Decimal
    description: Optional[str] = None
    sale_ref: Optional[str] = None

    command_type = CASH_MOVEMENT_ADD_REQUEST

    def __post_init__(self):
        if not self.shift_id:
            raise ValidationError("shift_id must be non-empty.")
        try:
            object.__setattr__(self, "type", MovementType(self.type))
            object.__setattr__(self, "reason", MovementReason(self.reason))
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        object.__setattr__(
            self, "amount", _money(self.amount, "amount", allow_zero=False),
        )


@dataclass(frozen=True)
class SaleRecordRequest:
    shift_id: str
    amount: Decimal
    affects_cash: bool
    sale_ref: Optional[str] = None

    command_type = CASH_SALE_RECORD_REQUEST

    def __post_init__(self):
        if not self.shift_id:
            raise ValidationError("shift_id must be non-empty.")
        object.__setattr__(
            self, "amount", _money(self.amount, "amount", allow_zero=False),
        )


@dataclass(frozen=True)
class ShiftCloseRequest:
    shift_id: str
    counted_cash: Decimal
    notes: Optional[str] = None

    command_type = CASH_SHIFT_CLOSE_REQUEST

    def __post_init__(self):
        if not self.shift_id:
            raise ValidationError("shift_id must be non-empty.")
        object.__setattr__(
            self, "counted_cash",
            _money(self.counted_cash, "counted_cash", allow_zero=True),
        )
