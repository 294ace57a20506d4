"""
TSC Cash Engine — Movement Ledger
===================================
Append-only cash movements of one shift.

Ledger invariant:
    running_balance[k] = running_balance[k-1] + (amount if IN else -amount)
    running_balance[0] = opening cash (the OPENING movement)

Movements are never edited or deleted once written.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Sequence

from core.errors import ValidationError
from core.primitives.money import ZERO, to_money


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class MovementReason(str, Enum):
    OPENING = "OPENING"
    CLOSING = "CLOSING"
    SALE = "SALE"
    MANUAL_IN = "MANUAL_IN"
    MANUAL_OUT = "MANUAL_OUT"


# Each reason has exactly one direction.
REASON_DIRECTION = {
    MovementReason.OPENING: MovementType.IN,
    MovementReason.CLOSING: MovementType.OUT,
    MovementReason.SALE: MovementType.IN,
    MovementReason.MANUAL_IN: MovementType.IN,
    MovementReason.MANUAL_OUT: MovementType.OUT,
}

# Written by the shift lifecycle itself, never by add_movement.
LIFECYCLE_REASONS = frozenset({MovementReason.OPENING, MovementReason.CLOSING})


@dataclass(frozen=True)
class CashMovement:
    """
    One signed change to a shift's cash balance.

    OPENING and CLOSING may carry zero (empty float, empty drawer);
    every other movement needs a positive amount.
    """

    movement_id: str
    shift_id: str
    type: MovementType
    reason: MovementReason
    amount: Decimal
    running_balance: Decimal
    occurred_at: datetime
    sale_ref: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        if not self.movement_id:
            raise ValidationError("movement_id must be non-empty.")
        object.__setattr__(self, "type", MovementType(self.type))
        object.__setattr__(self, "reason", MovementReason(self.reason))
        if REASON_DIRECTION[self.reason] is not self.type:
            raise ValidationError(
                f"Reason {self.reason.value} requires type "
                f"{REASON_DIRECTION[self.reason].value}, got {self.type.value}."
            )
        amount = to_money(self.amount)
        if amount < 0 or (amount == 0 and self.reason not in LIFECYCLE_REASONS):
            raise ValidationError(
                f"Movement amount must be positive, got {amount}."
            )
        object.__setattr__(self, "amount", amount)
        object.__setattr__(
            self, "running_balance",
            to_money(self.running_balance, field="running_balance"),
        )

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type is MovementType.IN else -self.amount


def next_balance(
    balance: Decimal, movement_type: MovementType, amount: Decimal,
) -> Decimal:
    if MovementType(movement_type) is MovementType.IN:
        return balance + amount
    return balance - amount


def expected_cash(movements: Sequence[CashMovement]) -> Decimal:
    """
    Opening cash plus every IN minus every OUT, re-derived from the
    amounts rather than trusted from the stored running balances.
    """
    return sum((m.signed_amount for m in movements), ZERO)


# ══════════════════════════════════════════════════════════════
# VERIFICATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LedgerVerification:
    ok: bool
    movement_count: int
    first_bad_index: Optional[int] = None
    expected_balance: Optional[Decimal] = None
    recorded_balance: Optional[Decimal] = None


def verify_ledger(movements: Sequence[CashMovement]) -> LedgerVerification:
    """
    Re-derive running balances and report the first entry that does
    not match, or an ordering problem (first entry not OPENING).
    """
    balance = ZERO
    for idx, movement in enumerate(movements):
        if (idx == 0) != (movement.reason is MovementReason.OPENING):
            return LedgerVerification(
                ok=False,
                movement_count=len(movements),
                first_bad_index=idx,
                recorded_balance=movement.running_balance,
            )
        balance = next_balance(balance, movement.type, movement.amount)
        if balance != movement.running_balance:
            return LedgerVerification(
                ok=False,
                movement_count=len(movements),
                first_bad_index=idx,
                expected_balance=balance,
                recorded_balance=movement.running_balance,
            )
    return LedgerVerification(ok=True, movement_count=len(movements))
