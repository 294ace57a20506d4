"""
TSC Cash Engine — Cash Shift State Machine
============================================
    absent → OPEN → CLOSED | PENDING_REVIEW

CLOSED and PENDING_REVIEW are terminal. A CashShift is an immutable
value: every transition returns a new shift with version + 1, which
the store swaps in with a version check. A failed swap leaves the
previous (OPEN) value in place, so no partial close is observable.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

from core.config.rules import ReconciliationPolicy
from core.errors import ShiftClosedError, ValidationError
from core.primitives.money import ZERO, to_money
from engines.cash.ledger import (
    LIFECYCLE_REASONS,
    REASON_DIRECTION,
    CashMovement,
    MovementReason,
    MovementType,
    expected_cash,
    next_balance,
)

SHIFT_NUMBER_PREFIX = "TURNO"


class ShiftStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    PENDING_REVIEW = "PENDING_REVIEW"

    @property
    def is_terminal(self) -> bool:
        return self is not ShiftStatus.OPEN


def format_shift_number(day: date, sequence: int) -> str:
    """TURNO-20260302-001: per-day opening sequence."""
    if sequence < 1:
        raise ValidationError("shift sequence must start at 1.")
    return f"{SHIFT_NUMBER_PREFIX}-{day.strftime('%Y%m%d')}-{sequence:03d}"


@dataclass(frozen=True)
class CloseSummary:
    shift_id: str
    expected_cash: Decimal
    counted_cash: Decimal
    cash_difference: Decimal
    status: ShiftStatus


@dataclass(frozen=True)
class ShiftSummary:
    shift_id: str
    status: ShiftStatus
    opening_cash: Decimal
    total_in: Decimal
    total_out: Decimal
    balance: Decimal
    sale_count: int
    movement_count: int
    totals_by_reason: Dict[str, Decimal]


@dataclass(frozen=True)
class CashShift:
    """
    One register's cash position over a work shift.

    Fields set only at close: counted_cash, cash_difference,
    closing_expected_cash, closed_at, notes.
    """

    shift_id: str
    shift_number: str
    register_id: str
    user_id: str
    opening_cash: Decimal
    opened_at: datetime
    status: ShiftStatus = ShiftStatus.OPEN
    movements: Tuple[CashMovement, ...] = field(default_factory=tuple)
    closing_expected_cash: Optional[Decimal] = None
    counted_cash: Optional[Decimal] = None
    cash_difference: Optional[Decimal] = None
    closed_at: Optional[datetime] = None
    notes: Optional[str] = None
    version: int = 1

    def __post_init__(self):
        for name in ("shift_id", "register_id", "user_id"):
            if not getattr(self, name):
                raise ValidationError(f"{name} must be non-empty.")
        opening = to_money(self.opening_cash, field="opening_cash")
        if opening < 0:
            raise ValidationError("opening_cash must be non-negative.")
        object.__setattr__(self, "opening_cash", opening)
        object.__setattr__(self, "status", ShiftStatus(self.status))
        object.__setattr__(self, "movements", tuple(self.movements))

    # ── transitions ───────────────────────────────────────────

    @classmethod
    def open(
        cls,
        *,
        shift_id: str,
        shift_number: str,
        register_id: str,
        user_id: str,
        opening_cash: Decimal | int | str,
        opened_at: datetime,
        movement_id: str,
    ) -> CashShift:
        """New OPEN shift whose ledger starts with the OPENING movement."""
        opening = to_money(opening_cash, field="opening_cash")
        opening_movement = CashMovement(
            movement_id=movement_id,
            shift_id=shift_id,
            type=MovementType.IN,
            reason=MovementReason.OPENING,
            amount=opening,
            running_balance=opening,
            occurred_at=opened_at,
            description="Apertura de turno",
        )
        return cls(
            shift_id=shift_id,
            shift_number=shift_number,
            register_id=register_id,
            user_id=user_id,
            opening_cash=opening,
            opened_at=opened_at,
            movements=(opening_movement,),
        )

    def append(
        self,
        *,
        movement_id: str,
        type: MovementType | str,
        reason: MovementReason | str,
        amount: Decimal | int | str,
        occurred_at: datetime,
        sale_ref: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Tuple[CashShift, CashMovement]:
        self._require_open()
        reason = MovementReason(reason)
        if reason in LIFECYCLE_REASONS:
            raise ValidationError(
                f"{reason.value} movements are written by open/close only."
            )
        movement_type = MovementType(type)
        value = to_money(amount)
        if value <= 0:
            raise ValidationError(f"Movement amount must be positive, got {value}.")
        movement = CashMovement(
            movement_id=movement_id,
            shift_id=self.shift_id,
            type=movement_type,
            reason=reason,
            amount=value,
            running_balance=next_balance(self.balance, movement_type, value),
            occurred_at=occurred_at,
            sale_ref=sale_ref,
            description=description,
        )
        return self._advance(movements=self.movements + (movement,)), movement

    def close(
        self,
        *,
        counted_cash: Decimal | int | str,
        policy: ReconciliationPolicy,
        closed_at: datetime,
        movement_id: str,
        notes: Optional[str] = None,
    ) -> CashShift:
        """Seal the shift: reconcile and write the CLOSING movement."""
        self._require_open()
        counted = to_money(counted_cash, field="counted_cash")
        if counted < 0:
            raise ValidationError("counted_cash must be non-negative.")
        expected = self.expected_cash
        difference = counted - expected
        closing = CashMovement(
            movement_id=movement_id,
            shift_id=self.shift_id,
            type=REASON_DIRECTION[MovementReason.CLOSING],
            reason=MovementReason.CLOSING,
            amount=counted,
            running_balance=next_balance(self.balance, MovementType.OUT, counted),
            occurred_at=closed_at,
            description="Cierre de turno",
        )
        status = (
            ShiftStatus.PENDING_REVIEW if policy.requires_review(difference)
            else ShiftStatus.CLOSED
        )
        return self._advance(
            movements=self.movements + (closing,),
            status=status,
            closing_expected_cash=expected,
            counted_cash=counted,
            cash_difference=difference,
            closed_at=closed_at,
            notes=notes,
        )

    # ── read side ─────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self.status is ShiftStatus.OPEN

    @property
    def balance(self) -> Decimal:
        """Running balance after the last movement."""
        if not self.movements:
            return self.opening_cash
        return self.movements[-1].running_balance

    @property
    def expected_cash(self) -> Decimal:
        """Fixed at close; derived from the ledger while OPEN."""
        if self.closing_expected_cash is not None:
            return self.closing_expected_cash
        return expected_cash(self.movements)

    def close_summary(self) -> CloseSummary:
        if not self.status.is_terminal:
            raise ValidationError(f"Cash shift '{self.shift_id}' is still open.")
        return CloseSummary(
            shift_id=self.shift_id,
            expected_cash=self.closing_expected_cash,
            counted_cash=self.counted_cash,
            cash_difference=self.cash_difference,
            status=self.status,
        )

    def summary(self) -> ShiftSummary:
        totals: Dict[str, Decimal] = {}
        total_in = ZERO
        total_out = ZERO
        sales = 0
        for movement in self.movements:
            key = movement.reason.value
            totals[key] = totals.get(key, ZERO) + movement.amount
            if movement.type is MovementType.IN:
                total_in += movement.amount
            else:
                total_out += movement.amount
            if movement.reason is MovementReason.SALE:
                sales += 1
        return ShiftSummary(
            shift_id=self.shift_id,
            status=self.status,
            opening_cash=self.opening_cash,
            total_in=total_in,
            total_out=total_out,
            balance=self.balance,
            sale_count=sales,
            movement_count=len(self.movements),
            totals_by_reason=totals,
        )

    # ── internals ─────────────────────────────────────────────

    def _require_open(self) -> None:
        if not self.is_open:
            raise ShiftClosedError(self.shift_id, self.status.value)

    def _advance(self, **changes) -> CashShift:
        return replace(self, version=self.version + 1, **changes)
