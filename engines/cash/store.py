"""
TSC Cash Engine — Shift Store
===============================
Durable-store seam for cash shifts.

Contract every implementation honours:
- create_open is an atomic check-and-create: two concurrent opens on
  one register cannot both succeed.
- replace is a compare-and-swap on version: the new value is stored
  only if the stored version still equals expected_version, and the
  whole new value (status + appended movements) lands at once.
"""

from __future__ import annotations

import logging
from datetime import date, timezone, tzinfo
from threading import Lock
from typing import Dict, List, Optional, Protocol

from core.errors import (
    ConcurrentModificationError,
    RegisterOccupiedError,
    UnknownShiftError,
    UserShiftConflictError,
    ValidationError,
)
from engines.cash.shift import CashShift

logger = logging.getLogger("tsc.store")


class ShiftStore(Protocol):
    def create_open(self, shift: CashShift, *, one_per_user: bool) -> None:
        ...  # pragma: no cover

    def replace(self, shift: CashShift, *, expected_version: int) -> None:
        ...  # pragma: no cover

    def get(self, shift_id: str) -> Optional[CashShift]:
        ...  # pragma: no cover

    def find_open_by_register(self, register_id: str) -> Optional[CashShift]:
        ...  # pragma: no cover

    def find_open_by_user(self, user_id: str) -> Optional[CashShift]:
        ...  # pragma: no cover

    def count_opened_on(self, day: date, *, zone: tzinfo = timezone.utc) -> int:
        """Shifts whose opened_at falls on day in the given zone."""
        ...  # pragma: no cover

    def list_shifts(self, *, register_id: Optional[str] = None) -> List[CashShift]:
        ...  # pragma: no cover


class InMemoryShiftStore:
    """Lock-guarded dict store for tests and single-process use."""

    def __init__(self):
        self._shifts: Dict[str, CashShift] = {}
        self._lock = Lock()

    def create_open(self, shift: CashShift, *, one_per_user: bool) -> None:
        if not shift.is_open:
            raise ValidationError("create_open requires an OPEN shift.")
        with self._lock:
            if shift.shift_id in self._shifts:
                raise ValidationError(
                    f"Cash shift '{shift.shift_id}' already exists."
                )
            occupied = self._open_where(register_id=shift.register_id)
            if occupied is not None:
                raise RegisterOccupiedError(shift.register_id, occupied.shift_id)
            if one_per_user:
                held = self._open_where(user_id=shift.user_id)
                if held is not None:
                    raise UserShiftConflictError(shift.user_id, held.shift_id)
            self._shifts[shift.shift_id] = shift

    def replace(self, shift: CashShift, *, expected_version: int) -> None:
        with self._lock:
            current = self._shifts.get(shift.shift_id)
            if current is None:
                raise UnknownShiftError(shift.shift_id)
            if current.version != expected_version:
                logger.warning(
                    f"Version conflict on shift {shift.shift_id}: "
                    f"stored={current.version} expected={expected_version}"
                )
                raise ConcurrentModificationError(shift.shift_id, expected_version)
            self._shifts[shift.shift_id] = shift

    def get(self, shift_id: str) -> Optional[CashShift]:
        with self._lock:
            return self._shifts.get(shift_id)

    def find_open_by_register(self, register_id: str) -> Optional[CashShift]:
        with self._lock:
            return self._open_where(register_id=register_id)

    def find_open_by_user(self, user_id: str) -> Optional[CashShift]:
        with self._lock:
            return self._open_where(user_id=user_id)

    def count_opened_on(self, day: date, *, zone: tzinfo = timezone.utc) -> int:
        with self._lock:
            return sum(
                1 for s in self._shifts.values()
                if s.opened_at.astimezone(zone).date() == day
            )

    def list_shifts(self, *, register_id: Optional[str] = None) -> List[CashShift]:
        with self._lock:
            shifts = list(self._shifts.values())
        if register_id is not None:
            shifts = [s for s in shifts if s.register_id == register_id]
        return sorted(shifts, key=lambda s: (s.opened_at, s.shift_id))

    def _open_where(
        self, *, register_id: Optional[str] = None, user_id: Optional[str] = None,
    ) -> Optional[CashShift]:
        for shift in self._shifts.values():
            if not shift.is_open:
                continue
            if register_id is not None and shift.register_id != register_id:
                continue
            if user_id is not None and shift.user_id != user_id:
                continue
            return shift
        return None
