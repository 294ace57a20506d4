"""
TSC Cash Engine — Shift Service
==================================
open → add_movement* → close over a ShiftStore.

Concurrency:
- open: the allocator delegates to ShiftStore.create_open, an atomic
  check-and-create per register.
- add_movement / record_sale_movements / close: serialized per shift
  by an in-process lock (dropped once the shift is sealed),
  then written with a version compare-and-swap so a second process
  racing on the same shift gets ConcurrentModificationError.
- A failed store write leaves the previous shift value in place: a
  close that fails is observably still OPEN, and a sale split written
  with record_sale_movements lands whole or not at all.

No operation retries. A blind retry of a financial mutation could
record a movement twice.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.config.rules import ReconciliationPolicy
from core.errors import ShiftClosedError
from core.events.log import EventSink
from core.time.clock import Clock, get_default_clock
from core.time.temporal import local_moment
from engines.cash.allocator import CashRegisterAllocator
from engines.cash.commands import (
    MovementAddRequest,
    SaleRecordRequest,
    ShiftCloseRequest,
    ShiftOpenRequest,
)
from engines.cash.events import (
    CASH_MOVEMENT_RECORDED_V1,
    CASH_SHIFT_CLOSED_V1,
    CASH_SHIFT_OPENED_V1,
    CASH_SHIFT_REVIEW_REQUIRED_V1,
    build_movement_recorded_payload,
    build_shift_closed_payload,
    build_shift_opened_payload,
)
from engines.cash.ledger import CashMovement, MovementReason, MovementType
from engines.cash.policies import (
    manual_reason_policy,
    shift_must_be_open_policy,
    shift_must_exist_policy,
)
from engines.cash.shift import CashShift, CloseSummary, ShiftStatus, format_shift_number
from engines.cash.store import ShiftStore

logger = logging.getLogger("tsc.cash")


def _uuid_str() -> str:
    return str(uuid.uuid4())


class CashShiftService:
    """Cash shift lifecycle service."""

    def __init__(
        self,
        *,
        store: ShiftStore,
        allocator: CashRegisterAllocator,
        reconciliation: Optional[ReconciliationPolicy] = None,
        clock: Optional[Clock] = None,
        event_sink: Optional[EventSink] = None,
        id_factory: Callable[[], str] = _uuid_str,
    ):
        self._store = store
        self._allocator = allocator
        self._reconciliation = reconciliation or ReconciliationPolicy()
        self._clock = clock or get_default_clock()
        self._event_sink = event_sink
        self._new_id = id_factory
        self._shift_locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()

        self._handlers = {
            ShiftOpenRequest: lambda r: self.open(
                r.register_id, r.user_id, r.opening_cash),
            MovementAddRequest: lambda r: self.add_movement(
                r.shift_id, r.type, r.reason, r.amount,
                description=r.description, sale_ref=r.sale_ref),
            SaleRecordRequest: lambda r: self.record_sale_movement(
                r.shift_id, r.amount, r.affects_cash, sale_ref=r.sale_ref),
            ShiftCloseRequest: lambda r: self.close(
                r.shift_id, r.counted_cash, notes=r.notes),
        }

    @property
    def allocator(self) -> CashRegisterAllocator:
        return self._allocator

    # ── commands ──────────────────────────────────────────────

    def open(
        self,
        register_id: str,
        user_id: str,
        opening_cash: Decimal | int | str,
    ) -> str:
        """Open a shift on a free register. Returns the new shift id."""
        opened_at = self._clock.now_utc()
        zone = self._allocator.policy.zone
        day = local_moment(opened_at, zone).date()
        shift = CashShift.open(
            shift_id=self._new_id(),
            shift_number=format_shift_number(
                day, self._store.count_opened_on(day, zone=zone) + 1,
            ),
            register_id=register_id,
            user_id=user_id,
            opening_cash=opening_cash,
            opened_at=opened_at,
            movement_id=self._new_id(),
        )
        self._allocator.allocate(shift)

        logger.info(
            f"Shift opened: {shift.shift_number} ({shift.shift_id}) on "
            f"register {register_id} by {user_id}, float={shift.opening_cash}"
        )
        self._emit(CASH_SHIFT_OPENED_V1, build_shift_opened_payload(shift))
        return shift.shift_id

    def add_movement(
        self,
        shift_id: str,
        type: MovementType | str,
        reason: MovementReason | str,
        amount: Decimal | int | str,
        description: Optional[str] = None,
        *,
        sale_ref: Optional[str] = None,
    ) -> str:
        """Append a SALE / MANUAL_IN / MANUAL_OUT movement. Returns its id."""
        reason = manual_reason_policy(reason)
        with self._lock_for(shift_id):
            current = self._load_open(shift_id)
            updated, movement = current.append(
                movement_id=self._new_id(),
                type=type,
                reason=reason,
                amount=amount,
                occurred_at=self._clock.now_utc(),
                sale_ref=sale_ref,
                description=description,
            )
            self._store.replace(updated, expected_version=current.version)

        logger.info(
            f"Movement {movement.type.value}/{movement.reason.value} "
            f"{movement.amount} on shift {shift_id}, "
            f"balance={movement.running_balance}"
        )
        self._emit(
            CASH_MOVEMENT_RECORDED_V1,
            build_movement_recorded_payload(updated, movement),
        )
        return movement.movement_id

    def record_sale_movement(
        self,
        shift_id: str,
        amount: Decimal | int | str,
        affects_cash: bool,
        *,
        sale_ref: Optional[str] = None,
    ) -> Optional[str]:
        """
        Ledger the net cash owed by a sale. Non-cash payments never
        touch the drawer and return None.
        """
        if not affects_cash:
            return None
        return self.add_movement(
            shift_id, MovementType.IN, MovementReason.SALE, amount,
            sale_ref=sale_ref,
        )

    def record_sale_movements(
        self,
        shift_id: str,
        amounts: Iterable[Decimal | int | str],
        *,
        sale_ref: Optional[str] = None,
    ) -> List[str]:
        """
        Ledger every cash slice of one sale in a single store write.

        Either all SALE movements are recorded or none is. Returns their
        ids in input order.
        """
        amounts = list(amounts)
        if not amounts:
            return []
        recorded: List[Tuple[CashShift, CashMovement]] = []
        with self._lock_for(shift_id):
            current = self._load_open(shift_id)
            updated = current
            occurred_at = self._clock.now_utc()
            for amount in amounts:
                updated, movement = updated.append(
                    movement_id=self._new_id(),
                    type=MovementType.IN,
                    reason=MovementReason.SALE,
                    amount=amount,
                    occurred_at=occurred_at,
                    sale_ref=sale_ref,
                )
                recorded.append((updated, movement))
            self._store.replace(updated, expected_version=current.version)

        logger.info(
            f"Sale {sale_ref or '-'}: {len(recorded)} cash movements on "
            f"shift {shift_id}, balance={updated.balance}"
        )
        for snapshot, movement in recorded:
            self._emit(
                CASH_MOVEMENT_RECORDED_V1,
                build_movement_recorded_payload(snapshot, movement),
            )
        return [movement.movement_id for _, movement in recorded]

    def close(
        self,
        shift_id: str,
        counted_cash: Decimal | int | str,
        notes: Optional[str] = None,
    ) -> CloseSummary:
        with self._lock_for(shift_id):
            current = self._load_open(shift_id)
            closed = current.close(
                counted_cash=counted_cash,
                policy=self._reconciliation,
                closed_at=self._clock.now_utc(),
                movement_id=self._new_id(),
                notes=notes,
            )
            self._store.replace(closed, expected_version=current.version)
        self._drop_lock(shift_id)

        summary = closed.close_summary()
        log = logger.warning if summary.status is ShiftStatus.PENDING_REVIEW else logger.info
        log(
            f"Shift closed: {closed.shift_number} ({shift_id}) "
            f"expected={summary.expected_cash} counted={summary.counted_cash} "
            f"difference={summary.cash_difference} status={summary.status.value}"
        )
        payload = build_shift_closed_payload(closed)
        self._emit(CASH_SHIFT_CLOSED_V1, payload)
        if summary.status is ShiftStatus.PENDING_REVIEW:
            self._emit(CASH_SHIFT_REVIEW_REQUIRED_V1, payload)
        return summary

    def execute(self, request):
        """Dispatch a typed request to its operation."""
        handler = self._handlers.get(type(request))
        if handler is None:
            raise ValueError(
                f"No handler for request type {type(request).__name__}."
            )
        return handler(request)

    # ── queries ───────────────────────────────────────────────

    def get_active(self, register_id: str) -> Optional[CashShift]:
        return self._store.find_open_by_register(register_id)

    def get_shift(self, shift_id: str) -> CashShift:
        return shift_must_exist_policy(shift_id, self._store.get(shift_id))

    # ── internals ─────────────────────────────────────────────

    def _load_open(self, shift_id: str) -> CashShift:
        shift = self.get_shift(shift_id)
        try:
            shift_must_be_open_policy(shift)
        except ShiftClosedError:
            logger.warning(
                f"Mutation refused on shift {shift_id}: status={shift.status.value}"
            )
            raise
        return shift

    def _lock_for(self, shift_id: str) -> Lock:
        with self._locks_guard:
            lock = self._shift_locks.get(shift_id)
            if lock is None:
                lock = Lock()
                self._shift_locks[shift_id] = lock
            return lock

    def _drop_lock(self, shift_id: str) -> None:
        """Sealed shifts never mutate again; their lock is not kept."""
        with self._locks_guard:
            self._shift_locks.pop(shift_id, None)

    def _emit(self, event_type: str, payload: dict) -> None:
        if self._event_sink is not None:
            self._event_sink.emit(event_type, payload)
