"""
Tests for engines.cash.services — shift lifecycle over a store.
"""

import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.commands.outcomes import attempt
from core.commands.rejection import ReasonCode
from core.config.rules import ReconciliationPolicy, ShiftPolicy
from core.errors import (
    ConcurrentModificationError,
    RegisterOccupiedError,
    ShiftClosedError,
    UnknownShiftError,
    UserShiftConflictError,
    ValidationError,
)
from core.events import InMemoryEventLog
from core.time.clock import FixedClock
from engines.cash.allocator import CashRegister, CashRegisterAllocator
from engines.cash.commands import ShiftCloseRequest, ShiftOpenRequest
from engines.cash.events import (
    CASH_MOVEMENT_RECORDED_V1,
    CASH_SHIFT_CLOSED_V1,
    CASH_SHIFT_OPENED_V1,
    CASH_SHIFT_REVIEW_REQUIRED_V1,
)
from engines.cash.ledger import MovementReason, MovementType, verify_ledger
from engines.cash.services import CashShiftService
from engines.cash.shift import ShiftStatus
from engines.cash.store import InMemoryShiftStore

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

REGISTERS = [
    CashRegister(register_id="CAJA-1", code="C1", name="Caja 1"),
    CashRegister(register_id="CAJA-2", code="C2", name="Caja 2"),
    CashRegister(register_id="CAJA-X", code="CX", is_active=False),
]


class SequentialIds:
    def __init__(self):
        self._n = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            self._n += 1
            return f"id-{self._n}"


def _service(*, store=None, review_threshold=None, one_per_user=True, sink=None):
    store = store or InMemoryShiftStore()
    allocator = CashRegisterAllocator(
        store, REGISTERS,
        policy=ShiftPolicy(one_open_shift_per_user=one_per_user),
    )
    return CashShiftService(
        store=store,
        allocator=allocator,
        reconciliation=ReconciliationPolicy(review_threshold=review_threshold),
        clock=FixedClock(NOW),
        event_sink=sink,
        id_factory=SequentialIds(),
    )


class FailingCloseStore(InMemoryShiftStore):
    """Store whose write fails when a shift is being sealed."""

    def replace(self, shift, *, expected_version):
        if not shift.is_open:
            raise RuntimeError("disk full")
        super().replace(shift, expected_version=expected_version)


# ══════════════════════════════════════════════════════════════
# LEDGER ARITHMETIC
# ══════════════════════════════════════════════════════════════

class TestLedgerArithmetic:
    def test_open_in_out_close_balances(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", Decimal("1000"))
        service.add_movement(shift_id, MovementType.IN, MovementReason.MANUAL_IN, Decimal("500"))
        service.add_movement(shift_id, "OUT", "MANUAL_OUT", "200", "Pago proveedor")

        summary = service.close(shift_id, Decimal("1300"))

        assert summary.expected_cash == Decimal("1300.00")
        assert summary.cash_difference == Decimal("0.00")
        assert summary.status is ShiftStatus.CLOSED

        shift = service.get_shift(shift_id)
        assert [m.reason for m in shift.movements] == [
            MovementReason.OPENING, MovementReason.MANUAL_IN,
            MovementReason.MANUAL_OUT, MovementReason.CLOSING,
        ]
        assert [m.running_balance for m in shift.movements] == [
            Decimal("1000.00"), Decimal("1500.00"),
            Decimal("1300.00"), Decimal("0.00"),
        ]
        assert shift.movements[-1].amount == Decimal("1300.00")
        assert verify_ledger(shift.movements).ok

    def test_open_returns_numbered_shift(self):
        service = _service()
        first = service.open("CAJA-1", "ana", 0)
        second = service.open("CAJA-2", "beto", 0)
        assert service.get_shift(first).shift_number == "TURNO-20260302-001"
        assert service.get_shift(second).shift_number == "TURNO-20260302-002"

    def test_movement_amount_must_be_positive(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 100)
        for amount in ("0", "-5"):
            with pytest.raises(ValidationError):
                service.add_movement(shift_id, "IN", "MANUAL_IN", amount)
        assert len(service.get_shift(shift_id).movements) == 1

    def test_lifecycle_reasons_not_accepted(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 100)
        with pytest.raises(ValidationError):
            service.add_movement(shift_id, "IN", "OPENING", "10")
        with pytest.raises(ValidationError):
            service.add_movement(shift_id, "IN", "REFUND", "10")


# ══════════════════════════════════════════════════════════════
# EXCLUSIVITY
# ══════════════════════════════════════════════════════════════

class TestExclusivity:
    def test_second_open_on_register_rejected(self):
        service = _service()
        first = service.open("CAJA-1", "ana", 1000)
        with pytest.raises(RegisterOccupiedError) as exc_info:
            service.open("CAJA-1", "beto", 500)
        assert exc_info.value.shift_id == first
        assert service.get_active("CAJA-1").shift_id == first

    def test_user_holds_one_open_shift(self):
        service = _service()
        service.open("CAJA-1", "ana", 1000)
        with pytest.raises(UserShiftConflictError):
            service.open("CAJA-2", "ana", 1000)

    def test_user_rule_can_be_disabled(self):
        service = _service(one_per_user=False)
        service.open("CAJA-1", "ana", 1000)
        assert service.open("CAJA-2", "ana", 1000)

    def test_register_free_again_after_close(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        service.close(shift_id, 1000)
        assert service.get_active("CAJA-1") is None
        assert service.open("CAJA-1", "beto", 0) != shift_id

    def test_unknown_or_inactive_register(self):
        service = _service()
        with pytest.raises(ValidationError, match="not found"):
            service.open("CAJA-99", "ana", 0)
        with pytest.raises(ValidationError, match="inactive"):
            service.open("CAJA-X", "ana", 0)

    def test_concurrent_opens_yield_one_shift(self):
        service = _service(one_per_user=False)
        barrier = threading.Barrier(8)
        results = []

        def worker(n):
            barrier.wait()
            results.append(attempt(service.open, "CAJA-1", f"user-{n}", 100))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        accepted = [r for r in results if r.is_accepted]
        rejected = [r for r in results if r.is_rejected]
        assert len(accepted) == 1
        assert len(rejected) == 7
        assert {r.reason.code for r in rejected} == {ReasonCode.REGISTER_OCCUPIED}


# ══════════════════════════════════════════════════════════════
# CLOSE
# ══════════════════════════════════════════════════════════════

class TestClose:
    def test_closed_shift_rejects_movements(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        service.close(shift_id, 1000)
        with pytest.raises(ShiftClosedError):
            service.add_movement(shift_id, "IN", "MANUAL_IN", "10")
        with pytest.raises(ShiftClosedError):
            service.close(shift_id, 1000)

    def test_difference_without_threshold_still_closes(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        summary = service.close(shift_id, 0)
        assert summary.cash_difference == Decimal("-1000.00")
        assert summary.status is ShiftStatus.CLOSED

    def test_difference_over_threshold_goes_to_review(self):
        service = _service(review_threshold="50")
        shift_id = service.open("CAJA-1", "ana", 1000)
        summary = service.close(shift_id, "900", notes="faltante")
        assert summary.cash_difference == Decimal("-100.00")
        assert summary.status is ShiftStatus.PENDING_REVIEW
        assert service.get_shift(shift_id).notes == "faltante"

    def test_difference_within_threshold_closes(self):
        service = _service(review_threshold="50")
        shift_id = service.open("CAJA-1", "ana", 1000)
        summary = service.close(shift_id, "1020")
        assert summary.cash_difference == Decimal("20.00")
        assert summary.status is ShiftStatus.CLOSED

    def test_failed_close_leaves_shift_open(self):
        service = _service(store=FailingCloseStore())
        shift_id = service.open("CAJA-1", "ana", 1000)

        with pytest.raises(RuntimeError):
            service.close(shift_id, 1000)

        shift = service.get_shift(shift_id)
        assert shift.status is ShiftStatus.OPEN
        assert shift.counted_cash is None
        assert len(shift.movements) == 1
        assert service.get_active("CAJA-1").shift_id == shift_id
        service.add_movement(shift_id, "IN", "MANUAL_IN", "5")

    def test_unknown_shift(self):
        with pytest.raises(UnknownShiftError):
            _service().close("nope", 0)


# ══════════════════════════════════════════════════════════════
# SALES, REQUESTS, EVENTS
# ══════════════════════════════════════════════════════════════

class TestSaleMovements:
    def test_non_cash_sale_is_noop(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        assert service.record_sale_movement(shift_id, "800", affects_cash=False) is None
        assert len(service.get_shift(shift_id).movements) == 1

    def test_cash_sale_recorded_as_sale_in(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        movement_id = service.record_sale_movement(
            shift_id, "800", affects_cash=True, sale_ref="V-0001",
        )
        movement = service.get_shift(shift_id).movements[-1]
        assert movement.movement_id == movement_id
        assert movement.reason is MovementReason.SALE
        assert movement.sale_ref == "V-0001"
        assert movement.running_balance == Decimal("1800.00")


class TestRequests:
    def test_execute_dispatches_typed_requests(self):
        service = _service()
        shift_id = service.execute(
            ShiftOpenRequest(register_id="CAJA-1", user_id="ana", opening_cash="100"),
        )
        summary = service.execute(ShiftCloseRequest(shift_id=shift_id, counted_cash="100"))
        assert summary.status is ShiftStatus.CLOSED

    def test_request_validation(self):
        with pytest.raises(ValidationError):
            ShiftOpenRequest(register_id="CAJA-1", user_id="ana", opening_cash="-1")

    def test_unknown_request_type(self):
        with pytest.raises(ValueError):
            _service().execute(object())


class TestStaleWrites:
    def test_store_rejects_stale_version(self):
        store = InMemoryShiftStore()
        service = _service(store=store)
        shift_id = service.open("CAJA-1", "ana", 1000)
        stale = store.get(shift_id)
        service.add_movement(shift_id, "IN", "MANUAL_IN", "10")

        updated, _ = stale.append(
            movement_id="late", type="IN", reason="MANUAL_IN",
            amount="1", occurred_at=NOW,
        )
        with pytest.raises(ConcurrentModificationError):
            store.replace(updated, expected_version=stale.version)


class TestAuditEvents:
    def test_lifecycle_events_emitted(self):
        sink = InMemoryEventLog(clock=FixedClock(NOW))
        service = _service(review_threshold="0", sink=sink)
        shift_id = service.open("CAJA-1", "ana", 1000)
        service.add_movement(shift_id, "IN", "SALE", "250")
        service.close(shift_id, 1200)

        assert sink.event_types() == [
            CASH_SHIFT_OPENED_V1,
            CASH_MOVEMENT_RECORDED_V1,
            CASH_SHIFT_CLOSED_V1,
            CASH_SHIFT_REVIEW_REQUIRED_V1,
        ]
        closed = sink.events(CASH_SHIFT_CLOSED_V1)[0].payload
        assert closed["cash_difference"] == "-50.00"
        assert closed["status"] == "PENDING_REVIEW"


class TestLocalShiftNumbering:
    def test_number_uses_store_day(self):
        store = InMemoryShiftStore()
        service = CashShiftService(
            store=store,
            allocator=CashRegisterAllocator(
                store, REGISTERS,
                policy=ShiftPolicy(timezone="America/Argentina/Buenos_Aires"),
            ),
            # 01:00 UTC on March 2 is 22:00 on March 1 in the store.
            clock=FixedClock(datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)),
            id_factory=SequentialIds(),
        )
        first = service.open("CAJA-1", "ana", 0)
        second = service.open("CAJA-2", "beto", 0)
        assert service.get_shift(first).shift_number == "TURNO-20260301-001"
        assert service.get_shift(second).shift_number == "TURNO-20260301-002"


class TestSaleBatch:
    def test_batch_recorded_in_one_write(self):
        store = InMemoryShiftStore()
        service = _service(store=store)
        shift_id = service.open("CAJA-1", "ana", 1000)
        version = store.get(shift_id).version

        ids = service.record_sale_movements(shift_id, ["300", "200"], sale_ref="V-7")

        shift = store.get(shift_id)
        assert [m.movement_id for m in shift.movements[1:]] == ids
        assert [m.running_balance for m in shift.movements[1:]] == [
            Decimal("1300.00"), Decimal("1500.00"),
        ]
        assert {m.sale_ref for m in shift.movements[1:]} == {"V-7"}
        assert shift.version == version + 2

    def test_empty_batch_writes_nothing(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        assert service.record_sale_movements(shift_id, []) == []
        assert len(service.get_shift(shift_id).movements) == 1

    def test_invalid_slice_rejects_whole_batch(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        with pytest.raises(ValidationError):
            service.record_sale_movements(shift_id, ["300", "0"])
        assert len(service.get_shift(shift_id).movements) == 1


class TestShiftLocks:
    def test_lock_released_after_close(self):
        service = _service()
        shift_id = service.open("CAJA-1", "ana", 1000)
        service.add_movement(shift_id, "IN", "MANUAL_IN", "10")
        assert shift_id in service._shift_locks

        service.close(shift_id, 1010)
        assert shift_id not in service._shift_locks

    def test_lock_kept_when_close_fails(self):
        service = _service(store=FailingCloseStore())
        shift_id = service.open("CAJA-1", "ana", 1000)
        with pytest.raises(RuntimeError):
            service.close(shift_id, 1000)
        assert shift_id in service._shift_locks
