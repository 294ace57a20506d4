"""
TSC Cash Engine — Register Allocator
======================================
At most one OPEN shift per register.

Occupancy is never stored on the register: it is derived from the
shift store (a register is occupied iff an OPEN shift references it).
The atomic check-and-create itself is delegated to
ShiftStore.create_open.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Iterable, List, Optional

from core.config.rules import ShiftPolicy
from core.errors import RegisterOccupiedError, ValidationError
from engines.cash.shift import CashShift
from engines.cash.store import ShiftStore

logger = logging.getLogger("tsc.cash")


@dataclass(frozen=True)
class CashRegister:
    register_id: str
    code: str
    name: str = ""
    is_active: bool = True

    def __post_init__(self):
        if not self.register_id:
            raise ValidationError("register_id must be non-empty.")
        if not self.code:
            raise ValidationError("code must be non-empty.")


@dataclass(frozen=True)
class RegisterOccupancy:
    register: CashRegister
    occupied: bool
    shift_id: Optional[str] = None
    user_id: Optional[str] = None


class CashRegisterAllocator:
    """Register catalogue plus exclusive allocation of registers to shifts."""

    def __init__(
        self,
        store: ShiftStore,
        registers: Iterable[CashRegister] = (),
        *,
        policy: Optional[ShiftPolicy] = None,
    ):
        self._store = store
        self._policy = policy or ShiftPolicy()
        self._registers: Dict[str, CashRegister] = {}
        self._lock = Lock()
        for register in registers:
            self.add_register(register)

    @property
    def policy(self) -> ShiftPolicy:
        return self._policy

    # ── catalogue ─────────────────────────────────────────────

    def add_register(self, register: CashRegister) -> None:
        with self._lock:
            for existing in self._registers.values():
                if (
                    existing.code == register.code
                    and existing.register_id != register.register_id
                ):
                    raise ValidationError(
                        f"Register code '{register.code}' already in use."
                    )
            self._registers[register.register_id] = register

    def get_register(self, register_id: str) -> Optional[CashRegister]:
        with self._lock:
            return self._registers.get(register_id)

    def list_registers(self, *, include_inactive: bool = False) -> List[RegisterOccupancy]:
        with self._lock:
            registers = sorted(self._registers.values(), key=lambda r: r.code)
        result = []
        for register in registers:
            if not register.is_active and not include_inactive:
                continue
            shift = self._store.find_open_by_register(register.register_id)
            result.append(
                RegisterOccupancy(
                    register=register,
                    occupied=shift is not None,
                    shift_id=shift.shift_id if shift else None,
                    user_id=shift.user_id if shift else None,
                )
            )
        return result

    # ── allocation ────────────────────────────────────────────

    def is_occupied(self, register_id: str) -> bool:
        return self._store.find_open_by_register(register_id) is not None

    def require_usable(self, register_id: str) -> CashRegister:
        """Known and active; occupancy is checked atomically at allocate()."""
        register = self.get_register(register_id)
        if register is None:
            raise ValidationError(f"Register '{register_id}' not found.")
        if not register.is_active:
            raise ValidationError(f"Register '{register_id}' is inactive.")
        return register

    def allocate(self, shift: CashShift) -> None:
        """Store a freshly opened shift, claiming its register."""
        self.require_usable(shift.register_id)
        try:
            self._store.create_open(
                shift, one_per_user=self._policy.one_open_shift_per_user,
            )
        except RegisterOccupiedError:
            logger.warning(
                f"Register {shift.register_id} occupied; open refused "
                f"for user {shift.user_id}"
            )
            raise
