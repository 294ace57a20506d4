"""
TSC Command Layer — Command Outcome Contract
===============================================
A mutation either returns confirmed new state or a typed failure.

ACCEPTED → the mutation happened; `value` holds the confirmed state.
REJECTED → nothing changed; `reason` explains why.

Core services raise SettlementError subclasses. `attempt()` is the
boundary that converts them into outcomes for callers that must not
expose speculative state (UI-level flows).

Rules:
- Outcome is immutable (frozen dataclass)
- REJECTED must contain reason (RejectionReason)
- ACCEPTED must NOT contain reason
- occurred_at is mandatory
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from core.commands.rejection import RejectionReason
from core.errors import SettlementError
from core.time.clock import Clock, get_default_clock

logger = logging.getLogger("tsc.commands")


# ══════════════════════════════════════════════════════════════
# COMMAND STATUS
# ══════════════════════════════════════════════════════════════

class CommandStatus(Enum):
    """Binary decision. No middle ground."""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


# ══════════════════════════════════════════════════════════════
# COMMAND OUTCOME
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CommandOutcome:
    """
    Result of one mutation attempt.

    Invariants:
        - REJECTED + reason is None → ValueError
        - ACCEPTED + reason is not None → ValueError
    """

    status: CommandStatus
    occurred_at: datetime
    value: Any = None
    reason: Optional[RejectionReason] = None

    def __post_init__(self):
        if not isinstance(self.status, CommandStatus):
            raise ValueError(
                f"status must be CommandStatus, got {type(self.status).__name__}."
            )

        if self.status == CommandStatus.REJECTED and self.reason is None:
            raise ValueError(
                "REJECTED outcome must include a RejectionReason. "
                "No silent rejections allowed."
            )

        if self.status == CommandStatus.ACCEPTED and self.reason is not None:
            raise ValueError(
                "ACCEPTED outcome must NOT include a RejectionReason."
            )

        if not isinstance(self.occurred_at, datetime):
            raise ValueError("occurred_at must be a datetime.")

    @property
    def is_accepted(self) -> bool:
        return self.status == CommandStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status == CommandStatus.REJECTED

    @classmethod
    def accepted(cls, value: Any, occurred_at: datetime) -> "CommandOutcome":
        return cls(
            status=CommandStatus.ACCEPTED,
            occurred_at=occurred_at,
            value=value,
        )

    @classmethod
    def rejected(
        cls, reason: RejectionReason, occurred_at: datetime,
    ) -> "CommandOutcome":
        return cls(
            status=CommandStatus.REJECTED,
            occurred_at=occurred_at,
            reason=reason,
        )


def attempt(
    mutation: Callable[..., Any],
    *args: Any,
    clock: Clock | None = None,
    **kwargs: Any,
) -> CommandOutcome:
    """
    Run a core mutation and wrap its result.

    Only SettlementError is converted; anything else is a defect and
    propagates unchanged.
    """
    clock = clock or get_default_clock()
    try:
        value = mutation(*args, **kwargs)
    except SettlementError as exc:
        logger.info(f"Mutation rejected: {exc.code} ({exc.message})")
        return CommandOutcome.rejected(exc.to_rejection(), clock.now_utc())
    return CommandOutcome.accepted(value, clock.now_utc())
