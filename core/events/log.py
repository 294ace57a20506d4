"""
TSC Audit Events — Event Log
===============================
Optional sink for the audit trail of shifts, movements, settlements
and promotion edits.

Rules:
- Event types follow engine.domain.action.vN
- Emitting is fire-and-record: the log never vetoes a mutation
- Subscribers are called in subscription order
- In-memory only, thread-safe
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Callable, Optional, Protocol

from core.events.errors import DuplicateSubscriberError, InvalidEventTypeFormat
from core.time.clock import Clock, get_default_clock

logger = logging.getLogger("tsc.events")


class EventSink(Protocol):
    """Anything services can hand audit events to."""

    def emit(self, event_type: str, payload: dict) -> None:
        ...  # pragma: no cover


@dataclass(frozen=True)
class AuditEvent:
    sequence: int
    event_type: str
    payload: dict
    recorded_at: datetime


def validate_event_type(event_type: str) -> None:
    if not event_type or not isinstance(event_type, str):
        raise InvalidEventTypeFormat(event_type or "")
    parts = event_type.strip().split(".")
    if len(parts) < 4 or not parts[-1].startswith("v"):
        raise InvalidEventTypeFormat(event_type)


class InMemoryEventLog:
    """
    Append-only audit log with synchronous subscribers.

    Each entry gets a monotonically increasing sequence number.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or get_default_clock()
        self._events: list[AuditEvent] = []
        self._subscribers: dict[str, list[Callable[[AuditEvent], None]]] = {}
        self._lock = Lock()

    def subscribe(
        self, event_type: str, handler: Callable[[AuditEvent], None],
    ) -> None:
        validate_event_type(event_type)
        handler_name = getattr(handler, "__qualname__", str(handler))
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if any(existing is handler for existing in handlers):
                raise DuplicateSubscriberError(event_type, handler_name)
            handlers.append(handler)
        logger.info(f"Subscriber registered: {handler_name} → {event_type}")

    def emit(self, event_type: str, payload: dict) -> None:
        validate_event_type(event_type)
        with self._lock:
            event = AuditEvent(
                sequence=len(self._events) + 1,
                event_type=event_type,
                payload=dict(payload),
                recorded_at=self._clock.now_utc(),
            )
            self._events.append(event)
            handlers = list(self._subscribers.get(event_type, []))

        logger.debug(f"Audit event #{event.sequence}: {event_type}")
        for handler in handlers:
            handler(event)

    def events(self, event_type: Optional[str] = None) -> list[AuditEvent]:
        with self._lock:
            if event_type is None:
                return list(self._events)
            return [e for e in self._events if e.event_type == event_type]

    def event_types(self) -> list[str]:
        with self._lock:
            return [e.event_type for e in self._events]

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)
