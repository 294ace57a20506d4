"""
TSC Audit Events — Public API
================================
"""

from core.events.errors import (
    DuplicateSubscriberError,
    EventLogError,
    InvalidEventTypeFormat,
)
from core.events.log import (
    AuditEvent,
    EventSink,
    InMemoryEventLog,
    validate_event_type,
)

__all__ = [
    "AuditEvent",
    "EventSink",
    "InMemoryEventLog",
    "validate_event_type",
    "EventLogError",
    "InvalidEventTypeFormat",
    "DuplicateSubscriberError",
]
