"""
TSC Audit Events — Errors
===========================
Error types for the audit event log.
Separate from settlement errors: a bad sink is a wiring bug, not a
business rejection.
"""


class EventLogError(Exception):
    """Base error for audit event log operations."""
    pass


class InvalidEventTypeFormat(EventLogError):
    """Event type does not follow engine.domain.action.vN format."""

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(
            f"Event type '{event_type}' does not follow "
            f"engine.domain.action.vN format."
        )


class DuplicateSubscriberError(EventLogError):
    """Same handler already subscribed to this event type."""

    def __init__(self, event_type: str, handler_name: str):
        self.event_type = event_type
        self.handler_name = handler_name
        super().__init__(
            f"Handler '{handler_name}' already subscribed "
            f"to event type '{event_type}'."
        )
