"""
TSC Core — Settlement Errors
==============================
Error taxonomy shared by the pricing engine, the cart and the cash
ledger. Every error carries a ReasonCode so the calling layer can show
the specific failure instead of a generic one.

None of these are retried inside the core.
"""

from __future__ import annotations

from core.commands.rejection import ReasonCode, RejectionReason


class SettlementError(Exception):
    """Base error for settlement core operations."""

    code = ReasonCode.POLICY_VIOLATION

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_rejection(self) -> RejectionReason:
        return RejectionReason(
            code=self.code,
            message=self.message,
            policy_name=type(self).__name__,
        )


class ValidationError(SettlementError):
    """Bad amount, quantity, percent or malformed rule parameters."""

    code = ReasonCode.VALIDATION_FAILED


class RuleEvaluationError(SettlementError):
    """A promotion rule cannot be evaluated (unknown or inconsistent variant)."""

    code = ReasonCode.RULE_EVALUATION_FAILED

    def __init__(self, rule_id: str, message: str):
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}': {message}")


class ShiftClosedError(SettlementError):
    """Mutation attempted on a sealed shift."""

    code = ReasonCode.SHIFT_CLOSED

    def __init__(self, shift_id: str, status: str):
        self.shift_id = shift_id
        self.status = status
        super().__init__(
            f"Cash shift '{shift_id}' is {status}. "
            f"Only open shifts accept movements."
        )


class UnknownShiftError(SettlementError):
    code = ReasonCode.SHIFT_NOT_FOUND

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Cash shift '{shift_id}' not found.")


class RegisterOccupiedError(SettlementError):
    """Register already owns an OPEN shift."""

    code = ReasonCode.REGISTER_OCCUPIED

    def __init__(self, register_id: str, shift_id: str | None = None):
        self.register_id = register_id
        self.shift_id = shift_id
        suffix = f" (shift '{shift_id}')" if shift_id else ""
        super().__init__(
            f"Register '{register_id}' already has an open shift{suffix}. "
            f"Close it before opening another."
        )


class UserShiftConflictError(SettlementError):
    """User already operates an OPEN shift on another register."""

    code = ReasonCode.USER_HAS_OPEN_SHIFT

    def __init__(self, user_id: str, shift_id: str):
        self.user_id = user_id
        self.shift_id = shift_id
        super().__init__(
            f"User '{user_id}' already has open shift '{shift_id}'. "
            f"Close it before opening another."
        )


class NoActiveShiftError(SettlementError):
    """Sale settlement requested on a register without an OPEN shift."""

    code = ReasonCode.NO_ACTIVE_SHIFT

    def __init__(self, register_id: str):
        self.register_id = register_id
        super().__init__(
            f"Register '{register_id}' has no open shift. "
            f"Open a shift before selling."
        )


class ConcurrentModificationError(SettlementError):
    """Optimistic version check failed while replacing a shift."""

    code = ReasonCode.CONCURRENT_MODIFICATION

    def __init__(self, shift_id: str, expected_version: int):
        self.shift_id = shift_id
        self.expected_version = expected_version
        super().__init__(
            f"Cash shift '{shift_id}' changed since version "
            f"{expected_version} was read."
        )
