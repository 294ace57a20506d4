"""
TSC Command Layer — Rejection Model
======================================
Structured rejection reasons for refused settlement mutations.

A rejection is NOT an exception. It is the explanation structure a
caller presents (or records) when a cart or shift mutation is refused.

Every rejection must be:
- Deterministic (same input → same rejection)
- Auditable (code + message + policy)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a refused mutation.

    Fields:
        code:        Machine-readable code (e.g. 'REGISTER_OCCUPIED').
        message:     Human-readable explanation.
        policy_name: Name of the policy or guard that refused.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        """Serialize for audit payloads."""
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE. Each code implies a different
    corrective action for the operator.
    """

    # ── Input ─────────────────────────────────────────────────
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RULE_EVALUATION_FAILED = "RULE_EVALUATION_FAILED"

    # ── Shift lifecycle ───────────────────────────────────────
    SHIFT_CLOSED = "SHIFT_CLOSED"
    SHIFT_NOT_FOUND = "SHIFT_NOT_FOUND"
    REGISTER_OCCUPIED = "REGISTER_OCCUPIED"
    USER_HAS_OPEN_SHIFT = "USER_HAS_OPEN_SHIFT"
    NO_ACTIVE_SHIFT = "NO_ACTIVE_SHIFT"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # ── General ───────────────────────────────────────────────
    POLICY_VIOLATION = "POLICY_VIOLATION"
