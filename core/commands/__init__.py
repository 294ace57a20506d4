"""
TSC Command Layer — Mutation Outcomes
========================================
Every refused mutation is explained by a RejectionReason.
Callers that need command/result semantics wrap mutations in
core.commands.outcomes.attempt().
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "ReasonCode",
    "RejectionReason",
]
