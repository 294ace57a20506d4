"""
TSC Core Config — Public API
===============================
Admin-configurable payment methods and settlement policies.
Doctrine: no thresholds or method codes hardcoded in engine logic.
"""

from core.config.rules import (
    CartConfig,
    ConfigStore,
    InMemoryConfigStore,
    PaymentMethod,
    ReconciliationPolicy,
    ShiftPolicy,
    default_payment_methods,
)

__all__ = [
    "CartConfig",
    "ConfigStore",
    "InMemoryConfigStore",
    "PaymentMethod",
    "ReconciliationPolicy",
    "ShiftPolicy",
    "default_payment_methods",
]
