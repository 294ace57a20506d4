"""
TSC Core Config — Django Settings Bridge
==========================================
Builds policy objects from Django settings so deployments configure
thresholds in one place. Engines never read settings directly; they
receive the policies built here.

Recognised settings:
    TSC_REVIEW_THRESHOLD          Decimal-compatible string or None
    TSC_ONE_OPEN_SHIFT_PER_USER   bool (default True)
    TSC_CURRENCY                  ISO 4217 code (default "ARS")
    TSC_DEFAULT_PAYMENT_METHOD    payment method code or None
    TSC_TIME_ZONE                 store IANA zone (default: TIME_ZONE)
"""

from __future__ import annotations

from django.conf import settings

from core.config.rules import CartConfig, ReconciliationPolicy, ShiftPolicy


def store_time_zone() -> str:
    return getattr(settings, "TSC_TIME_ZONE", None) or settings.TIME_ZONE


def reconciliation_policy_from_settings() -> ReconciliationPolicy:
    threshold = getattr(settings, "TSC_REVIEW_THRESHOLD", None)
    return ReconciliationPolicy(review_threshold=threshold)


def shift_policy_from_settings() -> ShiftPolicy:
    return ShiftPolicy(
        one_open_shift_per_user=bool(
            getattr(settings, "TSC_ONE_OPEN_SHIFT_PER_USER", True)
        ),
        timezone=store_time_zone(),
    )


def cart_config_from_settings() -> CartConfig:
    return CartConfig(
        currency=getattr(settings, "TSC_CURRENCY", "ARS"),
        default_payment_method=getattr(settings, "TSC_DEFAULT_PAYMENT_METHOD", None),
        timezone=store_time_zone(),
    )
