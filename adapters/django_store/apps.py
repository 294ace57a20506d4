"""
TSC Adapters — Django Store App Configuration
===============================================
Durable home for cash shifts, cash movements and promotion rules.

This app:
- Persists shifts and their append-only movements
- Enforces one OPEN shift per register at the database level
- Persists promotion rules with soft delete

This app does NOT:
- Compute balances or discounts (engines do)
- Decide shift status (CashShift does)
"""

from django.apps import AppConfig


class SettlementStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "adapters.django_store"
    label = "settlement_store"
    verbose_name = "TSC Settlement Store"
