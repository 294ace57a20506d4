"""
TSC Core Config — Admin-Configurable Rules
=============================================
Payment methods, reconciliation thresholds and cart defaults come from
admin-configured data, never from source code or ambient UI state.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from datetime import tzinfo
from typing import Dict, Optional, Protocol

from core.errors import ValidationError
from core.primitives.money import to_money, to_percent
from core.time.temporal import zone_named


# ══════════════════════════════════════════════════════════════
# PAYMENT METHOD
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PaymentMethod:
    """
    One entry of the payment-method registry.

    affects_cash marks methods whose money lands in the drawer
    (cash); card, QR and account payments never touch it.
    """

    code: str
    name: str
    affects_cash: bool = False
    surcharge_percent: Decimal = Decimal(0)
    discount_percent: Decimal = Decimal(0)
    is_account_payment: bool = False
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.code:
            raise ValidationError("code must be non-empty.")
        object.__setattr__(
            self, "surcharge_percent",
            to_percent(self.surcharge_percent, field="surcharge_percent"),
        )
        object.__setattr__(
            self, "discount_percent",
            to_percent(self.discount_percent, field="discount_percent"),
        )


# ══════════════════════════════════════════════════════════════
# POLICIES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReconciliationPolicy:
    """
    Close-time classification.

    review_threshold=None: every close ends CLOSED, whatever the
    difference. Otherwise |difference| > threshold ends PENDING_REVIEW.
    """

    review_threshold: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.review_threshold is not None:
            threshold = to_money(self.review_threshold, field="review_threshold")
            if threshold < 0:
                raise ValidationError("review_threshold must be non-negative.")
            object.__setattr__(self, "review_threshold", threshold)

    def requires_review(self, difference: Decimal) -> bool:
        if self.review_threshold is None:
            return False
        return abs(difference) > self.review_threshold


def _zone(name: str) -> tzinfo:
    try:
        return zone_named(name)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


@dataclass(frozen=True)
class ShiftPolicy:
    """
    one_open_shift_per_user: a user may operate one register at a time.
    timezone: store zone; shift numbers count shifts per local day.
    """

    one_open_shift_per_user: bool = True
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        _zone(self.timezone)

    @property
    def zone(self) -> tzinfo:
        return _zone(self.timezone)


@dataclass(frozen=True)
class CartConfig:
    """
    Explicit configuration threaded into each CartAggregate.

    default_payment_method: method assumed when pricing before the
        customer picks one (affinity rules match against it).
    apply_affinity_rules_without_payment: when False, rules bound to a
        payment method are skipped until a method is known.
    timezone: store zone; promotion date, weekday and hour windows are
        read on the local wall clock.
    """

    currency: str = "ARS"
    default_payment_method: Optional[str] = None
    apply_affinity_rules_without_payment: bool = False
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if not self.currency or len(self.currency) != 3:
            raise ValidationError("currency must be 3-letter ISO 4217 code.")
        _zone(self.timezone)

    @property
    def zone(self) -> tzinfo:
        return _zone(self.timezone)


# ══════════════════════════════════════════════════════════════
# CONFIG STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class ConfigStore(Protocol):
    """
    Protocol for the payment-method registry.

    Implementations may back this with a database, file, or memory.
    """

    def get_payment_method(self, code: str) -> Optional[PaymentMethod]:
        ...  # pragma: no cover

    def list_payment_methods(self) -> list[PaymentMethod]:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY CONFIG STORE (for testing / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemoryConfigStore:
    """Simple in-memory registry for testing and bootstrap."""

    def __init__(self, methods: Optional[list[PaymentMethod]] = None) -> None:
        self._methods: Dict[str, PaymentMethod] = {}
        for method in methods or []:
            self.add_payment_method(method)

    def add_payment_method(self, method: PaymentMethod) -> None:
        self._methods[method.code] = method

    def get_payment_method(self, code: str) -> Optional[PaymentMethod]:
        method = self._methods.get(code)
        if method is None or not method.is_active:
            return None
        return method

    def list_payment_methods(self) -> list[PaymentMethod]:
        return [m for m in self._methods.values() if m.is_active]


def default_payment_methods() -> list[PaymentMethod]:
    """Methods every store starts with."""
    return [
        PaymentMethod(code="EFECTIVO", name="Efectivo", affects_cash=True),
        PaymentMethod(code="DEBITO", name="Tarjeta Débito"),
        PaymentMethod(
            code="CREDITO", name="Tarjeta Crédito",
            surcharge_percent=Decimal(10),
        ),
        PaymentMethod(code="TRANSFERENCIA", name="Transferencia"),
        PaymentMethod(
            code="CTA_CTE", name="Cuenta Corriente", is_account_payment=True,
        ),
    ]
