"""
TSC Django Adapter Wiring
=========================
Builds the settlement core on top of the Django store, with policies
taken from Django settings.

Adapter-only glue: no engine logic lives here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from adapters.django_store.repository import DjangoRuleRepository, DjangoShiftStore
from core.config.django_settings import (
    cart_config_from_settings,
    reconciliation_policy_from_settings,
    shift_policy_from_settings,
)
from core.config.rules import (
    CartConfig,
    ConfigStore,
    InMemoryConfigStore,
    default_payment_methods,
)
from core.events.log import EventSink
from core.time.clock import Clock, get_default_clock
from engines.cart.aggregate import CartAggregate
from engines.cash.allocator import CashRegister, CashRegisterAllocator
from engines.cash.services import CashShiftService
from engines.promotion.services import PromotionRuleBook
from engines.settlement.coordinator import SettlementCoordinator


@dataclass(frozen=True)
class SettlementCore:
    rule_book: PromotionRuleBook
    shifts: CashShiftService
    coordinator: SettlementCoordinator
    payment_methods: ConfigStore
    cart_config: CartConfig
    clock: Clock

    def new_cart(self) -> CartAggregate:
        """Fresh selling session loaded with today's rule snapshot."""
        return CartAggregate(
            config=self.cart_config,
            rules=self.rule_book.active_snapshot(),
            clock=self.clock,
        )


def build_settlement_core(
    *,
    registers: Iterable[CashRegister],
    payment_methods: Optional[ConfigStore] = None,
    clock: Optional[Clock] = None,
    event_sink: Optional[EventSink] = None,
) -> SettlementCore:
    clock = clock or get_default_clock()
    methods = payment_methods or InMemoryConfigStore(default_payment_methods())
    cart_config = cart_config_from_settings()
    store = DjangoShiftStore()
    allocator = CashRegisterAllocator(
        store, registers, policy=shift_policy_from_settings(),
    )
    shifts = CashShiftService(
        store=store,
        allocator=allocator,
        reconciliation=reconciliation_policy_from_settings(),
        clock=clock,
        event_sink=event_sink,
    )
    return SettlementCore(
        rule_book=PromotionRuleBook(
            repository=DjangoRuleRepository(),
            clock=clock,
            event_sink=event_sink,
            zone=cart_config.zone,
        ),
        shifts=shifts,
        coordinator=SettlementCoordinator(
            shifts=shifts, payment_methods=methods, event_sink=event_sink,
        ),
        payment_methods=methods,
        cart_config=cart_config,
        clock=clock,
    )
