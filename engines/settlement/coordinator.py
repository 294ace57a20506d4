"""
TSC Settlement Engine — Sale Settlement
=========================================
Turns a confirmed sale's payment split into cash movements on the
register's open shift.

Rules:
- One SALE movement per cash-affecting payment component.
- Card, transfer and account components never create a movement.
- The whole split is validated before the first movement is written.
- The cash movements of one sale are written as a single unit: a
  failed write leaves the shift without any of them.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from core.config.rules import ConfigStore
from core.errors import NoActiveShiftError, ValidationError
from core.events.log import EventSink
from core.primitives.money import money_sum, to_money
from engines.cash.services import CashShiftService
from engines.pricing.payments import PaymentComponent, resolve_method
from engines.settlement.events import (
    SETTLEMENT_SALE_SETTLED_V1,
    build_sale_settled_payload,
)

logger = logging.getLogger("tsc.settlement")


class SettlementCoordinator:
    """Bridge from a confirmed sale to the cash ledger."""

    def __init__(
        self,
        *,
        shifts: CashShiftService,
        payment_methods: ConfigStore,
        event_sink: Optional[EventSink] = None,
    ):
        self._shifts = shifts
        self._payment_methods = payment_methods
        self._event_sink = event_sink

    def settle(
        self,
        register_id: str,
        payments: Iterable[PaymentComponent],
        *,
        total: Optional[Decimal | int | str] = None,
        sale_ref: Optional[str] = None,
    ) -> List[str]:
        """
        Record the cash part of a sale.

        Args:
            register_id: Register the sale was rung up on.
            payments:    Confirmed payment split.
            total:       Confirmed sale total; when given, the split
                         must add up to it exactly.
            sale_ref:    Sale/order reference stamped on each movement.

        Returns:
            Ids of the movements written, in split order (empty for an
            all-card sale).

        Raises:
            NoActiveShiftError: register has no OPEN shift.
            ValidationError:    unknown method or split/total mismatch.
        """
        components = list(payments)
        if not components:
            raise ValidationError("A settlement needs at least one payment.")

        methods = [
            resolve_method(self._payment_methods, c.method_code)
            for c in components
        ]
        paid = money_sum(c.amount for c in components)
        if total is not None and paid != to_money(total, field="total"):
            raise ValidationError(
                f"Payment split {paid} does not match sale total "
                f"{to_money(total, field='total')}."
            )

        shift = self._shifts.get_active(register_id)
        if shift is None:
            logger.warning(f"Settlement refused: register {register_id} has no open shift")
            raise NoActiveShiftError(register_id)

        cash_amounts = [
            component.amount
            for component, method in zip(components, methods)
            if method.affects_cash
        ]
        cash_total = money_sum(cash_amounts)
        movement_ids = self._shifts.record_sale_movements(
            shift.shift_id, cash_amounts, sale_ref=sale_ref,
        )

        logger.info(
            f"Sale {sale_ref or '-'} settled on register {register_id}: "
            f"paid={paid} cash={cash_total} movements={len(movement_ids)}"
        )
        if self._event_sink is not None:
            self._event_sink.emit(
                SETTLEMENT_SALE_SETTLED_V1,
                build_sale_settled_payload(
                    register_id=register_id,
                    shift_id=shift.shift_id,
                    sale_ref=sale_ref,
                    payments=components,
                    cash_total=cash_total,
                    movement_ids=movement_ids,
                ),
            )
        return movement_ids
