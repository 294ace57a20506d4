"""
TSC Settlement Engine — Event Types and Payload Builders
==========================================================
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from engines.pricing.payments import PaymentComponent

SETTLEMENT_SALE_SETTLED_V1 = "settlement.sale.settled.v1"

SETTLEMENT_EVENT_TYPES = (SETTLEMENT_SALE_SETTLED_V1,)


def build_sale_settled_payload(
    *,
    register_id: str,
    shift_id: str,
    sale_ref: Optional[str],
    payments: Sequence[PaymentComponent],
    cash_total: Decimal,
    movement_ids: Sequence[str],
) -> dict:
    return {
        "register_id": register_id,
        "shift_id": shift_id,
        "sale_ref": sale_ref,
        "payments": [
            {
                "method_code": p.method_code,
                "amount": str(p.amount),
                "reference": p.reference,
            }
            for p in payments
        ],
        "cash_total": str(cash_total),
        "movement_ids": list(movement_ids),
    }
