"""
TSC Pricing Engine — Public API
"""

from engines.pricing.engine import (
    VARIANT_EVALUATORS,
    CartLine,
    CartTotals,
    evaluate_rule,
    recompute_cart,
)
from engines.pricing.payments import (
    PaymentComponent,
    PaymentQuote,
    adjustment_for_split,
    quote_payment,
    resolve_method,
)

__all__ = [
    "VARIANT_EVALUATORS",
    "CartLine",
    "CartTotals",
    "evaluate_rule",
    "recompute_cart",
    "PaymentComponent",
    "PaymentQuote",
    "adjustment_for_split",
    "quote_payment",
    "resolve_method",
]
