"""
TSC Cart Engine — Public API
"""

from engines.cart.aggregate import CartAggregate

__all__ = ["CartAggregate"]
