"""
TSC Settlement Engine — Public API
"""

from engines.settlement.coordinator import SettlementCoordinator

__all__ = ["SettlementCoordinator"]
