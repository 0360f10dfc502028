"""
Core domain models, cross validation and settlement calculation
"""

from .order import Order
from .settlement import (
    FillResults,
    MatchedFillResults,
    SettlementPlan,
    SettlementResult,
    Transfer,
    TransferKind,
)
from .cross_validator import CrossResult, validate, ensure_crossable, max_fill_amount
from .settlement_calculator import calculate_fill_results, compute_settlement
from .ledger import BalanceKey, Ledger
from .fill_tracker import FillTracker

__all__ = [
    "Order",
    "FillResults",
    "MatchedFillResults",
    "SettlementPlan",
    "SettlementResult",
    "Transfer",
    "TransferKind",
    "CrossResult",
    "validate",
    "ensure_crossable",
    "max_fill_amount",
    "calculate_fill_results",
    "compute_settlement",
    "BalanceKey",
    "Ledger",
    "FillTracker",
]
