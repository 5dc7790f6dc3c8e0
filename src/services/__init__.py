"""Service modules"""
from .hint_finder import HintFinder
from .order_intents import BorrowIntent, EarnIntent, OrderIntents
from .orchestrator import (
    ApprovalRequirement,
    Execution,
    ExecutionOrchestrator,
    Intent,
    IntentState,
)
from .position_mutator import OpenTroveParams, PositionMutator
from .position_service import PositionService
from .quote_service import OrderScan, QuoteService

__all__ = [
    "ApprovalRequirement",
    "BorrowIntent",
    "EarnIntent",
    "Execution",
    "ExecutionOrchestrator",
    "HintFinder",
    "Intent",
    "IntentState",
    "OpenTroveParams",
    "OrderIntents",
    "OrderScan",
    "PositionMutator",
    "PositionService",
    "QuoteService",
]
