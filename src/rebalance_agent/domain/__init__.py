"""Domain models for the rebalancing pipeline."""

from .balances import BalanceReport, BalanceTable, ReadFailure
from .decisions import RebalanceDecision, SwapDecision, WaitDecision
from .execution import (
    ApprovalOutcome,
    CycleResult,
    DeliveryState,
    DeliveryStatus,
    DestinationCall,
    ExecutionMode,
    ExecutionResult,
    ExecutionStage,
    NoRoute,
    Quote,
    QuoteRequest,
)

__all__ = [
    "ApprovalOutcome",
    "BalanceReport",
    "BalanceTable",
    "CycleResult",
    "DeliveryState",
    "DeliveryStatus",
    "DestinationCall",
    "ExecutionMode",
    "ExecutionResult",
    "ExecutionStage",
    "NoRoute",
    "Quote",
    "QuoteRequest",
    "ReadFailure",
    "RebalanceDecision",
    "SwapDecision",
    "WaitDecision",
]
