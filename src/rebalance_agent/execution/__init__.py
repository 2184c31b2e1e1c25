from .approval import ApprovalManager, ApprovalReceipt
from .executor import SubmissionFailure, TransactionExecutor
from .fallback import SimulationFallback, mock_tx_hash
from .monitor import CompletionMonitor

__all__ = [
    "ApprovalManager",
    "ApprovalReceipt",
    "CompletionMonitor",
    "SimulationFallback",
    "SubmissionFailure",
    "TransactionExecutor",
    "mock_tx_hash",
]
