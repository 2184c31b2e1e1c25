from __future__ import annotations

from dataclasses import dataclass

from ..domain import (
    BalanceReport,
    DeliveryStatus,
    ExecutionResult,
    RebalanceDecision,
)
from ..execution import CompletionMonitor, TransactionExecutor
from ..policy import DecisionPolicy
from ..scanner import BalanceScanner
from ..state import AppState


@dataclass(frozen=True)
class PipelineComponents:
    scanner: BalanceScanner
    policy: DecisionPolicy
    executor: TransactionExecutor
    monitor: CompletionMonitor | None = None


@dataclass
class CycleContext:
    """State of one cycle. Created per cycle and discarded afterwards."""

    state: AppState
    components: PipelineComponents
    vaults: tuple[str, ...]
    report: BalanceReport | None = None
    decision: RebalanceDecision | None = None
    baseline: int | None = None
    execution: ExecutionResult | None = None
    delivery: DeliveryStatus | None = None

    @property
    def report_required(self) -> BalanceReport:
        if self.report is None:
            raise RuntimeError(
                "Balance report has not been set. Ensure scan_balances() is called before accessing this property."
            )
        return self.report

    @property
    def decision_required(self) -> RebalanceDecision:
        if self.decision is None:
            raise RuntimeError(
                "Decision has not been set. Ensure decide() is called before accessing this property."
            )
        return self.decision

    @property
    def execution_required(self) -> ExecutionResult:
        if self.execution is None:
            raise RuntimeError(
                "Execution result has not been set. Ensure execute_decision() is called before accessing this property."
            )
        return self.execution
