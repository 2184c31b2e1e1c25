from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from .balances import BalanceReport
from .decisions import RebalanceDecision


@dataclass(frozen=True)
class DestinationCall:
    """Contract call the bridge relays on the destination chain after delivery."""

    to: str
    data: str
    gas_limit: int


@dataclass(frozen=True)
class QuoteRequest:
    from_chain_id: int
    to_chain_id: int
    from_token: str
    to_token: str
    amount: int
    from_address: str
    to_address: str
    destination_call: DestinationCall | None = None


@dataclass(frozen=True)
class Quote:
    """A concrete, priced route returned by the bridge aggregator."""

    to: str
    data: str
    value: int
    tool: str
    approval_address: str
    estimated_output: int
    fee_usd: Decimal | None = None
    gas_limit: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class NoRoute:
    """The bridge could not provide a usable route."""

    reason: str
    status_code: int | None = None


class ExecutionStage(str, Enum):
    IDLE = "idle"
    QUOTING = "quoting"
    APPROVING = "approving"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    SIMULATED = "simulated"
    DONE = "done"


class ExecutionMode(str, Enum):
    SUBMITTED = "submitted"
    SIMULATED = "simulated"


class ApprovalOutcome(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    SKIPPED_NATIVE = "skipped_native"
    SUBMITTED = "submitted"
    FAILED = "failed"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of the execute step. ``mode`` separates live and simulated runs."""

    mode: ExecutionMode
    tx_hash: str
    stages: tuple[ExecutionStage, ...]
    approval: ApprovalOutcome = ApprovalOutcome.NOT_ATTEMPTED
    approval_tx_hash: str | None = None
    tool: str | None = None
    fallback_reason: str | None = None

    @property
    def simulated(self) -> bool:
        return self.mode is ExecutionMode.SIMULATED

    def to_dict(self) -> dict[str, object]:
        return {
            "mode": self.mode.value,
            "txHash": self.tx_hash,
            "simulated": self.simulated,
            "stages": [stage.value for stage in self.stages],
            "approval": self.approval.value,
            "approvalTxHash": self.approval_tx_hash,
            "tool": self.tool,
            "fallbackReason": self.fallback_reason,
        }


class DeliveryState(str, Enum):
    CONFIRMED = "confirmed"
    TIMEOUT = "timeout"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DeliveryStatus:
    state: DeliveryState
    attempts: int = 0
    baseline: int | None = None
    final_balance: int | None = None
    message: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "attempts": self.attempts,
            "baseline": None if self.baseline is None else str(self.baseline),
            "finalBalance": None
            if self.final_balance is None
            else str(self.final_balance),
            "message": self.message,
        }


@dataclass(frozen=True)
class CycleResult:
    """Response of one orchestrator cycle."""

    success: bool
    decision: RebalanceDecision | None = None
    execution: ExecutionResult | None = None
    delivery: DeliveryStatus | None = None
    report: BalanceReport | None = None
    error: str | None = None

    def to_response(self) -> dict[str, object]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "decision": self.decision.to_dict() if self.decision else None,
            "txHash": self.execution.tx_hash if self.execution else None,
            "simulated": self.execution.simulated if self.execution else False,
            "execution": self.execution.to_dict() if self.execution else None,
            "delivery": self.delivery.to_dict() if self.delivery else None,
            "readFailures": len(self.report.failures) if self.report else 0,
        }
