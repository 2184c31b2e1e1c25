"""Simulated execution used when the live bridge path is unavailable."""

from __future__ import annotations

import asyncio
import secrets

from ..constants import TX_HASH_HEX_LENGTH
from ..domain import ApprovalOutcome, ExecutionMode, ExecutionResult, ExecutionStage
from ..logger import get_logger

logger = get_logger(__name__)


def mock_tx_hash() -> str:
    """Return a random identifier shaped like a transaction hash (0x + 64 hex)."""
    return "0x" + secrets.token_hex(TX_HASH_HEX_LENGTH // 2)


class SimulationFallback:
    """Stand-in for a real submission.

    Waits ``delay_seconds`` to emulate broadcast latency, then returns a
    result tagged :attr:`ExecutionMode.SIMULATED`. When disabled, the
    triggering error is raised instead.
    """

    def __init__(self, delay_seconds: float, enabled: bool = True):
        self.delay_seconds = delay_seconds
        self.enabled = enabled

    async def simulate(
        self,
        reason: str,
        stages: list[ExecutionStage],
        error: type[Exception],
        approval: ApprovalOutcome = ApprovalOutcome.NOT_ATTEMPTED,
        approval_tx_hash: str | None = None,
        tool: str | None = None,
    ) -> ExecutionResult:
        if not self.enabled:
            raise error(reason)

        logger.warning("[SIMULATION] Live execution unavailable: %s", reason)
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        tx_hash = mock_tx_hash()
        logger.warning(
            "[SIMULATION] Mock transaction id %s. No funds were moved.", tx_hash
        )
        return ExecutionResult(
            mode=ExecutionMode.SIMULATED,
            tx_hash=tx_hash,
            stages=(*stages, ExecutionStage.SIMULATED, ExecutionStage.DONE),
            approval=approval,
            approval_tx_hash=approval_tx_hash,
            tool=tool,
            fallback_reason=reason,
        )
