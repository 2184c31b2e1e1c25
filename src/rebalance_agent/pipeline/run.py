"""High-level cycle orchestration."""

from __future__ import annotations

import asyncio

from ..domain import CycleResult, DeliveryState, DeliveryStatus
from .context import CycleContext
from .decide import decide
from .execute import execute_decision, monitor_delivery
from .scan import scan_balances


def _submitted_unconfirmed(ctx: CycleContext, message: str) -> CycleResult:
    """A transfer already went out, so the cycle succeeded with delivery unknown."""
    delivery = ctx.delivery or DeliveryStatus(
        state=DeliveryState.TIMEOUT,
        baseline=ctx.baseline,
        message=message,
    )
    return CycleResult(
        success=True,
        decision=ctx.decision,
        execution=ctx.execution,
        delivery=delivery,
        report=ctx.report,
    )


async def run_cycle(ctx: CycleContext) -> CycleResult:
    """Execute one rebalancing cycle.

    This is a thin orchestrator that sequences the pipeline steps:
    1. Balance scan
    2. Decision (coerced to WAIT on any policy problem)
    3. Quote, approve and submit (or simulate)
    4. Delivery monitoring

    Errors escaping the steps are reported as a failed ``CycleResult``
    instead of being raised. Once a transfer has an execution result, a
    timeout or error is reported as a successful submission whose delivery
    is unconfirmed, keeping the transaction hash.

    Args:
        ctx: Fresh cycle context
    """
    s = ctx.state.settings
    log = ctx.state.logger
    timeout_s = s.cycle_timeout_seconds

    log.info("Starting cycle", extra={"vaults": len(ctx.vaults)})

    async def _run_pipeline() -> None:
        await scan_balances(ctx)
        await decide(ctx)
        await execute_decision(ctx)
        await monitor_delivery(ctx)

    try:
        if timeout_s is None or timeout_s <= 0:
            await _run_pipeline()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_pipeline()
    except TimeoutError:
        if ctx.execution is not None:
            log.warning(
                "Cycle timed out while monitoring delivery of %s",
                ctx.execution.tx_hash,
                extra={"timeout_seconds": timeout_s},
            )
            return _submitted_unconfirmed(ctx, "submitted, delivery unconfirmed")
        log.error("Cycle timed out", extra={"timeout_seconds": timeout_s})
        return CycleResult(
            success=False,
            decision=ctx.decision,
            report=ctx.report,
            error=f"Cycle exceeded timeout of {timeout_s}s",
        )
    except Exception as e:
        if ctx.execution is not None:
            log.warning(
                "Delivery monitoring of %s failed: %s", ctx.execution.tx_hash, e
            )
            return _submitted_unconfirmed(
                ctx, f"submitted, delivery unconfirmed: {str(e) or type(e).__name__}"
            )
        log.exception("Cycle failed: %s", e)
        return CycleResult(
            success=False,
            decision=ctx.decision,
            report=ctx.report,
            error=str(e) or type(e).__name__,
        )

    log.info("Cycle completed")
    return CycleResult(
        success=True,
        decision=ctx.decision,
        execution=ctx.execution,
        delivery=ctx.delivery,
        report=ctx.report,
    )
