"""Execution and delivery monitoring."""

from __future__ import annotations

from ..domain import DeliveryState, DeliveryStatus, SwapDecision
from .context import CycleContext


async def execute_decision(ctx: CycleContext) -> None:
    """Execute a ``SwapDecision``; a ``WaitDecision`` is left untouched."""
    decision = ctx.decision_required
    if not isinstance(decision, SwapDecision):
        ctx.state.logger.info("Waiting: %s", decision.reason)
        return

    monitor = ctx.components.monitor
    if monitor is not None:
        ctx.baseline = await monitor.read_baseline(
            decision.target_chain, decision.target_token, decision.vault_address
        )

    ctx.execution = await ctx.components.executor.execute(decision)


async def monitor_delivery(ctx: CycleContext) -> None:
    """Confirm delivery of a live submission on the destination chain."""
    decision = ctx.decision_required
    if ctx.execution is None or not isinstance(decision, SwapDecision):
        return

    monitor = ctx.components.monitor
    if monitor is None:
        ctx.delivery = DeliveryStatus(
            state=DeliveryState.SKIPPED, message="delivery monitoring disabled"
        )
        return

    ctx.delivery = await monitor.wait_for_delivery(
        ctx.execution,
        decision.target_chain,
        decision.target_token,
        decision.vault_address,
        ctx.baseline,
    )
