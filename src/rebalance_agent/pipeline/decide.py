"""Decision acquisition and validation."""

from __future__ import annotations

import asyncio

from ..constants import DECISION_UNAVAILABLE_REASON
from ..domain import WaitDecision
from ..policy import DecisionUnavailable, coerce_decision
from .context import CycleContext


async def decide(ctx: CycleContext) -> None:
    """Ask the policy for a decision and coerce it into a safe variant.

    Any failure of the policy call becomes ``Wait("decision unavailable")``.
    """
    s = ctx.state.settings
    log = ctx.state.logger
    report = ctx.report_required
    policy = ctx.components.policy

    log.info("Asking %s policy for a decision...", policy.name)
    try:
        async with asyncio.timeout(s.decision_timeout):
            raw = await policy.decide(report, s.capital_amount)
    except (DecisionUnavailable, TimeoutError) as e:
        log.warning(
            "Decision unavailable, defaulting to WAIT: %s", str(e) or "timed out"
        )
        ctx.decision = WaitDecision(reason=DECISION_UNAVAILABLE_REASON, coerced=True)
        return
    except Exception as e:
        log.exception("Policy %s raised, defaulting to WAIT: %s", policy.name, e)
        ctx.decision = WaitDecision(reason=DECISION_UNAVAILABLE_REASON, coerced=True)
        return

    ctx.decision = coerce_decision(raw, ctx.state.chains, report.vaults)
    log.info("Decision: %s", ctx.decision.action)
    log.info("Reason: %s", ctx.decision.reason)
