"""Balance collection."""

from __future__ import annotations

from .context import CycleContext


async def scan_balances(ctx: CycleContext) -> None:
    """Scan every vault on every chain and store the report in the context."""
    ctx.report = await ctx.components.scanner.scan(ctx.vaults)
