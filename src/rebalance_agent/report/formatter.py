"""Rich console output for balance reports and cycle results."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..domain import (
    BalanceReport,
    CycleResult,
    DeliveryState,
    SwapDecision,
    WaitDecision,
)


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def build_balance_table(report: BalanceReport) -> Table:
    table = Table(title="Vault Balances", header_style="bold")
    table.add_column("Vault", style="cyan")
    table.add_column("Chain")
    table.add_column("Token")
    table.add_column("Balance", justify="right", style="green")

    for vault, chains in report.balances.items():
        for chain_key, tokens in chains.items():
            for symbol, balance in tokens.items():
                cell = Text(balance)
                if report.is_fallback(vault, chain_key, symbol):
                    cell = Text(f"{balance} (read failed)", style="yellow")
                table.add_row(_truncate_address(vault), chain_key, symbol, cell)
    return table


def _decision_panel(result: CycleResult) -> Panel:
    decision = result.decision
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value")

    if isinstance(decision, WaitDecision):
        table.add_row("Action", "WAIT")
        table.add_row("Reason", decision.reason)
        if decision.coerced:
            table.add_row("Note", Text("substituted for policy output", style="yellow"))
    elif isinstance(decision, SwapDecision):
        table.add_row("Action", "SWAP")
        table.add_row("Vault", decision.vault_address)
        table.add_row(
            "Route",
            f"{decision.amount} {decision.source_token} ({decision.from_chain}) → "
            f"{decision.target_token} ({decision.target_chain})",
        )
        table.add_row("Reason", decision.reason or "-")
    return Panel(table, title="[bold]Decision[/]", border_style="blue")


def _execution_panel(result: CycleResult) -> Panel | None:
    execution = result.execution
    if execution is None:
        return None
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value")

    mode = (
        Text("SIMULATED", style="bold yellow")
        if execution.simulated
        else Text("SUBMITTED", style="bold green")
    )
    table.add_row("Mode", mode)
    table.add_row("Tx Hash", execution.tx_hash)
    table.add_row("Tool", execution.tool or "-")
    table.add_row("Approval", execution.approval.value)
    if execution.fallback_reason:
        table.add_row("Fallback", execution.fallback_reason)
    if result.delivery is not None:
        style = "green" if result.delivery.state is DeliveryState.CONFIRMED else "yellow"
        table.add_row("Delivery", Text(result.delivery.state.value, style=style))
    return Panel(table, title="[bold]Execution[/]", border_style="green")


def print_balance_report(report: BalanceReport, console: Console | None = None) -> None:
    (console or Console()).print(build_balance_table(report))


def print_cycle_result(result: CycleResult, console: Console | None = None) -> None:
    """Print the decision, execution and delivery of one cycle."""
    console = console or Console()

    if not result.success:
        console.print(
            Panel(
                Text(result.error or "unknown error", style="red"),
                title="[bold red]Cycle Failed[/]",
                border_style="red",
            )
        )
        return

    parts: list = []
    if result.report is not None:
        parts.append(build_balance_table(result.report))
    parts.append(_decision_panel(result))
    execution_panel = _execution_panel(result)
    if execution_panel is not None:
        parts.append(execution_panel)
    console.print(Group(*parts))
