"""CLI entrypoint for the rebalance agent."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from .chains import ConfigurationError, ChainRegistry
from .logger import setup_logging
from .orchestrator import RebalanceOrchestrator, build_clients
from .report import print_balance_report, print_cycle_result
from .scanner import BalanceScanner
from .service import register_vault, trigger_cycle
from .settings import AgentSettings, DecisionPolicyKind
from .state import AppState
from .vaults import InvalidVaultAddress, VaultRegistry

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Cross-chain vault liquidity rebalancing agent.",
)

VaultsArg = Annotated[
    list[str] | None,
    typer.Argument(help="Extra vault addresses to manage alongside the primary vault."),
]
ConfigOpt = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML config file (can include [rebalance_agent] table).",
    ),
]
LogLevelOpt = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    ),
]


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("rebalance_agent")


def _load_state(
    config_path: Path | None,
    init_kwargs: dict[str, Any],
) -> AppState:
    """Load settings and the chain table, exiting on configuration errors."""
    if config_path:
        os.environ["REBALANCE_AGENT_CONFIG"] = str(config_path)

    settings = AgentSettings(**init_kwargs)
    setup_logging(settings.log_level)
    logger = _build_logger()

    try:
        chains = ChainRegistry.from_settings(settings)
    except ConfigurationError as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from e

    return AppState(settings=settings, logger=logger, chains=chains)


def _build_registry(vaults: list[str] | None) -> VaultRegistry:
    registry = VaultRegistry()
    for address in vaults or []:
        try:
            result = register_vault(registry, address)
        except InvalidVaultAddress as e:
            raise typer.BadParameter(str(e), param_hint="VAULTS") from e
        if result.status == "already_registered":
            typer.secho(f"Duplicate vault ignored: {result.address}", err=True)
    return registry


def _build_orchestrator(state: AppState) -> RebalanceOrchestrator:
    try:
        return RebalanceOrchestrator.from_state(state)
    except ConfigurationError as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from e


@app.command()
def run(
    vaults: VaultsArg = None,
    config_path: ConfigOpt = None,
    log_level: LogLevelOpt = None,
    policy: Annotated[
        DecisionPolicyKind | None,
        typer.Option("--policy", help="Decision policy (threshold, http or chat)."),
    ] = None,
    simulate: Annotated[
        bool | None,
        typer.Option(
            "--simulate/--no-simulate",
            help="Fall back to a simulated transfer when the bridge route is unavailable.",
        ),
    ] = None,
    monitor: Annotated[
        bool | None,
        typer.Option(
            "--monitor/--no-monitor",
            help="Poll the destination chain until the transfer lands.",
        ),
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the cycle response as JSON.")
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Run one rebalancing cycle: scan, decide and (if needed) bridge."""
    init_kwargs: dict[str, Any] = {}
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()
    if policy is not None:
        init_kwargs["decision_policy"] = policy
    if simulate is not None:
        init_kwargs["simulation_fallback_enabled"] = simulate
    if monitor is not None:
        init_kwargs["monitor_enabled"] = monitor

    state = _load_state(config_path, init_kwargs)
    if show_config:
        typer.echo(json.dumps(state.settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    registry = _build_registry(vaults)
    orchestrator = _build_orchestrator(state)
    result = asyncio.run(orchestrator.run_cycle(registry.snapshot()))

    if json_output:
        typer.echo(json.dumps(result.to_response(), indent=2))
    else:
        print_cycle_result(result)

    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def scan(
    vaults: VaultsArg = None,
    config_path: ConfigOpt = None,
    log_level: LogLevelOpt = None,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print balances as JSON.")
    ] = False,
):
    """Print vault balances on every registered chain without deciding anything."""
    init_kwargs: dict[str, Any] = {}
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    state = _load_state(config_path, init_kwargs)
    registry = _build_registry(vaults)
    scanner = BalanceScanner(state.chains, build_clients(state))
    report = asyncio.run(scanner.scan(registry.snapshot()))

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        print_balance_report(report)


@app.command()
def watch(
    vaults: VaultsArg = None,
    config_path: ConfigOpt = None,
    log_level: LogLevelOpt = None,
    interval: Annotated[
        float, typer.Option("--interval", min=0, help="Seconds between cycles.")
    ] = 300.0,
    cycles: Annotated[
        int, typer.Option("--cycles", min=0, help="Stop after N cycles (0 = forever).")
    ] = 0,
):
    """Run cycles repeatedly, printing one JSON response per cycle."""
    init_kwargs: dict[str, Any] = {}
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    state = _load_state(config_path, init_kwargs)
    registry = _build_registry(vaults)
    orchestrator = _build_orchestrator(state)

    async def _loop() -> None:
        completed = 0
        while cycles == 0 or completed < cycles:
            response = await trigger_cycle(orchestrator, registry)
            typer.echo(json.dumps(response))
            completed += 1
            if cycles == 0 or completed < cycles:
                await asyncio.sleep(interval)

    try:
        asyncio.run(_loop())
    except KeyboardInterrupt:
        typer.echo("Stopped.")


def main() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    main()
