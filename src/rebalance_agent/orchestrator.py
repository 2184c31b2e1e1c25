"""Composition of the rebalancing pipeline."""

from __future__ import annotations

from typing import Iterable

from .bridge import RouteQuoter
from .chains import ChainClientFactory, ConfigurationError
from .domain import CycleResult
from .execution import (
    ApprovalManager,
    CompletionMonitor,
    SimulationFallback,
    TransactionExecutor,
)
from .logger import get_logger
from .pipeline import CycleContext, PipelineComponents, run_cycle
from .policy import DecisionPolicy, build_policy
from .scanner import BalanceScanner
from .state import AppState

logger = get_logger(__name__)


def build_clients(state: AppState) -> ChainClientFactory:
    s = state.settings
    return ChainClientFactory(
        state.chains,
        timeout=s.rpc_timeout,
        max_concurrent_calls=s.rpc_max_concurrent_calls,
        private_key=s.private_key.get_secret_value() if s.private_key else None,
    )


def build_components(
    state: AppState,
    clients: ChainClientFactory | None = None,
    policy: DecisionPolicy | None = None,
) -> PipelineComponents:
    """Wire every pipeline component from settings.

    Raises:
        ConfigurationError: If the signing key or a policy setting is missing.
    """
    s = state.settings
    if s.private_key is None:
        raise ConfigurationError(
            "private_key is required to run the agent (REBALANCE_AGENT_PRIVATE_KEY)"
        )

    clients = clients or build_clients(state)
    if policy is None:
        try:
            policy = build_policy(s, state.chains)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    quoter = RouteQuoter(
        api_url=s.lifi_api_url,
        timeout=s.bridge_timeout,
        max_tries=s.bridge_max_tries,
        api_key=s.lifi_api_key.get_secret_value() if s.lifi_api_key else None,
        integrator=s.lifi_integrator,
        slippage=s.bridge_slippage,
    )
    executor = TransactionExecutor(
        registry=state.chains,
        clients=clients,
        quoter=quoter,
        approvals=ApprovalManager(clients, settle_seconds=s.approval_settle_seconds),
        fallback=SimulationFallback(
            delay_seconds=s.simulation_delay_seconds,
            enabled=s.simulation_fallback_enabled,
        ),
        callback_pool_fee=s.callback_pool_fee
        if s.destination_callback_enabled
        else None,
        callback_gas_limit=s.callback_gas_limit
        if s.destination_callback_enabled
        else None,
    )
    monitor = (
        CompletionMonitor(
            state.chains,
            clients,
            interval_seconds=s.monitor_interval_seconds,
            max_attempts=s.monitor_max_attempts,
        )
        if s.monitor_enabled
        else None
    )
    return PipelineComponents(
        scanner=BalanceScanner(state.chains, clients),
        policy=policy,
        executor=executor,
        monitor=monitor,
    )


class RebalanceOrchestrator:
    """Runs scan -> decide -> (quote -> approve -> execute -> monitor) | wait.

    Holds only read-only collaborators, so concurrent cycles share nothing
    mutable. Each cycle gets its own :class:`CycleContext`.
    """

    def __init__(self, state: AppState, components: PipelineComponents):
        self.state = state
        self.components = components

    @classmethod
    def from_state(cls, state: AppState) -> RebalanceOrchestrator:
        return cls(state, build_components(state))

    async def run_cycle(self, vaults: Iterable[str] = ()) -> CycleResult:
        ctx = CycleContext(
            state=self.state,
            components=self.components,
            vaults=tuple(vaults),
        )
        return await run_cycle(ctx)
