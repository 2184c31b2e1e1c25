"""Shared fixtures and in-memory chain fakes."""

from __future__ import annotations

import logging
from types import MappingProxyType

import pytest
from web3 import Web3

from rebalance_agent.chains import ChainDescriptor, ChainRegistry
from rebalance_agent.constants import CHAIN_CATALOGUE
from rebalance_agent.settings import AgentSettings
from rebalance_agent.state import AppState

VAULT_A = Web3.to_checksum_address("0x" + "a1" * 20)
VAULT_B = Web3.to_checksum_address("0x" + "b2" * 20)
AGENT = Web3.to_checksum_address("0x" + "c3" * 20)
BRIDGE = Web3.to_checksum_address("0x" + "d4" * 20)
SPENDER = Web3.to_checksum_address("0x" + "e5" * 20)


class FakeChainClient:
    """Stands in for ``ChainClient`` with balances held in memory."""

    def __init__(self, chain: ChainDescriptor):
        self.chain = chain
        self.balances: dict[tuple[str, str], int] = {}
        self.native: dict[str, int] = {}
        self.read_errors: dict[tuple[str, str], Exception] = {}
        self.approve_error: Exception | None = None
        self.send_error: Exception | None = None
        self.approvals: list[tuple[str, str, int]] = []
        self.sent: list[tuple[str, str, int, int | None]] = []
        self.balance_calls = 0

    def set_balance(self, symbol: str, holder: str, amount: int) -> None:
        self.balances[(self.chain.token_address(symbol).lower(), holder.lower())] = (
            amount
        )

    def fail_read(self, symbol: str, holder: str, error: Exception) -> None:
        key = (self.chain.token_address(symbol).lower(), holder.lower())
        self.read_errors[key] = error

    async def balance_of(self, token_address: str, holder: str) -> int:
        self.balance_calls += 1
        key = (token_address.lower(), holder.lower())
        if key in self.read_errors:
            raise self.read_errors[key]
        return self.balances.get(key, 0)

    async def native_balance(self, holder: str) -> int:
        return self.native.get(holder.lower(), 0)

    async def approve(self, token_address: str, spender: str, amount: int) -> str:
        if self.approve_error is not None:
            raise self.approve_error
        self.approvals.append((token_address, spender, amount))
        return "0x" + "11" * 32

    async def send_transaction(
        self, to: str, data: str, value: int = 0, gas_limit: int | None = None
    ) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((to, data, value, gas_limit))
        return "0x" + "22" * 32


class FakeClientFactory:
    """Stands in for ``ChainClientFactory``."""

    def __init__(self, registry: ChainRegistry, agent_address: str | None = AGENT):
        self.registry = registry
        self.agent_address = agent_address
        self.clients = {chain.key: FakeChainClient(chain) for chain in registry}

    def for_chain(self, key: str) -> FakeChainClient:
        return self.clients[key]


def make_registry(vault: str | None = VAULT_A) -> ChainRegistry:
    chains = []
    for index, (key, entry) in enumerate(CHAIN_CATALOGUE.items()):
        chains.append(
            ChainDescriptor(
                key=key,
                chain_id=entry["chain_id"],
                name=entry["name"],
                rpc_url=f"http://localhost:{8545 + index}",
                tokens=MappingProxyType(
                    {
                        symbol: Web3.to_checksum_address(address)
                        for symbol, address in entry["tokens"].items()
                    }
                ),
                vault=vault if index == 0 else None,
            )
        )
    return ChainRegistry(chains)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user config files and agent env vars out of every test."""
    monkeypatch.setenv("REBALANCE_AGENT_CONFIG", str(tmp_path / "missing.toml"))
    for name in (
        "REBALANCE_AGENT_PRIVATE_KEY",
        "REBALANCE_AGENT_LIFI_API_KEY",
        "REBALANCE_AGENT_DECISION_API_KEY",
        "REBALANCE_AGENT_DECISION_POLICY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def registry() -> ChainRegistry:
    return make_registry()


@pytest.fixture
def clients(registry) -> FakeClientFactory:
    return FakeClientFactory(registry)


@pytest.fixture
def settings() -> AgentSettings:
    return AgentSettings(
        vault_addresses={"SEP": VAULT_A},
        private_key="0x" + "4f" * 32,
        approval_settle_seconds=0,
        simulation_delay_seconds=0,
        monitor_interval_seconds=0,
        monitor_max_attempts=2,
        decision_timeout=1.0,
        cycle_timeout_seconds=5.0,
    )


@pytest.fixture
def state(settings, registry) -> AppState:
    return AppState(
        settings=settings, logger=logging.getLogger("test"), chains=registry
    )
