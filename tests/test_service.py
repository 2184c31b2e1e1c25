from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from web3 import Web3

from rebalance_agent.domain import CycleResult, WaitDecision
from rebalance_agent.service import register_vault, trigger_cycle
from rebalance_agent.vaults import InvalidVaultAddress, VaultRegistry

ADDRESS = "0x" + "5e" * 20


def test_register_vault_reports_status_and_count():
    registry = VaultRegistry()

    first = register_vault(registry, ADDRESS)
    again = register_vault(registry, ADDRESS.upper().replace("0X", "0x"))

    assert first.to_dict() == {
        "status": "registered",
        "address": Web3.to_checksum_address(ADDRESS),
        "count": 1,
    }
    assert again.status == "already_registered"
    assert again.count == 1


def test_register_vault_rejects_missing_address():
    with pytest.raises(InvalidVaultAddress):
        register_vault(VaultRegistry(), "")


@pytest.mark.asyncio
async def test_trigger_cycle_runs_on_a_snapshot():
    registry = VaultRegistry([ADDRESS])
    orchestrator = MagicMock()
    orchestrator.run_cycle = AsyncMock(
        return_value=CycleResult(success=True, decision=WaitDecision(reason="balanced"))
    )

    response = await trigger_cycle(orchestrator, registry)

    orchestrator.run_cycle.assert_awaited_once_with((Web3.to_checksum_address(ADDRESS),))
    assert response == {
        "success": True,
        "decision": {"action": "WAIT", "reason": "balanced", "coerced": False},
        "txHash": None,
        "simulated": False,
        "execution": None,
        "delivery": None,
        "readFailures": 0,
    }


@pytest.mark.asyncio
async def test_trigger_cycle_never_raises():
    orchestrator = MagicMock()
    orchestrator.run_cycle = AsyncMock(side_effect=RuntimeError("rpc gone"))

    response = await trigger_cycle(orchestrator, VaultRegistry())

    assert response == {"success": False, "error": "rpc gone"}


@pytest.mark.asyncio
async def test_registration_during_a_cycle_does_not_change_its_vaults():
    registry = VaultRegistry([ADDRESS])
    seen = []

    async def run_cycle(vaults):
        seen.append(vaults)
        registry.add("0x" + "6f" * 20)
        await asyncio.sleep(0)
        return CycleResult(success=True, decision=WaitDecision(reason="ok"))

    orchestrator = MagicMock()
    orchestrator.run_cycle = run_cycle

    await trigger_cycle(orchestrator, registry)

    assert seen == [(Web3.to_checksum_address(ADDRESS),)]
    assert len(registry) == 2
