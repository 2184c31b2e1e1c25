from __future__ import annotations

from decimal import Decimal

import pytest

from conftest import VAULT_A
from rebalance_agent.domain import BalanceReport, ReadFailure, SwapDecision
from rebalance_agent.policy import ThresholdPolicy, coerce_decision
from rebalance_agent.settings import ThresholdPolicySettings


def _report(sep="0", bas="0", arb="0", failures=()):
    return BalanceReport.from_dict(
        {
            VAULT_A: {
                "SEP": {"USDC": sep, "WETH": "0"},
                "BAS": {"USDC": bas, "WETH": "0"},
                "ARB": {"USDC": arb, "WETH": "0"},
            }
        },
        failures,
    )


@pytest.mark.asyncio
async def test_moves_idle_balance_to_empty_chain(registry):
    policy = ThresholdPolicy(ThresholdPolicySettings())

    raw = await policy.decide(_report(sep="10", bas="3", arb="0"), Decimal("10"))

    assert raw["action"] == "SWAP"
    assert raw["fromChain"] == "SEP"
    assert raw["targetChain"] == "ARB"
    assert raw["sourceToken"] == raw["targetToken"] == "USDC"
    assert raw["amount"] == "10"
    decision = coerce_decision(raw, registry, [VAULT_A])
    assert isinstance(decision, SwapDecision)


@pytest.mark.asyncio
async def test_amount_is_capped_by_capital(registry):
    policy = ThresholdPolicy(ThresholdPolicySettings())

    raw = await policy.decide(_report(sep="250.1234567"), Decimal("7.5"))

    assert raw["amount"] == "7.5"


@pytest.mark.asyncio
async def test_amount_is_rounded_down_to_token_precision():
    policy = ThresholdPolicy(ThresholdPolicySettings())

    raw = await policy.decide(_report(sep="8.1234569"), Decimal("100"))

    assert raw["amount"] == "8.123456"


@pytest.mark.asyncio
async def test_waits_when_below_threshold():
    policy = ThresholdPolicy(ThresholdPolicySettings(min_source_balance=Decimal("5")))

    raw = await policy.decide(_report(sep="5"), Decimal("10"))

    assert raw == {"action": "WAIT", "reason": "Balances within thresholds"}


@pytest.mark.asyncio
async def test_waits_when_every_chain_is_funded():
    policy = ThresholdPolicy(ThresholdPolicySettings())

    raw = await policy.decide(_report(sep="10", bas="1", arb="1"), Decimal("10"))

    assert raw["action"] == "WAIT"


@pytest.mark.asyncio
async def test_failed_reads_are_not_treated_as_empty():
    policy = ThresholdPolicy(ThresholdPolicySettings())
    failures = [
        ReadFailure(VAULT_A, "BAS", "USDC", "timeout"),
        ReadFailure(VAULT_A, "ARB", "USDC", "timeout"),
    ]

    raw = await policy.decide(_report(sep="10", failures=failures), Decimal("10"))

    assert raw["action"] == "WAIT"
