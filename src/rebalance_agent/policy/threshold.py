"""Rule-based policy: move idle tokens to chains where the vault holds none."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

from ..domain import BalanceReport
from ..logger import get_logger
from ..settings import ThresholdPolicySettings
from ..units import from_base_units, token_decimals
from .base import DecisionPolicy

logger = get_logger(__name__)


def _as_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        return Decimal(0)


class ThresholdPolicy(DecisionPolicy):
    """Proposes a same-token transfer from the richest chain to an empty one.

    For each vault and each configured token: if one chain holds more than
    ``min_source_balance`` and another chain holds at most
    ``max_target_balance``, move ``min(source balance, capital)`` across.
    Balances substituted for failed reads are ignored.
    """

    def __init__(self, config: ThresholdPolicySettings):
        self.config = config
        self.tokens = [token.upper() for token in config.tokens]

    @property
    def name(self) -> str:
        return "threshold"

    async def decide(self, report: BalanceReport, capital: Decimal) -> dict[str, Any]:
        for vault, chains in report.balances.items():
            for symbol in self.tokens:
                holdings = [
                    (chain_key, _as_decimal(tokens[symbol]))
                    for chain_key, tokens in chains.items()
                    if symbol in tokens
                    and not report.is_fallback(vault, chain_key, symbol)
                ]
                if len(holdings) < 2:
                    continue

                source_chain, source_balance = max(holdings, key=lambda h: h[1])
                if source_balance <= self.config.min_source_balance:
                    continue

                targets = [
                    chain_key
                    for chain_key, balance in holdings
                    if chain_key != source_chain
                    and balance <= self.config.max_target_balance
                ]
                if not targets:
                    continue

                amount = self._round_down(min(source_balance, capital), symbol)
                logger.debug(
                    "Threshold rule matched: %s %s %s -> %s",
                    vault,
                    symbol,
                    source_chain,
                    targets[0],
                )
                return {
                    "action": "SWAP",
                    "vaultAddress": vault,
                    "fromChain": source_chain,
                    "targetChain": targets[0],
                    "sourceToken": symbol,
                    "targetToken": symbol,
                    "amount": amount,
                    "reason": (
                        f"{source_balance} {symbol} idle on {source_chain} while "
                        f"{targets[0]} holds {self.config.max_target_balance} or less"
                    ),
                }

        return {"action": "WAIT", "reason": "Balances within thresholds"}

    @staticmethod
    def _round_down(amount: Decimal, symbol: str) -> str:
        decimals = token_decimals(symbol)
        truncated = amount.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN)
        return from_base_units(int(truncated.scaleb(decimals)), decimals)
