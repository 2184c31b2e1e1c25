"""Best-effort token approval for the bridge spender."""

from __future__ import annotations

import asyncio
from typing import NamedTuple

from ..chains import (
    CHAIN_ERRORS,
    BroadcastUncertain,
    ChainClientFactory,
    ChainDescriptor,
)
from ..domain import ApprovalOutcome
from ..logger import get_logger

logger = get_logger(__name__)


class ApprovalReceipt(NamedTuple):
    outcome: ApprovalOutcome
    tx_hash: str | None = None


class ApprovalManager:
    """Approves the quote's spender for the transfer amount.

    The current allowance is not queried: every transfer re-approves. A
    failed approval is logged and the cycle continues. After a successful
    submission the manager waits ``settle_seconds``; this is a coarse wait,
    not a confirmation.
    """

    def __init__(self, clients: ChainClientFactory, settle_seconds: float):
        self.clients = clients
        self.settle_seconds = settle_seconds

    async def ensure_allowance(
        self,
        chain: ChainDescriptor,
        symbol: str,
        spender: str,
        amount: int,
    ) -> ApprovalReceipt:
        if chain.is_native(symbol):
            logger.debug("%s is native on %s; no approval needed", symbol, chain.key)
            return ApprovalReceipt(ApprovalOutcome.SKIPPED_NATIVE)

        token_address = chain.token_address(symbol)
        client = self.clients.for_chain(chain.key)
        logger.info(
            "Approving %s to spend %d %s units on %s", spender, amount, symbol, chain.key
        )
        try:
            tx_hash = await client.approve(token_address, spender, amount)
        except BroadcastUncertain as e:
            logger.warning("Approval broadcast unconfirmed, assuming sent: %s", e)
            tx_hash = e.tx_hash
        except CHAIN_ERRORS as e:
            logger.warning(
                "Approval of %s on %s failed, continuing without it: %s",
                symbol,
                chain.key,
                e,
            )
            return ApprovalReceipt(ApprovalOutcome.FAILED)

        logger.info(
            "Approval sent: %s; settling for %.1fs", tx_hash, self.settle_seconds
        )
        if self.settle_seconds > 0:
            await asyncio.sleep(self.settle_seconds)
        return ApprovalReceipt(ApprovalOutcome.SUBMITTED, tx_hash)
