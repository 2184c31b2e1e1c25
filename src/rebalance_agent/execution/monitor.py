"""Destination-side delivery confirmation."""

from __future__ import annotations

import asyncio

from ..chains import CHAIN_ERRORS, ChainClientFactory, ChainRegistry
from ..domain import DeliveryState, DeliveryStatus, ExecutionResult
from ..logger import get_logger

logger = get_logger(__name__)


class CompletionMonitor:
    """Polls the destination balance until it rises above a baseline.

    Gives up after ``max_attempts`` polls spaced ``interval_seconds`` apart.
    A timeout means delivery is unconfirmed, not that the submission failed.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        clients: ChainClientFactory,
        interval_seconds: float,
        max_attempts: int,
    ):
        self.registry = registry
        self.clients = clients
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts

    async def read_balance(self, chain_key: str, symbol: str, holder: str) -> int:
        chain = self.registry.get(chain_key)
        client = self.clients.for_chain(chain_key)
        if chain.is_native(symbol):
            return await client.native_balance(holder)
        return await client.balance_of(chain.token_address(symbol), holder)

    async def read_baseline(
        self, chain_key: str, symbol: str, holder: str
    ) -> int | None:
        """Balance before submission, or ``None`` if it cannot be read."""
        try:
            return await self.read_balance(chain_key, symbol, holder)
        except CHAIN_ERRORS as e:
            logger.warning(
                "Could not read %s baseline on %s for %s: %s", symbol, chain_key, holder, e
            )
            return None

    async def wait_for_delivery(
        self,
        execution: ExecutionResult,
        chain_key: str,
        symbol: str,
        holder: str,
        baseline: int | None,
    ) -> DeliveryStatus:
        if execution.simulated:
            return DeliveryStatus(
                state=DeliveryState.SKIPPED,
                message="simulated execution; nothing to confirm",
            )
        if baseline is None:
            return DeliveryStatus(
                state=DeliveryState.UNKNOWN,
                message="baseline balance unavailable; delivery not monitored",
            )

        logger.info(
            "Monitoring %s on %s for %s (baseline %d, %d attempts every %.1fs)",
            symbol,
            chain_key,
            holder,
            baseline,
            self.max_attempts,
            self.interval_seconds,
        )
        last: int | None = None
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.interval_seconds)
            try:
                last = await self.read_balance(chain_key, symbol, holder)
            except CHAIN_ERRORS as e:
                logger.debug("Delivery poll %d failed: %s", attempt, e)
                continue
            if last > baseline:
                logger.info(
                    "Delivery confirmed on %s after %d poll(s): %d -> %d",
                    chain_key,
                    attempt,
                    baseline,
                    last,
                )
                return DeliveryStatus(
                    state=DeliveryState.CONFIRMED,
                    attempts=attempt,
                    baseline=baseline,
                    final_balance=last,
                )

        logger.warning(
            "Delivery of %s on %s not observed after %d poll(s); submission stands unconfirmed",
            symbol,
            chain_key,
            self.max_attempts,
        )
        return DeliveryStatus(
            state=DeliveryState.TIMEOUT,
            attempts=self.max_attempts,
            baseline=baseline,
            final_balance=last,
            message="submitted, delivery unconfirmed",
        )
