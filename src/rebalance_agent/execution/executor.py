"""Quote, approve and submit one bridge transfer."""

from __future__ import annotations

from ..bridge import RouteQuoter, RouteUnavailable, encode_funds_received_call
from ..chains import (
    CHAIN_ERRORS,
    BroadcastUncertain,
    ChainClientFactory,
    ChainRegistry,
)
from ..domain import (
    DestinationCall,
    ExecutionMode,
    ExecutionResult,
    ExecutionStage,
    NoRoute,
    QuoteRequest,
    SwapDecision,
)
from ..logger import get_logger
from .approval import ApprovalManager
from .fallback import SimulationFallback

logger = get_logger(__name__)


class SubmissionFailure(Exception):
    """Raised when a transfer could not be broadcast and simulation is disabled."""


class TransactionExecutor:
    """Runs ``Idle -> Quoting -> Approving -> Submitting -> Submitted|Simulated -> Done``.

    A missing route or a submission error before broadcast hands over to the
    :class:`SimulationFallback`. The resulting ``ExecutionResult.mode`` always
    tells the two apart. A signed transfer whose broadcast went unanswered
    keeps its real hash and counts as submitted.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        clients: ChainClientFactory,
        quoter: RouteQuoter,
        approvals: ApprovalManager,
        fallback: SimulationFallback,
        callback_pool_fee: int | None = None,
        callback_gas_limit: int | None = None,
    ):
        self.registry = registry
        self.clients = clients
        self.quoter = quoter
        self.approvals = approvals
        self.fallback = fallback
        self.callback_pool_fee = callback_pool_fee
        self.callback_gas_limit = callback_gas_limit

    @property
    def sender(self) -> str:
        address = self.clients.agent_address
        if address is None:
            raise ValueError("A signing key is required to execute transfers")
        return address

    def _destination_call(self, decision: SwapDecision) -> DestinationCall | None:
        if self.callback_pool_fee is None or self.callback_gas_limit is None:
            return None
        target = self.registry.get(decision.target_chain)
        return encode_funds_received_call(
            vault_address=decision.vault_address,
            token_out=target.token_address(decision.target_token),
            pool_fee=self.callback_pool_fee,
            gas_limit=self.callback_gas_limit,
        )

    def build_quote_request(self, decision: SwapDecision) -> QuoteRequest:
        source = self.registry.get(decision.from_chain)
        target = self.registry.get(decision.target_chain)
        return QuoteRequest(
            from_chain_id=source.chain_id,
            to_chain_id=target.chain_id,
            from_token=source.token_address(decision.source_token),
            to_token=target.token_address(decision.target_token),
            amount=decision.amount_units,
            from_address=self.sender,
            to_address=decision.vault_address,
            destination_call=self._destination_call(decision),
        )

    async def execute(self, decision: SwapDecision) -> ExecutionResult:
        stages = [ExecutionStage.IDLE]
        source = self.registry.get(decision.from_chain)
        logger.info(
            "Strategy: %s %s (%s) -> %s (%s)",
            decision.amount,
            decision.source_token,
            decision.from_chain,
            decision.target_token,
            decision.target_chain,
        )

        stages.append(ExecutionStage.QUOTING)
        quote = await self.quoter.get_quote(self.build_quote_request(decision))
        if isinstance(quote, NoRoute):
            return await self.fallback.simulate(
                f"no route: {quote.reason}", stages, error=RouteUnavailable
            )

        stages.append(ExecutionStage.APPROVING)
        approval = await self.approvals.ensure_allowance(
            source, decision.source_token, quote.approval_address, decision.amount_units
        )

        stages.append(ExecutionStage.SUBMITTING)
        client = self.clients.for_chain(source.key)
        try:
            tx_hash = await client.send_transaction(
                quote.to, quote.data, quote.value, quote.gas_limit
            )
        except BroadcastUncertain as e:
            logger.warning("Bridge transaction broadcast unconfirmed: %s", e)
            tx_hash = e.tx_hash
        except CHAIN_ERRORS as e:
            return await self.fallback.simulate(
                f"submission failed before broadcast: {e}",
                stages,
                error=SubmissionFailure,
                approval=approval.outcome,
                approval_tx_hash=approval.tx_hash,
                tool=quote.tool,
            )

        logger.info("Bridge transaction submitted via %s: %s", quote.tool, tx_hash)
        return ExecutionResult(
            mode=ExecutionMode.SUBMITTED,
            tx_hash=tx_hash,
            stages=(*stages, ExecutionStage.SUBMITTED, ExecutionStage.DONE),
            approval=approval.outcome,
            approval_tx_hash=approval.tx_hash,
            tool=quote.tool,
        )
