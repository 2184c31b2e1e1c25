"""Read/write access to a single registered chain."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import backoff
import requests
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import URI
from web3 import Web3
from web3.exceptions import ProviderConnectionError, Web3Exception

from ..abi import ERC20_ABI
from ..logger import get_logger
from .registry import ChainDescriptor, ChainRegistry

logger = get_logger(__name__)

# Failures of a chain read or write that callers contain instead of propagating
CHAIN_ERRORS: tuple[type[Exception], ...] = (
    Web3Exception,
    requests.exceptions.RequestException,
    ValueError,
    OSError,
)

# Transport failures of send_raw_transaction after which the node may hold the transaction
BROADCAST_UNKNOWN_ERRORS: tuple[type[Exception], ...] = (
    requests.exceptions.ReadTimeout,
    TimeoutError,
)


class BroadcastUncertain(Exception):
    """Raised when a signed transaction may have reached the network.

    ``tx_hash`` is the locally computed hash of the signed transaction, so the
    caller can report and track it even though the node never answered.
    """

    def __init__(self, tx_hash: str, cause: Exception):
        super().__init__(f"broadcast of {tx_hash} unconfirmed: {cause}")
        self.tx_hash = tx_hash


class ChainClient:
    """Thin async wrapper around a synchronous ``Web3`` instance.

    Calls run in worker threads and share a semaphore so a scan fan-out
    never exceeds the configured number of concurrent RPC calls.
    """

    def __init__(
        self,
        chain: ChainDescriptor,
        *,
        timeout: float,
        semaphore: asyncio.Semaphore,
        account: LocalAccount | None = None,
    ):
        self.chain = chain
        self.account = account
        self.w3 = Web3(
            Web3.HTTPProvider(URI(chain.rpc_url), request_kwargs={"timeout": timeout})
        )
        self._sem = semaphore

    @backoff.on_exception(
        backoff.expo, ProviderConnectionError, max_tries=3, jitter=backoff.full_jitter
    )
    async def _rpc(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Throttle + backoff a single RPC."""
        async with self._sem:
            return await asyncio.to_thread(fn, *args, **kwargs)

    @property
    def account_required(self) -> LocalAccount:
        if self.account is None:
            raise ValueError(
                f"No signing account configured for writes on chain {self.chain.key}"
            )
        return self.account

    def _erc20(self, token_address: str):
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )

    async def balance_of(self, token_address: str, holder: str) -> int:
        """Return ``holder``'s balance of ``token_address`` in the token's smallest unit."""
        contract = self._erc20(token_address)
        balance = await self._rpc(
            contract.functions.balanceOf(Web3.to_checksum_address(holder)).call
        )
        if isinstance(balance, bool) or not isinstance(balance, int) or balance < 0:
            raise ValueError(
                f"Malformed balanceOf response from {token_address} on {self.chain.key}: {balance!r}"
            )
        return balance

    async def native_balance(self, holder: str) -> int:
        """Return ``holder``'s native-currency balance in wei."""
        return await self._rpc(
            self.w3.eth.get_balance, Web3.to_checksum_address(holder)
        )

    async def approve(self, token_address: str, spender: str, amount: int) -> str:
        """Sign and broadcast an ERC20 ``approve``. Returns the transaction hash."""
        account = self.account_required
        contract = self._erc20(token_address)

        def _build_and_send() -> str:
            tx = contract.functions.approve(
                Web3.to_checksum_address(spender), amount
            ).build_transaction(
                {
                    "from": account.address,
                    "nonce": self.w3.eth.get_transaction_count(
                        account.address, "pending"
                    ),
                    "chainId": self.chain.chain_id,
                }
            )
            return self._sign_and_send(tx)

        return await self._rpc(_build_and_send)

    async def send_transaction(
        self,
        to: str,
        data: str,
        value: int = 0,
        gas_limit: int | None = None,
    ) -> str:
        """Sign and broadcast an arbitrary call. Returns the transaction hash."""
        account = self.account_required

        def _build_and_send() -> str:
            tx: dict[str, Any] = {
                "from": account.address,
                "to": Web3.to_checksum_address(to),
                "data": data,
                "value": value,
                "nonce": self.w3.eth.get_transaction_count(account.address, "pending"),
                "chainId": self.chain.chain_id,
                "gasPrice": self.w3.eth.gas_price,
            }
            tx["gas"] = gas_limit or self.w3.eth.estimate_gas(tx)
            return self._sign_and_send(tx)

        return await self._rpc(_build_and_send)

    def _sign_and_send(self, tx: dict[str, Any]) -> str:
        signed = self.account_required.sign_transaction(tx)
        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except BROADCAST_UNKNOWN_ERRORS as e:
            raise BroadcastUncertain(Web3.to_hex(signed.hash), e) from e
        return Web3.to_hex(tx_hash)


class ChainClientFactory:
    """Creates one ``ChainClient`` per chain key and reuses it."""

    def __init__(
        self,
        registry: ChainRegistry,
        *,
        timeout: float,
        max_concurrent_calls: int,
        private_key: str | None = None,
    ):
        self.registry = registry
        self.timeout = timeout
        self.account: LocalAccount | None = (
            Account.from_key(private_key) if private_key else None
        )
        self._max_concurrent_calls = max_concurrent_calls
        self._semaphore: asyncio.Semaphore | None = None
        self._clients: dict[str, ChainClient] = {}

    @property
    def agent_address(self) -> str | None:
        return self.account.address if self.account else None

    def for_chain(self, key: str) -> ChainClient:
        client = self._clients.get(key)
        if client is None:
            if self._semaphore is None:
                self._semaphore = asyncio.Semaphore(self._max_concurrent_calls)
            client = ChainClient(
                self.registry.get(key),
                timeout=self.timeout,
                semaphore=self._semaphore,
                account=self.account,
            )
            self._clients[key] = client
            logger.debug("Created client for chain %s (%s)", key, client.chain.rpc_url)
        return client
