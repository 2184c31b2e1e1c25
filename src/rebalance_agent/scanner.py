"""Balance aggregation across every registered chain."""

from __future__ import annotations

import asyncio
from typing import Iterable

from web3 import Web3

from .chains import ChainClientFactory, ChainRegistry
from .domain import BalanceReport, ReadFailure
from .logger import get_logger
from .units import from_base_units, token_decimals

logger = get_logger(__name__)


def dedupe_vaults(primary: str | None, extra: Iterable[str]) -> list[str]:
    """Primary vault first, then registered vaults, each address once.

    Comparison is case-insensitive; the first spelling seen wins.
    """
    vaults: list[str] = []
    seen: set[str] = set()
    for address in [primary, *extra]:
        if not address:
            continue
        normalized = address.lower()
        if normalized in seen:
            continue
        seen.add(normalized)
        vaults.append(
            Web3.to_checksum_address(address) if Web3.is_address(address) else address
        )
    return vaults


class BalanceScanner:
    """Reads ERC20 balances for a set of vaults on every registered chain.

    Best effort: a failed read is recorded as ``"0"`` plus a
    :class:`ReadFailure` and never aborts the rest of the scan. Native-currency
    balances are not read.
    """

    def __init__(self, registry: ChainRegistry, clients: ChainClientFactory):
        self.registry = registry
        self.clients = clients

    async def scan(self, vault_addresses: Iterable[str]) -> BalanceReport:
        vaults = dedupe_vaults(self.registry.primary_vault, vault_addresses)
        logger.info(
            "Scanning %d vault(s) across %d chain(s)", len(vaults), len(self.registry)
        )

        units = [
            (vault, chain.key, symbol)
            for vault in vaults
            for chain in self.registry
            for symbol in chain.erc20_symbols()
        ]
        results = await asyncio.gather(
            *[self._read(vault, chain_key, symbol) for vault, chain_key, symbol in units],
            return_exceptions=True,
        )

        balances: dict[str, dict[str, dict[str, str]]] = {
            vault: {chain.key: {} for chain in self.registry} for vault in vaults
        }
        failures: list[ReadFailure] = []
        for (vault, chain_key, symbol), result in zip(units, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Balance read failed for %s %s on %s, recording 0: %s",
                    vault,
                    symbol,
                    chain_key,
                    result,
                )
                failures.append(
                    ReadFailure(
                        vault_address=vault,
                        chain_key=chain_key,
                        symbol=symbol,
                        error=str(result) or type(result).__name__,
                    )
                )
                balances[vault][chain_key][symbol] = "0"
            else:
                balances[vault][chain_key][symbol] = result

        logger.info(
            "Scan complete: %d balance(s) read, %d failure(s)",
            len(units) - len(failures),
            len(failures),
        )
        return BalanceReport.from_dict(balances, failures)

    async def _read(self, vault: str, chain_key: str, symbol: str) -> str:
        chain = self.registry.get(chain_key)
        client = self.clients.for_chain(chain_key)
        raw = await client.balance_of(chain.token_address(symbol), vault)
        formatted = from_base_units(raw, token_decimals(symbol))
        logger.debug("%s %s on %s: %s", vault, symbol, chain_key, formatted)
        return formatted
