from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# vault address -> chain key -> token symbol -> decimal string
BalanceTable = Mapping[str, Mapping[str, Mapping[str, str]]]


@dataclass(frozen=True)
class ReadFailure:
    """A balance query that failed and was recorded as zero."""

    vault_address: str
    chain_key: str
    symbol: str
    error: str


@dataclass(frozen=True)
class BalanceReport:
    """Balances of every scanned vault on every chain.

    Built fresh each cycle and never mutated. Ordering of vaults and chains
    follows the scan input and registry order.
    """

    balances: BalanceTable
    failures: tuple[ReadFailure, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(
        cls,
        balances: dict[str, dict[str, dict[str, str]]],
        failures: list[ReadFailure] | tuple[ReadFailure, ...] = (),
    ) -> BalanceReport:
        frozen = MappingProxyType(
            {
                vault: MappingProxyType(
                    {
                        chain: MappingProxyType(dict(tokens))
                        for chain, tokens in chains.items()
                    }
                )
                for vault, chains in balances.items()
            }
        )
        return cls(balances=frozen, failures=tuple(failures))

    @property
    def vaults(self) -> list[str]:
        return list(self.balances)

    def balance(self, vault_address: str, chain_key: str, symbol: str) -> str:
        return self.balances[vault_address][chain_key][symbol]

    def is_fallback(self, vault_address: str, chain_key: str, symbol: str) -> bool:
        """True if this entry is a zero substituted for a failed read."""
        return any(
            f.vault_address == vault_address
            and f.chain_key == chain_key
            and f.symbol == symbol
            for f in self.failures
        )

    def to_dict(self) -> dict[str, dict[str, dict[str, str]]]:
        return {
            vault: {chain: dict(tokens) for chain, tokens in chains.items()}
            for vault, chains in self.balances.items()
        }
