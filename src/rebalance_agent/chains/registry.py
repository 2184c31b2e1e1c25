"""Static catalogue of supported chains, loaded once at startup."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterator, Mapping

from eth_utils import is_hex_address
from web3 import Web3

from ..constants import CHAIN_CATALOGUE, NATIVE_TOKEN, TOKEN_DECIMALS
from ..logger import get_logger

if TYPE_CHECKING:
    from ..settings import AgentSettings

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when required chain configuration is missing or malformed."""


def _checksum(value: str, what: str) -> str:
    """Checksum ``value``. Letter case of the input is not validated."""
    if not isinstance(value, str) or not is_hex_address(value):
        raise ConfigurationError(f"Invalid {what}: {value!r}")
    return Web3.to_checksum_address(value)


@dataclass(frozen=True)
class ChainDescriptor:
    """One registered network. Immutable after load."""

    key: str
    chain_id: int
    name: str
    rpc_url: str
    tokens: Mapping[str, str]
    vault: str | None = None
    native_token: str = NATIVE_TOKEN

    def token_address(self, symbol: str) -> str:
        try:
            return self.tokens[symbol]
        except KeyError:
            raise KeyError(f"Token {symbol} is not registered on chain {self.key}")

    def is_native(self, symbol: str) -> bool:
        return self.tokens.get(symbol, "").lower() == self.native_token.lower()

    def erc20_symbols(self) -> list[str]:
        """Token symbols excluding the native-currency sentinel, in registry order."""
        return [symbol for symbol in self.tokens if not self.is_native(symbol)]


class ChainRegistry:
    """Read-only lookup of chain descriptors by chain key."""

    def __init__(self, chains: list[ChainDescriptor]):
        if not chains:
            raise ConfigurationError("At least one chain must be registered")
        by_key: dict[str, ChainDescriptor] = {}
        seen_ids: set[int] = set()
        for chain in chains:
            if chain.key in by_key:
                raise ConfigurationError(f"Duplicate chain key: {chain.key}")
            if chain.chain_id in seen_ids:
                raise ConfigurationError(f"Duplicate chain id: {chain.chain_id}")
            by_key[chain.key] = chain
            seen_ids.add(chain.chain_id)
        self._chains = MappingProxyType(by_key)

    @classmethod
    def from_settings(cls, settings: AgentSettings) -> ChainRegistry:
        """Build and validate the chain table from settings.

        Raises:
            ConfigurationError: If a chain is unknown, an RPC endpoint or
                address is missing or malformed, a token symbol is not
                supported, or no vault is configured on any chain.
        """
        chains: list[ChainDescriptor] = []
        for key in settings.enabled_chains:
            custom = settings.custom_chains.get(key)
            catalogue = CHAIN_CATALOGUE.get(key)
            if custom is None and catalogue is None:
                raise ConfigurationError(
                    f"Unknown chain key '{key}'. Built-in chains: "
                    f"{', '.join(CHAIN_CATALOGUE)}; define others under custom_chains"
                )

            if custom is not None:
                chain_id = custom.chain_id
                name = custom.name or key
                raw_tokens = custom.tokens
                rpc = settings.rpc_urls.get(key) or custom.rpc
                vault = settings.vault_addresses.get(key) or custom.vault
            else:
                assert catalogue is not None
                chain_id = catalogue["chain_id"]
                name = catalogue["name"]
                raw_tokens = catalogue["tokens"]
                rpc = settings.rpc_urls.get(key) or catalogue["default_rpc"]
                vault = settings.vault_addresses.get(key)

            if not rpc:
                raise ConfigurationError(f"Missing RPC endpoint for chain {key}")

            tokens: dict[str, str] = {}
            for symbol, address in raw_tokens.items():
                normalized = symbol.upper()
                if normalized not in TOKEN_DECIMALS:
                    raise ConfigurationError(
                        f"Unsupported token symbol '{symbol}' on chain {key}. "
                        f"Supported: {', '.join(TOKEN_DECIMALS)}"
                    )
                tokens[normalized] = _checksum(address, f"{normalized} address on {key}")

            chains.append(
                ChainDescriptor(
                    key=key,
                    chain_id=chain_id,
                    name=name,
                    rpc_url=rpc,
                    tokens=MappingProxyType(tokens),
                    vault=_checksum(vault, f"vault address on {key}") if vault else None,
                )
            )

        registry = cls(chains)
        if registry.primary_vault is None:
            raise ConfigurationError(
                "No vault configured. Set vault_addresses for at least one chain."
            )
        logger.debug("Loaded %d chains: %s", len(registry), ", ".join(registry.keys()))
        return registry

    def __len__(self) -> int:
        return len(self._chains)

    def __iter__(self) -> Iterator[ChainDescriptor]:
        return iter(self._chains.values())

    def __contains__(self, key: object) -> bool:
        return key in self._chains

    def keys(self) -> list[str]:
        return list(self._chains)

    def get(self, key: str) -> ChainDescriptor:
        try:
            return self._chains[key]
        except KeyError:
            raise KeyError(f"Unknown chain key: {key}")

    def token_symbols(self) -> list[str]:
        """All token symbols known on any chain, in first-seen order."""
        symbols: list[str] = []
        for chain in self:
            for symbol in chain.tokens:
                if symbol not in symbols:
                    symbols.append(symbol)
        return symbols

    @property
    def primary_vault(self) -> str | None:
        """Vault of the first registered chain that has one."""
        for chain in self:
            if chain.vault:
                return chain.vault
        return None
