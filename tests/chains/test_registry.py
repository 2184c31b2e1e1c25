from __future__ import annotations

import pytest

from rebalance_agent.chains import ChainDescriptor, ChainRegistry, ConfigurationError
from rebalance_agent.constants import NATIVE_TOKEN
from rebalance_agent.settings import AgentSettings

VAULT = "0x1111111111111111111111111111111111111111"


def test_builds_catalogue_chains_in_configured_order():
    settings = AgentSettings(enabled_chains=["BAS", "SEP"], vault_addresses={"SEP": VAULT})

    registry = ChainRegistry.from_settings(settings)

    assert registry.keys() == ["BAS", "SEP"]
    assert registry.get("SEP").chain_id == 11155111
    assert registry.get("BAS").chain_id == 84532
    assert registry.primary_vault == VAULT
    assert "ARB" not in registry


def test_rpc_override_replaces_default_endpoint():
    settings = AgentSettings(
        rpc_urls={"SEP": "http://localhost:8545"}, vault_addresses={"SEP": VAULT}
    )

    registry = ChainRegistry.from_settings(settings)

    assert registry.get("SEP").rpc_url == "http://localhost:8545"


def test_native_token_is_excluded_from_erc20_symbols(registry):
    sep = registry.get("SEP")

    assert sep.is_native("ETH")
    assert sep.token_address("ETH") == NATIVE_TOKEN
    assert sep.erc20_symbols() == ["USDC", "WETH"]
    assert registry.token_symbols() == ["USDC", "WETH", "ETH"]


def test_custom_chain_is_registered():
    settings = AgentSettings(
        enabled_chains=["SEP", "OPS"],
        vault_addresses={"OPS": VAULT},
        custom_chains={
            "ops": {
                "chain_id": 11155420,
                "name": "OP Sepolia",
                "rpc": "https://sepolia.optimism.io",
                "tokens": {"usdc": "0x5fd84259d66cd46123540766be93dfe6d43130d7"},
            }
        },
    )

    registry = ChainRegistry.from_settings(settings)

    ops = registry.get("OPS")
    assert ops.chain_id == 11155420
    assert ops.vault == VAULT
    assert list(ops.tokens) == ["USDC"]
    assert registry.primary_vault == VAULT


def test_unknown_chain_key_is_a_configuration_error():
    settings = AgentSettings(enabled_chains=["SEP", "XYZ"], vault_addresses={"SEP": VAULT})

    with pytest.raises(ConfigurationError, match="Unknown chain key 'XYZ'"):
        ChainRegistry.from_settings(settings)


def test_custom_chain_without_rpc_is_a_configuration_error():
    settings = AgentSettings(
        enabled_chains=["SEP", "OPS"],
        vault_addresses={"SEP": VAULT},
        custom_chains={"OPS": {"chain_id": 11155420}},
    )

    with pytest.raises(ConfigurationError, match="Missing RPC endpoint for chain OPS"):
        ChainRegistry.from_settings(settings)


def test_unsupported_token_symbol_is_a_configuration_error():
    settings = AgentSettings(
        enabled_chains=["OPS"],
        vault_addresses={"OPS": VAULT},
        custom_chains={
            "OPS": {
                "chain_id": 11155420,
                "rpc": "http://localhost:8545",
                "tokens": {"DAI": VAULT},
            }
        },
    )

    with pytest.raises(ConfigurationError, match="Unsupported token symbol 'DAI'"):
        ChainRegistry.from_settings(settings)


def test_malformed_vault_address_is_a_configuration_error():
    settings = AgentSettings(vault_addresses={"SEP": "0xnope"})

    with pytest.raises(ConfigurationError, match="Invalid vault address on SEP"):
        ChainRegistry.from_settings(settings)


def test_missing_vault_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="No vault configured"):
        ChainRegistry.from_settings(AgentSettings())


def test_duplicate_chain_ids_are_rejected(registry):
    sep = registry.get("SEP")
    clone = ChainDescriptor(
        key="SEP2",
        chain_id=sep.chain_id,
        name="clone",
        rpc_url=sep.rpc_url,
        tokens=sep.tokens,
    )

    with pytest.raises(ConfigurationError, match="Duplicate chain id"):
        ChainRegistry([sep, clone])


def test_get_unknown_key_raises_key_error(registry):
    with pytest.raises(KeyError):
        registry.get("NOPE")
