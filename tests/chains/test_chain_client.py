from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import requests
from eth_account import Account
from web3 import Web3

from rebalance_agent.chains import BroadcastUncertain, ChainClient, ChainClientFactory

PRIVATE_KEY = "0x" + "4f" * 32
HOLDER = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def mock_w3():
    mock = MagicMock()
    mock.eth.get_transaction_count.return_value = 3
    mock.eth.gas_price = 1_000_000_000
    mock.eth.estimate_gas.return_value = 21_000
    mock.eth.send_raw_transaction.return_value = b"\x12" * 32
    return mock


def _client(registry, mock_w3, account=None) -> ChainClient:
    client = ChainClient(
        registry.get("SEP"),
        timeout=1.0,
        semaphore=asyncio.Semaphore(2),
        account=account,
    )
    client.w3 = mock_w3
    return client


@pytest.mark.asyncio
async def test_balance_of_returns_raw_integer(registry, mock_w3):
    contract = mock_w3.eth.contract.return_value
    contract.functions.balanceOf.return_value.call.return_value = 10_000_000
    client = _client(registry, mock_w3)

    balance = await client.balance_of(registry.get("SEP").token_address("USDC"), HOLDER)

    assert balance == 10_000_000
    contract.functions.balanceOf.assert_called_once_with(
        Web3.to_checksum_address(HOLDER)
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("malformed", [True, -1, "10", None])
async def test_balance_of_rejects_malformed_response(registry, mock_w3, malformed):
    contract = mock_w3.eth.contract.return_value
    contract.functions.balanceOf.return_value.call.return_value = malformed
    client = _client(registry, mock_w3)

    with pytest.raises(ValueError, match="Malformed balanceOf"):
        await client.balance_of(registry.get("SEP").token_address("USDC"), HOLDER)


@pytest.mark.asyncio
async def test_writes_require_a_signing_account(registry, mock_w3):
    client = _client(registry, mock_w3)

    with pytest.raises(ValueError, match="No signing account"):
        await client.send_transaction(HOLDER, "0x1234")


@pytest.mark.asyncio
async def test_send_transaction_signs_and_broadcasts(registry, mock_w3):
    account = Account.from_key(PRIVATE_KEY)
    client = _client(registry, mock_w3, account=account)

    tx_hash = await client.send_transaction(HOLDER, "0x1234", value=5)

    assert tx_hash == "0x" + "12" * 32
    mock_w3.eth.estimate_gas.assert_called_once()
    mock_w3.eth.get_transaction_count.assert_called_once_with(
        account.address, "pending"
    )
    mock_w3.eth.send_raw_transaction.assert_called_once()


@pytest.mark.asyncio
async def test_send_transaction_uses_quoted_gas_limit(registry, mock_w3):
    client = _client(registry, mock_w3, account=Account.from_key(PRIVATE_KEY))

    await client.send_transaction(HOLDER, "0x1234", gas_limit=500_000)

    mock_w3.eth.estimate_gas.assert_not_called()


@pytest.mark.asyncio
async def test_unanswered_broadcast_carries_the_signed_hash(registry, mock_w3):
    account = Account.from_key(PRIVATE_KEY)
    client = _client(registry, mock_w3, account=account)
    mock_w3.eth.send_raw_transaction.side_effect = requests.exceptions.ReadTimeout(
        "read timed out"
    )
    signed = account.sign_transaction(
        {
            "from": account.address,
            "to": Web3.to_checksum_address(HOLDER),
            "data": "0x1234",
            "value": 5,
            "nonce": 3,
            "chainId": registry.get("SEP").chain_id,
            "gasPrice": 1_000_000_000,
            "gas": 21_000,
        }
    )

    with pytest.raises(BroadcastUncertain) as excinfo:
        await client.send_transaction(HOLDER, "0x1234", value=5)

    assert excinfo.value.tx_hash == Web3.to_hex(signed.hash)
    assert isinstance(excinfo.value.__cause__, requests.exceptions.ReadTimeout)


@pytest.mark.asyncio
async def test_rejected_broadcast_is_not_uncertain(registry, mock_w3):
    client = _client(registry, mock_w3, account=Account.from_key(PRIVATE_KEY))
    mock_w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds")

    with pytest.raises(ValueError, match="insufficient funds"):
        await client.send_transaction(HOLDER, "0x1234", gas_limit=500_000)


def test_factory_reuses_clients_and_exposes_agent_address(registry):
    factory = ChainClientFactory(
        registry, timeout=1.0, max_concurrent_calls=2, private_key=PRIVATE_KEY
    )

    assert factory.agent_address == Account.from_key(PRIVATE_KEY).address
    assert factory.for_chain("SEP") is factory.for_chain("SEP")
    assert factory.for_chain("BAS") is not factory.for_chain("SEP")


def test_factory_without_key_has_no_agent_address(registry):
    factory = ChainClientFactory(registry, timeout=1.0, max_concurrent_calls=2)

    assert factory.agent_address is None
