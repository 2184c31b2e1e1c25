from __future__ import annotations

import json
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests
from web3 import Web3

from conftest import AGENT, BRIDGE, SPENDER, VAULT_A
from rebalance_agent.bridge import RouteQuoter, parse_quote
from rebalance_agent.domain import DestinationCall, NoRoute, Quote, QuoteRequest

USDC_SEP = "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"
USDC_BAS = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"


def _quote_body(**tx_overrides):
    tx = {"to": BRIDGE, "data": "0xdeadbeef", "value": "0x0", "gasLimit": "0x7a120"}
    tx.update(tx_overrides)
    return {
        "tool": "stargate",
        "transactionRequest": tx,
        "estimate": {
            "approvalAddress": SPENDER,
            "toAmount": "9950000",
            "feeCosts": [{"amountUSD": "0.03"}, {"amountUSD": "0.02"}],
        },
    }


def _request(destination_call=None) -> QuoteRequest:
    return QuoteRequest(
        from_chain_id=11155111,
        to_chain_id=84532,
        from_token=USDC_SEP,
        to_token=USDC_BAS,
        amount=10_000_000,
        from_address=AGENT,
        to_address=VAULT_A,
        destination_call=destination_call,
    )


def _response(status: int = 200, body=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = body
    response.text = json.dumps(body)
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


def test_parse_quote_extracts_route():
    quote = parse_quote(_quote_body())

    assert isinstance(quote, Quote)
    assert quote.to == BRIDGE
    assert quote.data == "0xdeadbeef"
    assert quote.value == 0
    assert quote.gas_limit == 500_000
    assert quote.tool == "stargate"
    assert quote.approval_address == SPENDER
    assert quote.estimated_output == 9_950_000
    assert quote.fee_usd == Decimal("0.05")


def test_parse_quote_falls_back_to_call_target_for_approval():
    body = _quote_body()
    del body["estimate"]["approvalAddress"]

    quote = parse_quote(body)

    assert isinstance(quote, Quote)
    assert quote.approval_address == BRIDGE


@pytest.mark.parametrize(
    "body",
    [
        None,
        [],
        {"message": "No available quotes for the requested transfer"},
        _quote_body(to=None),
        _quote_body(to="0x1234"),
        _quote_body(data=""),
        _quote_body(data="0x"),
        _quote_body(data="0xzz"),
        _quote_body(value="lots"),
    ],
)
def test_parse_quote_without_usable_call_is_no_route(body):
    assert isinstance(parse_quote(body), NoRoute)


@pytest.mark.asyncio
async def test_get_quote_sends_lifi_parameters(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        return _response(body=_quote_body())

    monkeypatch.setattr(requests, "get", fake_get)
    quoter = RouteQuoter(
        "https://li.quest/v1/",
        timeout=3.0,
        api_key="lifi-key",
        integrator="rebalance-agent",
        slippage=0.005,
    )

    quote = await quoter.get_quote(_request())

    assert isinstance(quote, Quote)
    url, kwargs = calls[0]
    assert url == "https://li.quest/v1/quote"
    assert kwargs["params"] == {
        "fromChain": "11155111",
        "toChain": "84532",
        "fromToken": USDC_SEP,
        "toToken": USDC_BAS,
        "fromAmount": "10000000",
        "fromAddress": AGENT,
        "toAddress": VAULT_A,
        "integrator": "rebalance-agent",
        "slippage": "0.005",
    }
    assert kwargs["headers"]["x-lifi-api-key"] == "lifi-key"
    assert kwargs["timeout"] == 3.0


@pytest.mark.asyncio
async def test_get_quote_with_destination_call_posts_contract_calls(monkeypatch):
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        return _response(body=_quote_body())

    monkeypatch.setattr(requests, "post", fake_post)
    call = DestinationCall(to=VAULT_A, data="0xabcdef01", gas_limit=300_000)
    quoter = RouteQuoter("https://li.quest/v1", timeout=3.0)

    quote = await quoter.get_quote(_request(destination_call=call))

    assert isinstance(quote, Quote)
    url, kwargs = calls[0]
    assert url == "https://li.quest/v1/quote/contractCalls"
    body = kwargs["json"]
    assert body["toFallbackAddress"] == VAULT_A
    assert body["contractCalls"] == [
        {
            "fromAmount": "10000000",
            "fromTokenAddress": USDC_BAS,
            "toContractAddress": VAULT_A,
            "toContractCallData": "0xabcdef01",
            "toContractGasLimit": "300000",
        }
    ]
    assert "x-lifi-api-key" not in kwargs["headers"]


@pytest.mark.asyncio
async def test_http_error_is_no_route_with_status(monkeypatch):
    body = {"message": "No available quotes for the requested transfer", "code": 1002}
    monkeypatch.setattr(requests, "get", lambda url, **kw: _response(404, body))
    quoter = RouteQuoter("https://li.quest/v1", timeout=3.0)

    result = await quoter.get_quote(_request())

    assert result == NoRoute(
        reason="No available quotes for the requested transfer", status_code=404
    )


@pytest.mark.asyncio
async def test_unreachable_bridge_is_no_route(monkeypatch):
    def fake_get(url, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", fake_get)
    quoter = RouteQuoter("https://li.quest/v1", timeout=3.0, max_tries=1)

    result = await quoter.get_quote(_request())

    assert isinstance(result, NoRoute)
    assert "connection refused" in result.reason


@pytest.mark.asyncio
async def test_success_without_transaction_request_is_no_route(monkeypatch):
    monkeypatch.setattr(
        requests, "get", lambda url, **kw: _response(body={"tool": "none"})
    )
    quoter = RouteQuoter("https://li.quest/v1", timeout=3.0)

    result = await quoter.get_quote(_request())

    assert isinstance(result, NoRoute)
    assert result.status_code == 200


def test_quote_addresses_are_checksummed():
    quote = parse_quote(_quote_body(to=BRIDGE.lower()))

    assert isinstance(quote, Quote)
    assert quote.to == Web3.to_checksum_address(BRIDGE)
