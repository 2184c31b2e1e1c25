"""Route acquisition from the LI.FI bridge aggregator."""

from __future__ import annotations

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any

import backoff
import requests
from eth_utils import is_0x_prefixed, is_hexstr
from web3 import Web3

from ..domain import NoRoute, Quote, QuoteRequest
from ..logger import get_logger

logger = get_logger(__name__)

RETRIABLE_STATUS = {429, 500, 502, 503, 504}


class RouteUnavailable(Exception):
    """Raised when no usable route exists and simulation is disabled."""


def _giveup(e: Exception) -> bool:
    return (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRIABLE_STATUS
    )


def _to_int(value: Any) -> int:
    """Parse an integer that may arrive as int, decimal string or 0x-hex string."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Invalid integer: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def _is_calldata(value: Any) -> bool:
    if not isinstance(value, str) or len(value) <= 2:
        return False
    return is_0x_prefixed(value) and is_hexstr(value) and len(value) % 2 == 0


def _sum_fee_usd(estimate: dict[str, Any]) -> Decimal | None:
    fee_costs = estimate.get("feeCosts")
    if not isinstance(fee_costs, list) or not fee_costs:
        return None
    total = Decimal(0)
    for cost in fee_costs:
        if not isinstance(cost, dict):
            continue
        try:
            total += Decimal(str(cost.get("amountUSD", "0")))
        except InvalidOperation:
            continue
    return total


def parse_quote(body: Any) -> Quote | NoRoute:
    """Extract a usable quote from a LI.FI response body.

    A body without a valid ``transactionRequest.to`` address and non-empty
    ``transactionRequest.data`` is a :class:`NoRoute`, whatever the HTTP
    status said.
    """
    if not isinstance(body, dict):
        return NoRoute(reason="Bridge response is not an object")

    tx = body.get("transactionRequest")
    if not isinstance(tx, dict):
        message = body.get("message") or "No transactionRequest in bridge response"
        return NoRoute(reason=str(message))

    to = tx.get("to")
    data = tx.get("data")
    if not isinstance(to, str) or not Web3.is_address(to):
        return NoRoute(reason=f"Bridge returned invalid call target {to!r}")
    if not _is_calldata(data):
        return NoRoute(reason="Bridge returned empty or malformed call data")

    estimate = body.get("estimate") if isinstance(body.get("estimate"), dict) else {}
    approval = estimate.get("approvalAddress")
    approval_address = (
        Web3.to_checksum_address(approval)
        if isinstance(approval, str) and Web3.is_address(approval)
        else Web3.to_checksum_address(to)
    )

    try:
        value = _to_int(tx.get("value"))
        estimated_output = _to_int(estimate.get("toAmount"))
        gas_limit = _to_int(tx.get("gasLimit")) or None
    except ValueError as e:
        return NoRoute(reason=f"Bridge returned malformed numeric field: {e}")

    return Quote(
        to=Web3.to_checksum_address(to),
        data=data,
        value=value,
        tool=str(body.get("tool") or "unknown"),
        approval_address=approval_address,
        estimated_output=estimated_output,
        fee_usd=_sum_fee_usd(estimate),
        gas_limit=gas_limit,
        raw=body,
    )


class RouteQuoter:
    """Requests transfer routes from LI.FI.

    Never raises for transport or route problems: every failure becomes a
    :class:`NoRoute` carrying the reason.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float,
        max_tries: int = 3,
        api_key: str | None = None,
        integrator: str | None = None,
        slippage: float | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.max_tries = max_tries
        self.api_key = api_key
        self.integrator = integrator
        self.slippage = slippage

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-lifi-api-key"] = self.api_key
        return headers

    def _quote_params(self, request: QuoteRequest) -> dict[str, str]:
        params = {
            "fromChain": str(request.from_chain_id),
            "toChain": str(request.to_chain_id),
            "fromToken": request.from_token,
            "toToken": request.to_token,
            "fromAmount": str(request.amount),
            "fromAddress": request.from_address,
            "toAddress": request.to_address,
        }
        if self.integrator:
            params["integrator"] = self.integrator
        if self.slippage is not None:
            params["slippage"] = str(self.slippage)
        return params

    def _contract_calls_body(self, request: QuoteRequest) -> dict[str, Any]:
        assert request.destination_call is not None
        call = request.destination_call
        body: dict[str, Any] = {
            "fromChain": request.from_chain_id,
            "fromToken": request.from_token,
            "fromAddress": request.from_address,
            "fromAmount": str(request.amount),
            "toChain": request.to_chain_id,
            "toToken": request.to_token,
            "toFallbackAddress": request.to_address,
            "contractCalls": [
                {
                    "fromAmount": str(request.amount),
                    "fromTokenAddress": request.to_token,
                    "toContractAddress": call.to,
                    "toContractCallData": call.data,
                    "toContractGasLimit": str(call.gas_limit),
                }
            ],
        }
        if self.integrator:
            body["integrator"] = self.integrator
        if self.slippage is not None:
            body["slippage"] = self.slippage
        return body

    async def _request(self, request: QuoteRequest) -> requests.Response:
        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self.max_tries,
            giveup=_giveup,
            jitter=backoff.full_jitter,
        )
        async def _send() -> requests.Response:
            if request.destination_call is None:
                url = f"{self.api_url}/quote"
                logger.debug("Calling %s", url)
                response = await asyncio.to_thread(
                    requests.get,
                    url,
                    params=self._quote_params(request),
                    headers=self._headers(),
                    timeout=self.timeout,
                )
            else:
                url = f"{self.api_url}/quote/contractCalls"
                logger.debug("Calling %s", url)
                response = await asyncio.to_thread(
                    requests.post,
                    url,
                    json=self._contract_calls_body(request),
                    headers=self._headers(),
                    timeout=self.timeout,
                )
            response.raise_for_status()
            return response

        return await _send()

    async def get_quote(self, request: QuoteRequest) -> Quote | NoRoute:
        logger.info(
            "Requesting route %s:%s -> %s:%s for %d units",
            request.from_chain_id,
            request.from_token,
            request.to_chain_id,
            request.to_token,
            request.amount,
        )
        try:
            response = await self._request(request)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            detail = _error_message(e.response)
            logger.warning("Bridge quote rejected (HTTP %s): %s", status, detail)
            return NoRoute(reason=detail or f"HTTP {status}", status_code=status)
        except requests.exceptions.RequestException as e:
            logger.warning("Bridge quote request failed: %s", e)
            return NoRoute(reason=f"Bridge unreachable: {e}")

        try:
            body = response.json()
        except ValueError:
            return NoRoute(
                reason="Bridge returned invalid JSON", status_code=response.status_code
            )

        result = parse_quote(body)
        if isinstance(result, NoRoute):
            logger.warning("Bridge returned no usable route: %s", result.reason)
            return NoRoute(reason=result.reason, status_code=response.status_code)

        logger.info(
            "Route found via %s: est. output %d, fees %s USD",
            result.tool,
            result.estimated_output,
            result.fee_usd if result.fee_usd is not None else "n/a",
        )
        return result


def _error_message(response: requests.Response | None) -> str:
    if response is None:
        return ""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:200]
