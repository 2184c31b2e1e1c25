"""Decision policy served by an external HTTP endpoint."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal
from typing import Any

import backoff
import requests

from ..chains import ChainRegistry
from ..domain import BalanceReport
from ..logger import get_logger
from .base import DecisionPolicy, DecisionUnavailable

logger = get_logger(__name__)

RETRIABLE_STATUS = {429, 500, 502, 503, 504}


def _giveup(e: Exception) -> bool:
    return (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRIABLE_STATUS
    )


class HttpDecisionPolicy(DecisionPolicy):
    """POSTs the balance report to ``url`` and returns the JSON body as-is."""

    def __init__(
        self,
        url: str,
        registry: ChainRegistry,
        timeout: float,
        api_key: str | None = None,
    ):
        self.url = url
        self.registry = registry
        self.timeout = timeout
        self.api_key = api_key

    @property
    def name(self) -> str:
        return "http"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @backoff.on_exception(
        backoff.expo,
        requests.exceptions.RequestException,
        max_tries=3,
        giveup=_giveup,
        jitter=backoff.full_jitter,
    )
    async def _post(self, payload: dict[str, Any]) -> requests.Response:
        response = await asyncio.to_thread(
            requests.post,
            self.url,
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    async def decide(self, report: BalanceReport, capital: Decimal) -> Any:
        payload = {
            "report": report.to_dict(),
            "capital": str(capital),
            "chains": self.registry.keys(),
            "tokens": self.registry.token_symbols(),
        }
        logger.debug("Requesting decision from %s", self.url)
        try:
            response = await self._post(payload)
        except requests.exceptions.RequestException as e:
            raise DecisionUnavailable(f"Decision endpoint failed: {e}") from e

        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise DecisionUnavailable("Decision endpoint returned invalid JSON") from e
