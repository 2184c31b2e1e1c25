"""Decision policy backed by an OpenAI-compatible chat completions API."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal
from typing import Any

import requests

from ..chains import ChainRegistry
from ..domain import BalanceReport
from ..logger import get_logger
from ..settings import ChatPolicySettings
from .base import DecisionPolicy, DecisionUnavailable

logger = get_logger(__name__)

PROMPT_TEMPLATE = """You are a cross-chain liquidity manager.
Current state of vaults: {report}
Capital available for one transfer: {capital}

Available chain keys: {chains}.
Available tokens: {tokens}.

Use ONLY the chain keys and tokens listed above.
Return ONLY a JSON object with these fields:
{{"action": "SWAP" or "WAIT", "vaultAddress": "0x...", "fromChain": "...",
"targetChain": "...", "sourceToken": "...", "targetToken": "...",
"amount": "decimal string", "reason": "short explanation"}}
"""


class ChatCompletionPolicy(DecisionPolicy):
    """Asks a hosted model for a decision in JSON mode."""

    def __init__(
        self,
        config: ChatPolicySettings,
        registry: ChainRegistry,
        api_key: str,
        timeout: float,
    ):
        self.config = config
        self.registry = registry
        self.api_key = api_key
        self.timeout = timeout

    @property
    def name(self) -> str:
        return f"chat:{self.config.model}"

    def build_prompt(self, report: BalanceReport, capital: Decimal) -> str:
        erc20_symbols: list[str] = []
        for chain in self.registry:
            for symbol in chain.erc20_symbols():
                if symbol not in erc20_symbols:
                    erc20_symbols.append(symbol)
        return PROMPT_TEMPLATE.format(
            report=json.dumps(report.to_dict()),
            capital=capital,
            chains=", ".join(f'"{key}"' for key in self.registry.keys()),
            tokens=", ".join(f'"{symbol}"' for symbol in erc20_symbols),
        )

    async def decide(self, report: BalanceReport, capital: Decimal) -> Any:
        body = {
            "model": self.config.model,
            "messages": [
                {"role": "user", "content": self.build_prompt(report, capital)}
            ],
            "response_format": {"type": "json_object"},
            "temperature": self.config.temperature,
        }
        url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        logger.debug("Requesting decision from %s (%s)", url, self.config.model)

        try:
            response = await asyncio.to_thread(
                requests.post,
                url,
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except requests.exceptions.RequestException as e:
            raise DecisionUnavailable(f"Chat completion request failed: {e}") from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise DecisionUnavailable(f"Unexpected chat completion body: {e}") from e

        try:
            return json.loads(content or "{}")
        except (json.JSONDecodeError, TypeError) as e:
            raise DecisionUnavailable("Model returned non-JSON content") from e
