from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

from ..domain import BalanceReport


class DecisionUnavailable(Exception):
    """Raised when a policy cannot produce a decision (timeout, malformed body)."""


class DecisionPolicy(ABC):
    """Pluggable source of rebalance decisions.

    Output is untrusted. Callers must run it through
    :func:`rebalance_agent.policy.validation.coerce_decision`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this policy."""
        ...

    @abstractmethod
    async def decide(self, report: BalanceReport, capital: Decimal) -> Any:
        """Return a raw decision payload for ``report``."""
        ...
