from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class WaitDecision:
    """No action this cycle.

    ``coerced`` marks a Wait substituted for an invalid or unavailable
    policy output, as opposed to one the policy chose.
    """

    reason: str
    coerced: bool = False

    action = "WAIT"

    def to_dict(self) -> dict[str, object]:
        return {"action": self.action, "reason": self.reason, "coerced": self.coerced}


@dataclass(frozen=True)
class SwapDecision:
    """Move ``amount`` of ``source_token`` on ``from_chain`` to ``target_token`` on ``target_chain``."""

    vault_address: str
    from_chain: str
    target_chain: str
    source_token: str
    target_token: str
    amount: str  # human units
    amount_units: int  # smallest unit of source_token
    reason: str

    action = "SWAP"

    @property
    def is_cross_chain(self) -> bool:
        return self.from_chain != self.target_chain

    def to_dict(self) -> dict[str, object]:
        return {
            "action": self.action,
            "vaultAddress": self.vault_address,
            "fromChain": self.from_chain,
            "targetChain": self.target_chain,
            "sourceToken": self.source_token,
            "targetToken": self.target_token,
            "amount": self.amount,
            "reason": self.reason,
        }


RebalanceDecision = Union[WaitDecision, SwapDecision]
