"""Validation of untrusted policy output into a typed decision."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from web3 import Web3

from ..chains import ChainRegistry
from ..constants import DECISION_UNAVAILABLE_REASON
from ..domain import RebalanceDecision, SwapDecision, WaitDecision
from ..logger import get_logger
from ..units import from_base_units, parse_amount, to_base_units, token_decimals

logger = get_logger(__name__)


class DecisionInvalid(ValueError):
    """Raised internally when a payload fails a structural check."""


def _text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise DecisionInvalid(f"missing or non-string field '{key}'")
    return value.strip()


def _resolve_vault(raw: Any, vaults: list[str]) -> str:
    if raw is None or raw == "":
        if not vaults:
            raise DecisionInvalid("no vault under management")
        return vaults[0]
    if not isinstance(raw, str) or not Web3.is_address(raw):
        raise DecisionInvalid(f"malformed vault address {raw!r}")
    for vault in vaults:
        if vault.lower() == raw.lower():
            return vault
    raise DecisionInvalid(f"unknown vault address {raw}")


def _parse_swap(
    payload: Mapping[str, Any], registry: ChainRegistry, vaults: list[str]
) -> SwapDecision:
    from_chain = _text(payload, "fromChain").upper()
    target_chain = _text(payload, "targetChain").upper()
    for key in (from_chain, target_chain):
        if key not in registry:
            raise DecisionInvalid(f"unknown chain key '{key}'")

    source_token = _text(payload, "sourceToken").upper()
    target_token = _text(payload, "targetToken").upper()
    if source_token not in registry.get(from_chain).tokens:
        raise DecisionInvalid(f"token '{source_token}' is not registered on {from_chain}")
    if target_token not in registry.get(target_chain).tokens:
        raise DecisionInvalid(
            f"token '{target_token}' is not registered on {target_chain}"
        )

    if from_chain == target_chain and source_token == target_token:
        raise DecisionInvalid(
            f"no-op swap of {source_token} on {from_chain} to itself"
        )

    raw_amount = payload.get("amount")
    try:
        amount = parse_amount(raw_amount)
        amount_units = to_base_units(amount, token_decimals(source_token))
    except ValueError as e:
        raise DecisionInvalid(f"unparsable amount {raw_amount!r}: {e}") from e
    if amount_units <= 0:
        raise DecisionInvalid(f"non-positive amount {raw_amount!r}")

    reason = payload.get("reason")
    return SwapDecision(
        vault_address=_resolve_vault(payload.get("vaultAddress"), vaults),
        from_chain=from_chain,
        target_chain=target_chain,
        source_token=source_token,
        target_token=target_token,
        amount=from_base_units(amount_units, token_decimals(source_token)),
        amount_units=amount_units,
        reason=reason.strip() if isinstance(reason, str) and reason.strip() else "",
    )


def coerce_decision(
    raw: Any, registry: ChainRegistry, vaults: Iterable[str]
) -> RebalanceDecision:
    """Turn a raw policy payload into a ``WaitDecision`` or ``SwapDecision``.

    Anything that is not a mapping is treated as an unavailable decision. A
    missing ``action`` means WAIT. Any chain key, token symbol or vault that
    is not registered, a non-positive or unparsable amount, or a same-chain
    same-token swap yields a coerced ``WaitDecision`` with a diagnostic
    reason. Nothing invalid reaches quoting or execution.
    """
    if not isinstance(raw, Mapping):
        logger.warning(
            "Policy returned %s instead of an object; waiting", type(raw).__name__
        )
        return WaitDecision(reason=DECISION_UNAVAILABLE_REASON, coerced=True)

    action = raw.get("action") or "WAIT"
    if not isinstance(action, str):
        return WaitDecision(reason=f"invalid decision: action {action!r}", coerced=True)

    action = action.strip().upper()
    if action == "WAIT":
        reason = raw.get("reason")
        if isinstance(reason, str) and reason.strip():
            return WaitDecision(reason=reason.strip())
        return WaitDecision(reason="policy chose to wait")

    if action != "SWAP":
        logger.warning("Policy returned unknown action %r; waiting", action)
        return WaitDecision(reason=f"invalid decision: unknown action '{action}'", coerced=True)

    try:
        return _parse_swap(raw, registry, list(vaults))
    except DecisionInvalid as e:
        logger.warning("Rejected policy decision: %s", e)
        return WaitDecision(reason=f"invalid decision: {e}", coerced=True)
