from __future__ import annotations

from ..chains import ChainRegistry
from ..settings import AgentSettings, DecisionPolicyKind
from .base import DecisionPolicy, DecisionUnavailable
from .chat import ChatCompletionPolicy
from .http import HttpDecisionPolicy
from .threshold import ThresholdPolicy
from .validation import DecisionInvalid, coerce_decision


def build_policy(settings: AgentSettings, registry: ChainRegistry) -> DecisionPolicy:
    """Instantiate the policy selected by ``settings.decision_policy``.

    Raises:
        ValueError: If the selected policy is missing required settings.
    """
    kind = settings.decision_policy
    api_key = (
        settings.decision_api_key.get_secret_value()
        if settings.decision_api_key
        else None
    )

    if kind is DecisionPolicyKind.THRESHOLD:
        return ThresholdPolicy(settings.policies.threshold)

    if kind is DecisionPolicyKind.HTTP:
        url = settings.policies.http.url
        if not url:
            raise ValueError("policies.http.url is required for the http policy")
        return HttpDecisionPolicy(
            url, registry, timeout=settings.decision_timeout, api_key=api_key
        )

    if kind is DecisionPolicyKind.CHAT:
        if not api_key:
            raise ValueError("decision_api_key is required for the chat policy")
        return ChatCompletionPolicy(
            settings.policies.chat,
            registry,
            api_key=api_key,
            timeout=settings.decision_timeout,
        )

    raise ValueError(f"Unknown decision policy: {kind}")


__all__ = [
    "ChatCompletionPolicy",
    "DecisionInvalid",
    "DecisionPolicy",
    "DecisionUnavailable",
    "HttpDecisionPolicy",
    "ThresholdPolicy",
    "build_policy",
    "coerce_decision",
]
