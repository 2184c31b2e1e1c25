"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_APPROVAL_SETTLE_SECONDS,
    DEFAULT_CALLBACK_GAS_LIMIT,
    DEFAULT_CALLBACK_POOL_FEE,
    DEFAULT_SIMULATION_DELAY_SECONDS,
    LIFI_API_URL,
    LIFI_INTEGRATOR,
)

load_dotenv()

SECRET_FIELDS = ("private_key", "lifi_api_key", "decision_api_key")


class DecisionPolicyKind(str, Enum):
    THRESHOLD = "threshold"
    HTTP = "http"
    CHAT = "chat"


class CustomChainSettings(BaseModel):
    """A chain beyond the built-in testnet catalogue."""

    chain_id: int = Field(gt=0)
    name: str | None = None
    rpc: str | None = None
    vault: str | None = None
    tokens: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")


class ThresholdPolicySettings(BaseModel):
    """Rule set for the built-in threshold policy.

    A vault holding more than ``min_source_balance`` of a token on one chain
    and at most ``max_target_balance`` on another gets a transfer proposal.
    """

    tokens: list[str] = Field(default_factory=lambda: ["USDC"])
    min_source_balance: Decimal = Decimal("5")
    max_target_balance: Decimal = Decimal("0")

    model_config = ConfigDict(extra="ignore")


class HttpPolicySettings(BaseModel):
    url: str | None = None

    model_config = ConfigDict(extra="ignore")


class ChatPolicySettings(BaseModel):
    """OpenAI-compatible chat completions endpoint."""

    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "llama-3.3-70b-versatile"
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    model_config = ConfigDict(extra="ignore")


class PolicySettings(BaseModel):
    threshold: ThresholdPolicySettings = Field(
        default_factory=ThresholdPolicySettings
    )
    http: HttpPolicySettings = Field(default_factory=HttpPolicySettings)
    chat: ChatPolicySettings = Field(default_factory=ChatPolicySettings)

    model_config = ConfigDict(extra="ignore")


class AgentSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with REBALANCE_AGENT_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- chains ---
    enabled_chains: list[str] = Field(default_factory=lambda: ["SEP", "BAS", "ARB"])
    rpc_urls: dict[str, str] = Field(default_factory=dict)
    vault_addresses: dict[str, str] = Field(default_factory=dict)
    custom_chains: dict[str, CustomChainSettings] = Field(default_factory=dict)

    # --- signing ---
    private_key: SecretStr | None = None

    # --- RPC settings ---
    rpc_timeout: float = Field(default=15.0, gt=0)
    rpc_max_concurrent_calls: int = Field(default=5, ge=1)

    # --- bridge ---
    lifi_api_url: str = LIFI_API_URL
    lifi_api_key: SecretStr | None = None
    lifi_integrator: str | None = LIFI_INTEGRATOR
    bridge_timeout: float = Field(default=15.0, gt=0)
    bridge_max_tries: int = Field(default=3, ge=1)
    bridge_slippage: float = Field(default=0.005, gt=0, lt=1)

    # --- decision policy ---
    decision_policy: DecisionPolicyKind = DecisionPolicyKind.THRESHOLD
    decision_timeout: float = Field(default=30.0, gt=0)
    decision_api_key: SecretStr | None = None
    policies: PolicySettings = Field(default_factory=PolicySettings)
    capital_amount: Decimal = Decimal("10")

    # --- execution ---
    approval_settle_seconds: float = Field(
        default=DEFAULT_APPROVAL_SETTLE_SECONDS,
        ge=0,
        description="Fixed wait after an approval is sent. Best effort, not a confirmation.",
    )
    simulation_delay_seconds: float = Field(
        default=DEFAULT_SIMULATION_DELAY_SECONDS, ge=0
    )
    simulation_fallback_enabled: bool = True
    destination_callback_enabled: bool = False
    callback_pool_fee: int = Field(default=DEFAULT_CALLBACK_POOL_FEE, ge=0, lt=2**24)
    callback_gas_limit: int = Field(default=DEFAULT_CALLBACK_GAS_LIMIT, gt=0)

    # --- completion monitor ---
    monitor_enabled: bool = True
    monitor_interval_seconds: float = Field(default=15.0, ge=0)
    monitor_max_attempts: int = Field(default=20, ge=1)

    # --- cycle ---
    cycle_timeout_seconds: float | None = 600.0

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="REBALANCE_AGENT_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator(*SECRET_FIELDS, mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("enabled_chains", mode="after")
    @classmethod
    def normalize_chain_keys(cls, v: list[str]) -> list[str]:
        keys: list[str] = []
        for key in v:
            normalized = key.strip().upper()
            if normalized and normalized not in keys:
                keys.append(normalized)
        if not keys:
            raise ValueError("enabled_chains must name at least one chain")
        return keys

    @field_validator("rpc_urls", "vault_addresses", "custom_chains", mode="after")
    @classmethod
    def normalize_mapping_keys(cls, v: dict[str, Any]) -> dict[str, Any]:
        # env var names arrive lowercased
        return {key.strip().upper(): value for key, value in v.items()}

    @field_validator("log_level", mode="after")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_capital_amount(self) -> "AgentSettings":
        if not self.capital_amount.is_finite() or self.capital_amount <= 0:
            raise ValueError(
                f"capital_amount ({self.capital_amount}) must be a positive number"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("REBALANCE_AGENT_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("rebalance-agent.toml")
                    user_config = (
                        Path.home() / ".config" / "rebalance-agent" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [rebalance_agent]
                body = data.get("rebalance_agent", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data
