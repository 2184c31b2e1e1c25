"""Boundaries exposed to a hosting front end: vault registration and cycle trigger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .logger import get_logger
from .orchestrator import RebalanceOrchestrator
from .vaults import VaultRegistry, normalize_vault_address

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    status: str  # "registered" | "already_registered"
    address: str
    count: int

    def to_dict(self) -> dict[str, object]:
        return {"status": self.status, "address": self.address, "count": self.count}


def register_vault(registry: VaultRegistry, address: str) -> RegistrationResult:
    """Track ``address``. Idempotent by address.

    Raises:
        InvalidVaultAddress: If ``address`` is empty or malformed.
    """
    checksum = normalize_vault_address(address)
    added, count = registry.add(checksum)
    return RegistrationResult(
        status="registered" if added else "already_registered",
        address=checksum,
        count=count,
    )


async def trigger_cycle(
    orchestrator: RebalanceOrchestrator, registry: VaultRegistry
) -> dict[str, Any]:
    """Run one cycle over a snapshot of ``registry`` and return the response body.

    Never raises: failures come back as ``{"success": False, "error": ...}``.
    """
    vaults = registry.snapshot()
    logger.info("Triggering agent run for %d registered vault(s)", len(vaults))
    try:
        result = await orchestrator.run_cycle(vaults)
    except Exception as e:
        logger.exception("Agent run failed: %s", e)
        return {"success": False, "error": str(e) or type(e).__name__}
    return result.to_response()
