"""Registry of vault addresses under management."""

from __future__ import annotations

import threading
from typing import Iterable

from web3 import Web3

from .logger import get_logger

logger = get_logger(__name__)


class InvalidVaultAddress(ValueError):
    """Raised when a registration carries an empty or malformed address."""


def normalize_vault_address(address: object) -> str:
    """Return the checksummed form of ``address``.

    Raises:
        InvalidVaultAddress: If ``address`` is not a 20-byte hex address.
    """
    if not isinstance(address, str) or not address.strip():
        raise InvalidVaultAddress("Vault address is required")
    candidate = address.strip()
    if not Web3.is_address(candidate):
        raise InvalidVaultAddress(f"Malformed vault address: {candidate!r}")
    return Web3.to_checksum_address(candidate)


class VaultRegistry:
    """Append-only, de-duplicated set of vault addresses.

    ``add`` performs the check-then-append under a lock so concurrent
    registrations never produce duplicates or lose entries. Cycles never read
    the live list; they take a ``snapshot()``.
    """

    def __init__(self, addresses: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._addresses: list[str] = []
        self._seen: set[str] = set()
        for address in addresses:
            self.add(address)

    def add(self, address: str) -> tuple[bool, int]:
        """Register ``address`` if absent.

        Returns:
            Tuple of (added, count) where ``count`` is the number of tracked
            addresses after the call.
        """
        checksum = normalize_vault_address(address)
        with self._lock:
            if checksum.lower() in self._seen:
                return False, len(self._addresses)
            self._seen.add(checksum.lower())
            self._addresses.append(checksum)
            count = len(self._addresses)
        logger.info("Registered vault %s (%d tracked)", checksum, count)
        return True, count

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._addresses)

    def __len__(self) -> int:
        with self._lock:
            return len(self._addresses)

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        with self._lock:
            return address.lower() in self._seen
