"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .chains.registry import ChainRegistry
from .settings import AgentSettings


@dataclass
class AppState:
    """Container for process-wide, read-only dependencies.

    Passed through the pipeline to avoid global state and enable testing.
    """

    settings: AgentSettings
    logger: logging.Logger
    chains: ChainRegistry
