from .client import CHAIN_ERRORS, BroadcastUncertain, ChainClient, ChainClientFactory
from .registry import ChainDescriptor, ChainRegistry, ConfigurationError

__all__ = [
    "CHAIN_ERRORS",
    "BroadcastUncertain",
    "ChainClient",
    "ChainClientFactory",
    "ChainDescriptor",
    "ChainRegistry",
    "ConfigurationError",
]
