"""Chain catalogue and protocol constants."""

from typing import Optional, TypedDict


class ChainCatalogueEntry(TypedDict):
    chain_id: int
    name: str
    default_rpc: str
    tokens: dict[str, str]


NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Display decimals per token symbol. Amount arithmetic always runs in the
# smallest integer unit.
TOKEN_DECIMALS: dict[str, int] = {
    "USDC": 6,
    "WETH": 18,
    "ETH": 18,
}

SEPOLIA_TOKENS: dict[str, str] = {
    "USDC": "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
    "WETH": "0x7b79995e5f793A07Bc00c21412e50Ecae098E7f9",
    "ETH": NATIVE_TOKEN,
}

BASE_SEPOLIA_TOKENS: dict[str, str] = {
    "USDC": "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
    "WETH": "0x4200000000000000000000000000000000000006",
    "ETH": NATIVE_TOKEN,
}

ARBITRUM_SEPOLIA_TOKENS: dict[str, str] = {
    "USDC": "0x75faf114eafb1BDbe2F0316DF893fd58CE46AA4d",
    "WETH": "0x980B6951f8D0C13008b27650c849F89d4dFE318F",
    "ETH": NATIVE_TOKEN,
}

DEFAULT_SEPOLIA_RPC_URL = "https://sepolia.drpc.org"
DEFAULT_BASE_SEPOLIA_RPC_URL = "https://sepolia.base.org"
DEFAULT_ARBITRUM_SEPOLIA_RPC_URL = "https://sepolia-rollup.arbitrum.io/rpc"

CHAIN_CATALOGUE: dict[str, ChainCatalogueEntry] = {
    "SEP": {
        "chain_id": 11155111,
        "name": "Ethereum Sepolia",
        "default_rpc": DEFAULT_SEPOLIA_RPC_URL,
        "tokens": SEPOLIA_TOKENS,
    },
    "BAS": {
        "chain_id": 84532,
        "name": "Base Sepolia",
        "default_rpc": DEFAULT_BASE_SEPOLIA_RPC_URL,
        "tokens": BASE_SEPOLIA_TOKENS,
    },
    "ARB": {
        "chain_id": 421614,
        "name": "Arbitrum Sepolia",
        "default_rpc": DEFAULT_ARBITRUM_SEPOLIA_RPC_URL,
        "tokens": ARBITRUM_SEPOLIA_TOKENS,
    },
}

LIFI_API_URL = "https://li.quest/v1"
LIFI_INTEGRATOR: Optional[str] = "rebalance-agent"

# Fixed-length hex payload of a transaction hash (32 bytes)
TX_HASH_HEX_LENGTH = 64

DEFAULT_APPROVAL_SETTLE_SECONDS = 5.0
DEFAULT_SIMULATION_DELAY_SECONDS = 2.0
DEFAULT_CALLBACK_GAS_LIMIT = 300_000
DEFAULT_CALLBACK_POOL_FEE = 3000

DECISION_UNAVAILABLE_REASON = "decision unavailable"
