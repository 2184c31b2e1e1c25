"""Minimal contract ABIs used by the agent."""

from __future__ import annotations

ERC20_ABI: list[dict] = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# Vault-side hook the bridge calls after delivering funds on the destination chain
VAULT_CALLBACK_ABI: list[dict] = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenOut", "type": "address"},
            {"internalType": "uint24", "name": "poolFee", "type": "uint24"},
        ],
        "name": "onFundsReceived",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]
