"""Encoding of the vault-side callback relayed by the bridge."""

from __future__ import annotations

from web3 import Web3

from ..abi import VAULT_CALLBACK_ABI
from ..domain import DestinationCall
from ..logger import get_logger

logger = get_logger(__name__)


def encode_funds_received_call(
    vault_address: str,
    token_out: str,
    pool_fee: int,
    gas_limit: int,
) -> DestinationCall:
    """Encode ``onFundsReceived(tokenOut, poolFee)`` on the destination vault.

    Args:
        vault_address: Vault receiving the funds and the call
        token_out: Token the vault should end up holding
        pool_fee: Swap pool fee tier (uint24, e.g. 3000 for 0.3%)
        gas_limit: Gas the bridge should forward to the call

    Returns:
        DestinationCall ready to attach to a quote request
    """
    w3 = Web3()
    contract = w3.eth.contract(
        address=w3.to_checksum_address(vault_address), abi=VAULT_CALLBACK_ABI
    )
    calldata = contract.encode_abi(
        abi_element_identifier="onFundsReceived",
        args=[w3.to_checksum_address(token_out), pool_fee],
    )
    logger.debug(
        "Encoded onFundsReceived(%s, %d) for vault %s", token_out, pool_fee, vault_address
    )
    return DestinationCall(
        to=contract.address,
        data=calldata,
        gas_limit=gas_limit,
    )
