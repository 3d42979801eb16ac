"""
EIP-712 structured hashing for Safe transactions and messages.

All functions here are pure: no network access, fresh buffers per call.
The produced hashes match the Safe contract's ``domainSeparator()``,
``getTransactionHash(...)`` and ``getMessageHash(...)``.
"""
from typing import Any, Dict, Union

from web3 import Web3

from .constants import DEFAULT_CONSTANTS, ProtocolConstants
from .encoding import encode_words, normalize_address, to_bytes, to_bytes32
from .models import SafeTransaction

EIP712_PREFIX = b"\x19\x01"
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n32"

SAFE_TX_EIP712_TYPES = {
    "SafeTx": [
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "operation", "type": "uint8"},
        {"name": "safeTxGas", "type": "uint256"},
        {"name": "baseGas", "type": "uint256"},
        {"name": "gasPrice", "type": "uint256"},
        {"name": "gasToken", "type": "address"},
        {"name": "refundReceiver", "type": "address"},
        {"name": "nonce", "type": "uint256"},
    ],
}

SAFE_MESSAGE_EIP712_TYPES = {
    "SafeMessage": [{"name": "message", "type": "bytes"}],
}

EIP712_DOMAIN_TYPE = [
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


def keccak(data: bytes) -> bytes:
    return bytes(Web3.keccak(data))


def domain_separator(
    safe_address: str,
    chain_id: int,
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> bytes:
    """
    Calculate the EIP-712 domain separator of a Safe.

    Args:
        safe_address: Safe contract address (the verifying contract)
        chain_id: EIP-155 chain ID the Safe is deployed on

    Returns:
        32-byte domain separator
    """
    return keccak(encode_words([constants.domain_separator_typehash, chain_id, safe_address]))


def safe_transaction_struct_hash(
    tx: SafeTransaction,
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> bytes:
    """Hash the SafeTx struct: type hash followed by its ten fields as words."""
    return keccak(encode_words([
        constants.safe_tx_typehash,
        tx.to,
        tx.value,
        keccak(tx.data),
        int(tx.operation),
        tx.safe_tx_gas,
        tx.base_gas,
        tx.gas_price,
        tx.gas_token,
        tx.refund_receiver,
        tx.nonce,
    ]))


def safe_message_struct_hash(
    message: Union[str, bytes],
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> bytes:
    return keccak(encode_words([constants.safe_message_typehash, keccak(to_bytes(message))]))


def encode_transaction_data(
    tx: SafeTransaction,
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> bytes:
    """
    Return the EIP-712 pre-image ``0x19 0x01 ‖ domainSeparator ‖ structHash``.

    Legacy EIP-1271 contracts validate against this raw data instead of
    its hash.
    """
    return (
        EIP712_PREFIX
        + domain_separator(tx.safe_address, tx.chain_id, constants)
        + safe_transaction_struct_hash(tx, constants)
    )


def encode_message_data(
    safe_address: str,
    chain_id: int,
    message: Union[str, bytes],
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> bytes:
    """Return the EIP-712 pre-image of a SafeMessage."""
    return (
        EIP712_PREFIX
        + domain_separator(safe_address, chain_id, constants)
        + safe_message_struct_hash(message, constants)
    )


def transaction_hash(
    tx: SafeTransaction,
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> bytes:
    """
    Calculate the hash every owner signs to authorize a Safe transaction.

    Args:
        tx: Fully specified Safe transaction, including safe_address and chain_id
        constants: Protocol constant table

    Returns:
        32-byte SafeTx hash
    """
    return keccak(encode_transaction_data(tx, constants))


def message_hash(
    safe_address: str,
    chain_id: int,
    message: Union[str, bytes],
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> bytes:
    """
    Calculate the SafeMessage hash validated by the Safe via EIP-1271.

    Args:
        safe_address: Safe that signs the message
        chain_id: EIP-155 chain ID of the Safe
        message: Arbitrary bytes (hex string or bytes); may be empty

    Returns:
        32-byte SafeMessage hash
    """
    return keccak(encode_message_data(safe_address, chain_id, message, constants))


def personal_message_hash(data_hash: Union[str, bytes]) -> bytes:
    """Hash a 32-byte value the way eth_sign / personal_sign does."""
    return keccak(PERSONAL_MESSAGE_PREFIX + to_bytes32(data_hash))


def safe_eip712_domain(safe_address: str, chain_id: int) -> Dict[str, Any]:
    return {
        "chainId": chain_id,
        "verifyingContract": normalize_address(safe_address),
    }


def safe_transaction_typed_data(tx: SafeTransaction) -> Dict[str, Any]:
    """
    Build the full EIP-712 document for ``eth_signTypedData_v4``.

    The result can be passed to ``eth_account.messages.encode_typed_data(full_message=...)``.
    """
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, **SAFE_TX_EIP712_TYPES},
        "domain": safe_eip712_domain(tx.safe_address, tx.chain_id),
        "primaryType": "SafeTx",
        "message": {
            "to": tx.to,
            "value": tx.value,
            "data": tx.data,
            "operation": int(tx.operation),
            "safeTxGas": tx.safe_tx_gas,
            "baseGas": tx.base_gas,
            "gasPrice": tx.gas_price,
            "gasToken": tx.gas_token,
            "refundReceiver": tx.refund_receiver,
            "nonce": tx.nonce,
        },
    }


def safe_message_typed_data(safe_address: str, chain_id: int, message: Union[str, bytes]) -> Dict[str, Any]:
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, **SAFE_MESSAGE_EIP712_TYPES},
        "domain": safe_eip712_domain(safe_address, chain_id),
        "primaryType": "SafeMessage",
        "message": {"message": to_bytes(message)},
    }
