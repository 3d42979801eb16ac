"""
Protocol constants for Safe signature handling.

Every constant the engine needs lives in a single frozen table so that
callers can swap in an alternate set (e.g. a chain with different type
hashes) without touching module state.
"""
from dataclasses import dataclass

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Marks both ends of the Safe's owner/module linked lists
SENTINEL_ADDRESS = "0x0000000000000000000000000000000000000001"

ECDSA_SIGNATURE_LENGTH = 65
WORD_SIZE = 32


@dataclass(frozen=True)
class ProtocolConstants:
    """
    Fixed protocol values used for hashing, calls and signature checks.

    Attributes:
        domain_separator_typehash: keccak256("EIP712Domain(uint256 chainId,address verifyingContract)")
        safe_tx_typehash: keccak256 of the SafeTx struct type string
        safe_message_typehash: keccak256("SafeMessage(bytes message)")
        get_owners_selector: getOwners()
        get_threshold_selector: getThreshold()
        approved_hashes_selector: approvedHashes(address,bytes32)
        check_n_signatures_selector: checkNSignatures(bytes32,bytes,bytes,uint256)
        is_valid_signature_hash_selector: isValidSignature(bytes32,bytes)
        is_valid_signature_bytes_selector: isValidSignature(bytes,bytes)
        eip1271_magic_value: expected return of the bytes32 variant
        eip1271_legacy_magic_value: expected return of the bytes variant
    """
    domain_separator_typehash: bytes = bytes.fromhex(
        "47e79534a245952e8b16893a336b85a3d9ea9fa8c573f3d803afb92a79469218"
    )
    safe_tx_typehash: bytes = bytes.fromhex(
        "bb8310d486368db6bd6f849402fdd73ad53d316b5a4b2644ad6efe0f941286d8"
    )
    safe_message_typehash: bytes = bytes.fromhex(
        "60b3cbf8b4a223d68d641b3b6ddf9a298e7f33710cf3d3a9d1146b5a6150fbca"
    )
    get_owners_selector: bytes = bytes.fromhex("a0e67e2b")
    get_threshold_selector: bytes = bytes.fromhex("e75235b8")
    approved_hashes_selector: bytes = bytes.fromhex("7d832974")
    check_n_signatures_selector: bytes = bytes.fromhex("12fb68e0")
    is_valid_signature_hash_selector: bytes = bytes.fromhex("1626ba7e")
    is_valid_signature_bytes_selector: bytes = bytes.fromhex("20c13b0b")
    eip1271_magic_value: bytes = bytes.fromhex("1626ba7e")
    eip1271_legacy_magic_value: bytes = bytes.fromhex("20c13b0b")


DEFAULT_CONSTANTS = ProtocolConstants()
