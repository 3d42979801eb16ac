"""
Safe state reads needed to authorize signatures: owners and threshold.

An empty (``0x``) return from these views means there is no Safe at the
address and is raised as ``AccountStateError``. This differs from the
approved-hash lookup in validation, where an empty return means "not
approved".
"""
import logging
from typing import List, Sequence, Union

from .constants import DEFAULT_CONSTANTS, ProtocolConstants
from .encoding import DynamicBytes, decode_address_array, decode_uint, encode_call, to_bytes, to_bytes32
from .exceptions import AccountStateError
from .models import CheckResult, Signature
from .signatures import encode_signatures
from .validation import BlockIdentifier, ContractCaller

logger = logging.getLogger(__name__)


def _read(caller: ContractCaller, safe_address: str, call_data: bytes, block: BlockIdentifier, what: str) -> bytes:
    raw = to_bytes(caller.call(safe_address, call_data, block))
    if not raw:
        raise AccountStateError(f"Failed to retrieve {what} for Safe at {safe_address}", safe_address=safe_address)
    return raw


def get_owners(
    caller: ContractCaller,
    safe_address: str,
    block: BlockIdentifier = "latest",
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> List[str]:
    """
    Read the Safe's owner list via ``getOwners()``.

    Returns:
        Checksummed owner addresses

    Raises:
        AccountStateError: If the call returns no data
        StructuralError: If the returned array is malformed
    """
    raw = _read(caller, safe_address, encode_call(constants.get_owners_selector), block, "owners")
    owners = decode_address_array(raw)
    logger.debug(f"Safe {safe_address} has {len(owners)} owners")
    return owners


def get_threshold(
    caller: ContractCaller,
    safe_address: str,
    block: BlockIdentifier = "latest",
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> int:
    """
    Read the Safe's signature threshold via ``getThreshold()``.

    Raises:
        AccountStateError: If the call returns no data
    """
    raw = _read(caller, safe_address, encode_call(constants.get_threshold_selector), block, "threshold")
    return decode_uint(raw)


def check_n_signatures(
    caller: ContractCaller,
    safe_address: str,
    data_hash: Union[str, bytes],
    data: Union[str, bytes],
    signatures: Union[Sequence[Signature], str, bytes],
    required_signatures: int,
    block: BlockIdentifier = "latest",
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> CheckResult:
    """
    Ask the Safe contract itself to verify signatures with ``checkNSignatures``.

    ``checkNSignatures`` returns nothing on success and reverts otherwise, so
    any call failure is reported as ``valid=False`` with the error attached.

    Raises:
        ValueError: If required_signatures is not positive
    """
    if required_signatures <= 0:
        raise ValueError("Required signatures must be greater than 0")

    if isinstance(signatures, (str, bytes, bytearray)):
        packed = to_bytes(signatures)
    elif signatures:
        packed = encode_signatures(signatures)
    else:
        packed = b""

    call_data = encode_call(constants.check_n_signatures_selector, [
        to_bytes32(data_hash),
        DynamicBytes(to_bytes(data)),
        DynamicBytes(packed),
        required_signatures,
    ])

    try:
        caller.call(safe_address, call_data, block)
    except Exception as e:
        logger.info(f"checkNSignatures rejected signatures for {safe_address}: {e}")
        return CheckResult(valid=False, error=e)
    return CheckResult(valid=True)
