"""
Quorum aggregation: count distinct valid owner signatures against a threshold.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Set, Union

from .encoding import normalize_address, to_bytes
from .models import AuthorizationResult, Signature, ValidationContext, ValidationResult
from .signatures import decode_signatures
from .validation import SignatureValidator

logger = logging.getLogger(__name__)


def _validate_all(
    validator: SignatureValidator,
    signatures: Sequence[Signature],
    context: ValidationContext,
    max_workers: Optional[int]
) -> List[ValidationResult]:
    if max_workers and max_workers > 1 and len(signatures) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(lambda sig: validator.validate(sig, context), signatures))
    return [validator.validate(sig, context) for sig in signatures]


def authorize(
    validator: SignatureValidator,
    signatures: Union[Sequence[Signature], bytes, str],
    owners: Iterable[str],
    threshold: int,
    data_hash: Union[str, bytes],
    data: Optional[Union[str, bytes]] = None,
    safe_address: Optional[str] = None,
    max_workers: Optional[int] = None,
    legacy: bool = False
) -> AuthorizationResult:
    """
    Decide whether a set of signatures meets a Safe's owner threshold.

    A signer counts once no matter how many of its signatures are supplied,
    and only if it is an owner. Input order affects neither the count nor
    the decision.

    Args:
        validator: Validator used for each signature
        signatures: Signature objects, or packed signature bytes to decode first
        owners: Owner addresses (read-only)
        threshold: Minimum number of distinct valid owner signatures
        data_hash: Hash the owners signed
        data: Optional pre-image of data_hash
        safe_address: Safe address, required for approved-hash signatures
        max_workers: Validate concurrently on a thread pool when greater than 1
        legacy: Check contract signatures with isValidSignature(bytes,bytes) over data

    Returns:
        AuthorizationResult with one ValidationResult per signature, in input order

    Raises:
        ValueError: If threshold is negative
        StructuralError: If packed signatures or a static signature are malformed
    """
    if threshold < 0:
        raise ValueError(f"Threshold must not be negative, got {threshold}")

    context = ValidationContext(
        data_hash=data_hash,
        data=to_bytes(data) if data is not None else None,
        safe_address=safe_address,
        legacy=legacy
    )
    if isinstance(signatures, (bytes, bytearray, str)):
        signatures = decode_signatures(signatures, context.data_hash, strict=False)

    owner_set = {normalize_address(owner).lower() for owner in owners}
    results = _validate_all(validator, list(signatures), context, max_workers)

    seen: Set[str] = set()
    counted: List[str] = []
    for result in results:
        if not result.valid or not result.validated_signer:
            continue
        key = result.validated_signer.lower()
        if key in owner_set and key not in seen:
            seen.add(key)
            counted.append(result.validated_signer)

    valid = len(counted) >= threshold
    logger.debug(
        f"Authorization for 0x{context.data_hash.hex()}: "
        f"{len(counted)}/{threshold} owner signatures, valid={valid}"
    )
    return AuthorizationResult(
        valid=valid,
        results=results,
        counted_signers=counted,
        threshold=threshold
    )
