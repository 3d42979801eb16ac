"""
Per-signature validation for Safe signatures.

Dispatches on the signature kind:

1. ECDSA (EIP-712 tag 27/28): recover from the hash directly
2. ECDSA (eth_sign tag 31/32): recover from the personal-message hash
3. Approved hash (tag 1): on-chain ``approvedHashes(signer, hash)`` lookup
4. Contract (tag 0): EIP-1271 ``isValidSignature`` call on the signer

Malformed static signatures raise; on-chain rejections and call failures
come back as ``ValidationResult`` values with ``valid=False``.
"""
import logging
from typing import Optional, Protocol, Union

from eth_keys.exceptions import BadSignature, ValidationError as EthKeysValidationError

from ._rate_limited_log import rate_limited_log
from .constants import DEFAULT_CONSTANTS, ECDSA_SIGNATURE_LENGTH, ProtocolConstants
from .eip712 import personal_message_hash
from .encoding import DynamicBytes, encode_call, to_bytes
from .exceptions import InvalidSignatureLengthError, UnknownSignatureTagError
from .models import (
    ApprovedHashSignature, DynamicSignature, ECDSASignature, Signature,
    ValidationContext, ValidationResult
)
from .signatures import (
    EIP712_TAGS, ETH_SIGN_TAGS, normalize_eth_sign, recover_signer, signature_tag
)

logger = logging.getLogger(__name__)

BlockIdentifier = Union[str, int]


class ContractCaller(Protocol):
    """Read-only contract call capability (``eth_call``)"""

    def call(self, to: str, data: bytes, block: BlockIdentifier = "latest") -> bytes:
        """Execute a call and return the raw return data"""
        ...


class SignatureValidator:
    """
    Validates individual Safe signatures.

    The validator holds no per-call state; one instance can be shared by
    concurrent validations.
    """

    def __init__(
        self,
        caller: Optional[ContractCaller] = None,
        constants: ProtocolConstants = DEFAULT_CONSTANTS,
        block: BlockIdentifier = "latest",
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the validator

        Args:
            caller: Contract call capability; required for approved-hash and
                contract signatures only
            constants: Protocol constant table
            block: Block at which on-chain checks are evaluated
            logger: Optional logger instance
        """
        self.caller = caller
        self.constants = constants
        self.block = block
        self.logger = logger or logging.getLogger(__name__)

    def validate(self, signature: Signature, context: ValidationContext) -> ValidationResult:
        """
        Validate one signature against the hash (and data) it attests to.

        Args:
            signature: Signature to check
            context: Signed hash plus optional pre-image and Safe address

        Returns:
            ValidationResult with the validated signer

        Raises:
            InvalidSignatureLengthError: If an ECDSA signature is not 65 bytes
            UnknownSignatureTagError: If an ECDSA signature carries a non-ECDSA tag
            ValueError: If the context or caller needed for this kind is missing
        """
        if isinstance(signature, ECDSASignature):
            result = self.validate_ecdsa(signature, context.data_hash)
        elif isinstance(signature, DynamicSignature):
            result = self.validate_contract_signature(signature, context)
        elif isinstance(signature, ApprovedHashSignature):
            if not context.safe_address:
                raise ValueError("Approved-hash validation requires safe_address")
            result = self.validate_approved_hash(signature, context.data_hash, context.safe_address)
        else:
            raise TypeError(f"Unsupported signature type: {type(signature).__name__}")

        self.logger.debug(
            f"Signature from {signature.signer}: valid={result.valid}, "
            f"validated_signer={result.validated_signer}"
        )
        return result

    def validate_ecdsa(self, signature: ECDSASignature, data_hash: bytes) -> ValidationResult:
        """
        Recover the signer of a static signature and compare it to ``signature.signer``.

        Raises:
            InvalidSignatureLengthError: If the signature is not 65 bytes
            UnknownSignatureTagError: If the tag is not 27, 28, 31 or 32
        """
        data = signature.data
        if len(data) != ECDSA_SIGNATURE_LENGTH:
            raise InvalidSignatureLengthError(
                f"Invalid ECDSA signature length: expected {ECDSA_SIGNATURE_LENGTH} bytes, got {len(data)}",
                length=len(data)
            )

        tag = signature_tag(data)
        if tag in EIP712_TAGS:
            digest = data_hash
        elif tag in ETH_SIGN_TAGS:
            data = normalize_eth_sign(data)
            digest = personal_message_hash(data_hash)
        else:
            raise UnknownSignatureTagError(f"Signature type byte {int(tag)} is not an ECDSA tag", tag=int(tag))

        try:
            recovered = recover_signer(digest, data)
        except (BadSignature, EthKeysValidationError, ValueError) as e:
            return ValidationResult(valid=False, signature=signature, error=e)

        return ValidationResult(
            valid=recovered.lower() == signature.signer.lower(),
            signature=signature,
            validated_signer=recovered
        )

    def validate_contract_signature(
        self,
        signature: DynamicSignature,
        context: ValidationContext
    ) -> ValidationResult:
        """
        Ask the signer contract whether it accepts the signature (EIP-1271).

        The hash is checked with ``isValidSignature(bytes32,bytes)`` unless
        ``context.legacy`` asks for ``isValidSignature(bytes,bytes)`` over
        ``context.data``.
        """
        if context.legacy:
            selector = self.constants.is_valid_signature_bytes_selector
            expected_magic = self.constants.eip1271_legacy_magic_value
            subject = DynamicBytes(to_bytes(context.data))
        else:
            selector = self.constants.is_valid_signature_hash_selector
            expected_magic = self.constants.eip1271_magic_value
            subject = context.data_hash
        call_data = encode_call(selector, [subject, DynamicBytes(signature.data)])
        self._require_caller()

        try:
            returned = self._call(signature.signer, call_data)
        except Exception as e:
            self._log_oracle_failure("isValidSignature", signature.signer, e)
            return ValidationResult(
                valid=False, signature=signature, validated_signer=signature.signer, error=e
            )

        return ValidationResult(
            valid=returned[:4] == expected_magic,
            signature=signature,
            validated_signer=signature.signer
        )

    def validate_approved_hash(
        self,
        signature: ApprovedHashSignature,
        data_hash: bytes,
        safe_address: str
    ) -> ValidationResult:
        """Check the Safe's ``approvedHashes(signer, hash)`` mapping; non-zero means approved."""
        call_data = encode_call(
            self.constants.approved_hashes_selector, [signature.signer, data_hash]
        )
        self._require_caller()

        try:
            returned = self._call(safe_address, call_data)
        except Exception as e:
            self._log_oracle_failure("approvedHashes", signature.signer, e)
            return ValidationResult(
                valid=False, signature=signature, validated_signer=signature.signer, error=e
            )

        # An empty return is "not approved", not a failure
        return ValidationResult(
            valid=any(returned),
            signature=signature,
            validated_signer=signature.signer
        )

    def _require_caller(self) -> None:
        if self.caller is None:
            raise ValueError("A contract caller is required for on-chain signature checks")

    def _call(self, to: str, data: bytes) -> bytes:
        return to_bytes(self.caller.call(to, data, self.block))

    def _log_oracle_failure(self, method: str, signer: str, error: Exception) -> None:
        rate_limited_log(
            f"{method} call failed for signer {signer}: {error}",
            level="warning",
            logger_instance=self.logger
        )


def validate_signature(
    signature: Signature,
    context: ValidationContext,
    caller: Optional[ContractCaller] = None,
    constants: ProtocolConstants = DEFAULT_CONSTANTS
) -> ValidationResult:
    """Validate one signature with a throwaway ``SignatureValidator``."""
    return SignatureValidator(caller, constants).validate(signature, context)
