"""
Safe signature SDK.

Hashes Safe transactions and messages (EIP-712), packs and unpacks the
multi-signature byte string the Safe contract accepts, and checks
signatures against an owner quorum.
"""
from .version import __version__
from .constants import DEFAULT_CONSTANTS, ProtocolConstants, ZERO_ADDRESS, SENTINEL_ADDRESS
from .exceptions import (
    SafeSigError, StructuralError, EmptySignatureSetError, InvalidSignatureLengthError,
    UnknownSignatureTagError, TruncatedDataError, TruncatedDynamicDataError,
    UnexpectedLayoutError, MalformedValueError, WordOverflowError,
    SignatureRecoveryError, AccountStateError
)
from .models import (
    Operation, SignatureTag, MetaTransaction, SafeTransaction, ECDSASignature,
    DynamicSignature, ApprovedHashSignature, Signature, ValidationContext,
    ValidationResult, AuthorizationResult, CheckResult
)
from .eip712 import (
    domain_separator, transaction_hash, message_hash, personal_message_hash,
    encode_transaction_data, encode_message_data,
    safe_transaction_typed_data, safe_message_typed_data
)
from .signatures import (
    encode_signatures, decode_signatures, signature_tag, approved_hash_signature_bytes
)
from .validation import ContractCaller, SignatureValidator, validate_signature
from .quorum import authorize
from .account_state import get_owners, get_threshold, check_n_signatures
from .transport import Web3Caller
from .client import SafeClient

__all__ = [
    "__version__",
    "DEFAULT_CONSTANTS",
    "ProtocolConstants",
    "ZERO_ADDRESS",
    "SENTINEL_ADDRESS",
    "SafeSigError",
    "StructuralError",
    "EmptySignatureSetError",
    "InvalidSignatureLengthError",
    "UnknownSignatureTagError",
    "TruncatedDataError",
    "TruncatedDynamicDataError",
    "UnexpectedLayoutError",
    "MalformedValueError",
    "WordOverflowError",
    "SignatureRecoveryError",
    "AccountStateError",
    "Operation",
    "SignatureTag",
    "MetaTransaction",
    "SafeTransaction",
    "ECDSASignature",
    "DynamicSignature",
    "ApprovedHashSignature",
    "Signature",
    "ValidationContext",
    "ValidationResult",
    "AuthorizationResult",
    "CheckResult",
    "domain_separator",
    "transaction_hash",
    "message_hash",
    "personal_message_hash",
    "encode_transaction_data",
    "encode_message_data",
    "safe_transaction_typed_data",
    "safe_message_typed_data",
    "encode_signatures",
    "decode_signatures",
    "signature_tag",
    "approved_hash_signature_bytes",
    "ContractCaller",
    "SignatureValidator",
    "validate_signature",
    "authorize",
    "get_owners",
    "get_threshold",
    "check_n_signatures",
    "Web3Caller",
    "SafeClient",
]
