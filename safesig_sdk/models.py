"""
Data models for the Safe signature SDK.
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .constants import ZERO_ADDRESS
from .encoding import normalize_address, to_bytes, to_bytes32


class Operation(IntEnum):
    """Safe transaction operation type"""
    CALL = 0
    UNSAFE_DELEGATECALL = 1


class SignatureTag(IntEnum):
    """Trailing type byte of a packed Safe signature (the historical ``v``)"""
    CONTRACT = 0
    APPROVED_HASH = 1
    EIP712_RECID_1 = 27
    EIP712_RECID_2 = 28
    ETH_SIGN_RECID_1 = 31
    ETH_SIGN_RECID_2 = 32


def _address(value: Any) -> str:
    # ValueError is what pydantic turns into a ValidationError
    return normalize_address(value)


def _hex_bytes(value: Any) -> bytes:
    return to_bytes(value)


class MetaTransaction(BaseModel):
    """A bare call: target, ETH value and call data"""
    model_config = ConfigDict(frozen=True)

    to: str
    value: int = 0
    data: bytes = b""

    check_to = field_validator("to", mode="before")(_address)
    check_data = field_validator("data", mode="before")(_hex_bytes)


class SafeTransaction(MetaTransaction):
    """MetaTransaction plus the Safe-specific fields bound into its hash"""
    safe_address: str
    chain_id: int
    operation: Operation = Operation.CALL
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS
    nonce: int = 0

    check_addresses = field_validator(
        "safe_address", "gas_token", "refund_receiver", mode="before"
    )(_address)


class ECDSASignature(BaseModel):
    """
    Static 65-byte ``r ‖ s ‖ v`` signature from an externally owned account.

    Length is checked by the codec and the validator, which raise
    ``InvalidSignatureLengthError``.
    """
    model_config = ConfigDict(frozen=True)

    signer: str
    data: bytes

    check_signer = field_validator("signer", mode="before")(_address)
    check_data = field_validator("data", mode="before")(_hex_bytes)


class DynamicSignature(BaseModel):
    """Contract (EIP-1271) signature with a variable-length payload"""
    model_config = ConfigDict(frozen=True)

    signer: str
    data: bytes
    dynamic: bool = True

    check_signer = field_validator("signer", mode="before")(_address)
    check_data = field_validator("data", mode="before")(_hex_bytes)


class ApprovedHashSignature(BaseModel):
    """Owner pre-approval recorded on-chain; carries no payload"""
    model_config = ConfigDict(frozen=True)

    signer: str

    check_signer = field_validator("signer", mode="before")(_address)


Signature = Union[ECDSASignature, DynamicSignature, ApprovedHashSignature]


@dataclass(frozen=True)
class ValidationContext:
    """
    What a signature attests to.

    Attributes:
        data_hash: 32-byte hash the owners signed
        data: Pre-image of ``data_hash``
        safe_address: Safe holding the approved-hash mapping
        legacy: Ask contract signers with ``isValidSignature(bytes,bytes)`` over
            ``data`` instead of ``isValidSignature(bytes32,bytes)`` over the hash

    Raises:
        ValueError: If ``legacy`` is set without ``data``
    """
    data_hash: bytes
    data: Optional[bytes] = None
    safe_address: Optional[str] = None
    legacy: bool = False

    def __post_init__(self):
        object.__setattr__(self, "data_hash", to_bytes32(self.data_hash))
        if self.data is not None:
            object.__setattr__(self, "data", to_bytes(self.data))
        elif self.legacy:
            raise ValueError("The legacy EIP-1271 call shape requires data")
        if self.safe_address is not None:
            object.__setattr__(self, "safe_address", normalize_address(self.safe_address))


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking one signature; business failures set ``error``"""
    valid: bool
    signature: Signature
    validated_signer: Optional[str] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class AuthorizationResult:
    """Quorum decision plus the per-signature detail behind it"""
    valid: bool
    results: List[ValidationResult] = field(default_factory=list)
    counted_signers: List[str] = field(default_factory=list)
    threshold: int = 0

    @property
    def failures(self) -> List[ValidationResult]:
        return [r for r in self.results if not r.valid]


@dataclass(frozen=True)
class CheckResult:
    """Result of asking the Safe contract to verify signatures itself"""
    valid: bool
    error: Optional[Exception] = None
