"""
Exceptions for the Safe signature SDK.

Structural errors are raised for malformed input (programmer or upstream
data error). On-chain rejections and network failures are never raised by
the validator; they are reported on ``ValidationResult.error`` instead.
"""
from typing import Optional


class SafeSigError(Exception):
    """Base exception for all SDK errors."""
    pass


class StructuralError(SafeSigError, ValueError):
    """Raised when input bytes or values are malformed."""
    pass


class EmptySignatureSetError(StructuralError):
    """Raised when encoding an empty list of signatures."""
    pass


class InvalidSignatureLengthError(StructuralError):
    """Raised when a static signature is not exactly 65 bytes."""

    def __init__(self, message: str, length: Optional[int] = None):
        self.length = length
        super().__init__(message)


class UnknownSignatureTagError(StructuralError):
    """Raised when a signature's trailing type byte is not a known tag."""

    def __init__(self, message: str, tag: Optional[int] = None):
        self.tag = tag
        super().__init__(message)


class TruncatedDataError(StructuralError):
    """Raised when raw data is shorter than its declared layout."""
    pass


class TruncatedDynamicDataError(TruncatedDataError):
    """Raised when a dynamic signature's offset or length runs past the buffer."""
    pass


class UnexpectedLayoutError(StructuralError):
    """Raised when an ABI pointer does not have the expected value."""
    pass


class MalformedValueError(StructuralError):
    """Raised for addresses, hashes or selectors of the wrong size or format."""
    pass


class WordOverflowError(MalformedValueError):
    """Raised when an integer does not fit in one unsigned 256-bit word."""
    pass


class SignatureRecoveryError(StructuralError):
    """Raised when a packed ECDSA signature cannot be recovered while decoding."""
    pass


class AccountStateError(SafeSigError):
    """Raised when a required Safe state read returns nothing."""

    def __init__(self, message: str, safe_address: Optional[str] = None):
        self.safe_address = safe_address
        super().__init__(message)
