"""
Packed Safe signature codec.

Wire format::

    [ static_0 ] ... [ static_{n-1} ][ dynamic_0 ] ...

Every static entry is 65 bytes: a raw ECDSA ``r ‖ s ‖ v``, an approved-hash
marker ``signer ‖ 0x00*32 ‖ 0x01`` or a contract-signature header
``signer ‖ offset ‖ 0x00`` whose ``offset`` points at ``length ‖ payload``
in the dynamic region.
"""
import logging
from typing import List, Sequence, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as EthKeysValidationError

from .constants import ECDSA_SIGNATURE_LENGTH, WORD_SIZE, ZERO_ADDRESS
from .eip712 import personal_message_hash
from .encoding import decode_uint, encode_word, normalize_address, to_bytes, to_bytes32
from .exceptions import (
    EmptySignatureSetError, InvalidSignatureLengthError, SignatureRecoveryError,
    TruncatedDataError, TruncatedDynamicDataError, UnexpectedLayoutError,
    UnknownSignatureTagError
)
from .models import (
    ApprovedHashSignature, DynamicSignature, ECDSASignature, Signature, SignatureTag
)

logger = logging.getLogger(__name__)

EIP712_TAGS = (SignatureTag.EIP712_RECID_1, SignatureTag.EIP712_RECID_2)
ETH_SIGN_TAGS = (SignatureTag.ETH_SIGN_RECID_1, SignatureTag.ETH_SIGN_RECID_2)
ETH_SIGN_TAG_SHIFT = 4


def signature_tag(data: Union[str, bytes]) -> SignatureTag:
    """
    Classify a static signature by its trailing type byte.

    Raises:
        InvalidSignatureLengthError: If the data is shorter than 65 bytes
        UnknownSignatureTagError: If the byte is not a known tag
    """
    data = to_bytes(data)
    if len(data) < ECDSA_SIGNATURE_LENGTH:
        raise InvalidSignatureLengthError(
            f"Signature too short to determine type byte: {len(data)} bytes",
            length=len(data)
        )
    tag = data[-1]
    try:
        return SignatureTag(tag)
    except ValueError:
        raise UnknownSignatureTagError(f"Unknown signature type byte: {tag}", tag=tag)


def recover_signer(data_hash: bytes, signature: bytes) -> str:
    """
    Recover the checksummed address that produced a 65-byte signature.

    ``v`` must already be 27 or 28.

    Raises:
        BadSignature / eth_keys ValidationError: If ``r``, ``s`` or ``v`` are invalid
    """
    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64] - 27
    public_key = keys.Signature(vrs=(v, r, s)).recover_public_key_from_msg_hash(data_hash)
    return public_key.to_checksum_address()


def normalize_eth_sign(signature: bytes) -> bytes:
    """Map an eth_sign tag (31/32) to the recoverable ``v`` (27/28)."""
    return signature[:64] + bytes([signature[64] - ETH_SIGN_TAG_SHIFT])


def approved_hash_signature_bytes(signer: str) -> bytes:
    """Canonical 65-byte encoding of an approved-hash signature."""
    return encode_word(signer) + encode_word(0) + bytes([SignatureTag.APPROVED_HASH])


def sort_signatures(signatures: Sequence[Signature]) -> List[Signature]:
    """Order signatures by ascending signer address, as the Safe requires."""
    return sorted(signatures, key=lambda sig: sig.signer.lower())


def encode_signatures(signatures: Sequence[Signature]) -> bytes:
    """
    Pack signatures into the single ``bytes`` argument the Safe accepts.

    Args:
        signatures: Signatures in any order; a sorted copy is encoded

    Returns:
        Static region followed by the dynamic region

    Raises:
        EmptySignatureSetError: If ``signatures`` is empty
        InvalidSignatureLengthError: If an ECDSA signature is not 65 bytes
    """
    if not signatures:
        raise EmptySignatureSetError("Cannot encode empty signature set")

    ordered = sort_signatures(signatures)
    static_length = ECDSA_SIGNATURE_LENGTH * len(ordered)
    static_part = bytearray()
    dynamic_part = bytearray()

    for signature in ordered:
        if isinstance(signature, DynamicSignature):
            offset = static_length + len(dynamic_part)
            static_part += encode_word(signature.signer) + encode_word(offset) + bytes([SignatureTag.CONTRACT])
            dynamic_part += encode_word(len(signature.data)) + signature.data
        elif isinstance(signature, ApprovedHashSignature):
            static_part += approved_hash_signature_bytes(signature.signer)
        elif isinstance(signature, ECDSASignature):
            if len(signature.data) != ECDSA_SIGNATURE_LENGTH:
                raise InvalidSignatureLengthError(
                    f"Invalid ECDSA signature length for {signature.signer}: "
                    f"expected {ECDSA_SIGNATURE_LENGTH} bytes, got {len(signature.data)}",
                    length=len(signature.data)
                )
            static_part += signature.data
        else:
            raise TypeError(f"Unsupported signature type: {type(signature).__name__}")

    return bytes(static_part + dynamic_part)


def _read_dynamic_payload(encoded: bytes, offset: int) -> bytes:
    if offset + WORD_SIZE > len(encoded):
        raise TruncatedDynamicDataError(
            f"Cannot read dynamic length at offset {offset}, data length is {len(encoded)}"
        )
    length = decode_uint(encoded[offset:offset + WORD_SIZE])
    start = offset + WORD_SIZE
    if start + length > len(encoded):
        raise TruncatedDynamicDataError(
            f"Dynamic data range [{start}, {start + length}) exceeds data length {len(encoded)}"
        )
    return encoded[start:start + length]


def _recover_static(stride: bytes, data_hash: bytes) -> str:
    try:
        return recover_signer(data_hash, stride)
    except (BadSignature, EthKeysValidationError, ValueError) as e:
        raise SignatureRecoveryError(f"Cannot recover signer from signature 0x{stride.hex()}: {e}") from e


def decode_signatures(
    encoded: Union[str, bytes],
    signed_hash: Union[str, bytes],
    strict: bool = True
) -> List[Signature]:
    """
    Unpack a Safe signature byte string into structured signatures.

    ECDSA signers are recovered from ``signed_hash`` (prefixed with the
    Ethereum personal-message header for eth_sign tags).

    Args:
        encoded: Packed signatures as produced by ``encode_signatures``
        signed_hash: 32-byte hash the ECDSA signatures were made over
        strict: When False, an ECDSA signature that cannot be recovered is
            kept with the zero address as signer instead of raising

    Returns:
        Signatures in wire order

    Raises:
        UnknownSignatureTagError: For an unrecognized type byte
        TruncatedDynamicDataError: If a dynamic offset or length exceeds the buffer
        UnexpectedLayoutError: If a dynamic offset points into the static region
        TruncatedDataError: If the static region ends mid-signature
        SignatureRecoveryError: If an ECDSA signature cannot be recovered and ``strict`` is set
    """
    encoded = to_bytes(encoded)
    signed_hash = to_bytes32(signed_hash)
    signatures: List[Signature] = []

    static_end = len(encoded)
    position = 0
    while position < static_end:
        if position + ECDSA_SIGNATURE_LENGTH > static_end:
            raise TruncatedDataError(
                f"Static signature at byte {position} is truncated "
                f"({static_end - position} of {ECDSA_SIGNATURE_LENGTH} bytes)"
            )
        stride = encoded[position:position + ECDSA_SIGNATURE_LENGTH]
        tag = signature_tag(stride)
        signer = normalize_address("0x" + stride[12:32].hex())

        if tag == SignatureTag.CONTRACT:
            offset = decode_uint(stride[32:64])
            if offset < position + ECDSA_SIGNATURE_LENGTH:
                raise UnexpectedLayoutError(
                    f"Dynamic signature offset {offset} points into the static region"
                )
            payload = _read_dynamic_payload(encoded, offset)
            static_end = min(static_end, offset)
            signatures.append(DynamicSignature(signer=signer, data=payload))
        elif tag == SignatureTag.APPROVED_HASH:
            signatures.append(ApprovedHashSignature(signer=signer))
        elif tag in EIP712_TAGS or tag in ETH_SIGN_TAGS:
            try:
                if tag in EIP712_TAGS:
                    recovered = _recover_static(stride, signed_hash)
                else:
                    recovered = _recover_static(normalize_eth_sign(stride), personal_message_hash(signed_hash))
            except SignatureRecoveryError:
                if strict:
                    raise
                # ecrecover yields the zero address; the validator reports the failure
                recovered = ZERO_ADDRESS
            signatures.append(ECDSASignature(signer=recovered, data=stride))

        position += ECDSA_SIGNATURE_LENGTH

    logger.debug(f"Decoded {len(signatures)} signatures from {len(encoded)} bytes")
    return signatures
