"""
32-byte word codec for the narrow set of ABI shapes the Safe protocol uses.

Supported shapes:
1. selector + static words (addresses, integers, bytes32)
2. a single dynamic ``bytes`` argument kind (head offset + tail length/payload)
3. a dynamic ``address[]`` return value
4. an address at a fixed word index of a return value
"""
import re
from typing import List, Sequence, Union

from hexbytes import HexBytes
from web3 import Web3

from .constants import WORD_SIZE
from .exceptions import (
    MalformedValueError, TruncatedDataError, UnexpectedLayoutError, WordOverflowError
)

_ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")
MAX_UINT256 = 2 ** 256 - 1
ARRAY_OFFSET = WORD_SIZE


class DynamicBytes(bytes):
    """Marks a ``bytes`` argument as ABI-dynamic rather than a fixed word."""
    pass


Word = Union[int, bool, str, bytes]


def to_bytes(value: Union[str, bytes, bytearray]) -> bytes:
    """
    Coerce a hex string (with or without 0x) or bytes-like value to bytes.

    Raises:
        MalformedValueError: If a string is not valid hex
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return bytes(HexBytes(value))
        except ValueError as e:
            raise MalformedValueError(f"Invalid hex string: {value!r}") from e
    raise MalformedValueError(f"Expected hex string or bytes, got {type(value).__name__}")


def is_address(value) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def normalize_address(address: str) -> str:
    """
    Return the EIP-55 checksummed form of an address.

    Mixed-case input is accepted without verifying its checksum; the
    comparison rules of the protocol are case-insensitive.

    Raises:
        MalformedValueError: If the value is not 20 bytes of hex
    """
    if not is_address(address):
        raise MalformedValueError(f"Invalid address: {address!r}")
    hex_part = address[2:] if address.startswith("0x") else address
    return Web3.to_checksum_address("0x" + hex_part.lower())


def to_bytes32(value: Union[str, bytes]) -> bytes:
    """
    Coerce a 32-byte hash.

    Raises:
        MalformedValueError: If the value is not exactly 32 bytes
    """
    raw = to_bytes(value)
    if len(raw) != WORD_SIZE:
        raise MalformedValueError(f"Expected 32-byte hash, got {len(raw)} bytes")
    return raw


def encode_word(value: Word) -> bytes:
    """
    Encode a single static value as a 32-byte word.

    Integers are big-endian, addresses and byte strings are left-padded
    with zeros (right-aligned).

    Raises:
        WordOverflowError: If an integer is negative or wider than 256 bits
        MalformedValueError: If bytes are longer than 32 or the type is unsupported
    """
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, int):
        if value < 0 or value > MAX_UINT256:
            raise WordOverflowError(f"Value {value} does not fit in uint256")
        return value.to_bytes(WORD_SIZE, "big")
    if isinstance(value, str):
        if is_address(value):
            return bytes.fromhex(normalize_address(value)[2:]).rjust(WORD_SIZE, b"\x00")
        value = to_bytes(value)
    if isinstance(value, (bytes, bytearray)):
        if len(value) > WORD_SIZE:
            raise MalformedValueError(
                f"Value 0x{bytes(value).hex()} exceeds 32-byte length"
            )
        return bytes(value).rjust(WORD_SIZE, b"\x00")
    raise MalformedValueError(f"Unsupported word type: {type(value).__name__}")


def encode_words(args: Sequence[Word]) -> bytes:
    """Concatenate static words with no selector prefix."""
    return b"".join(encode_word(arg) for arg in args)


def _pad_right(data: bytes) -> bytes:
    remainder = len(data) % WORD_SIZE
    if remainder == 0:
        return data
    return data + b"\x00" * (WORD_SIZE - remainder)


def encode_call(selector: Union[str, bytes], args: Sequence[Union[Word, DynamicBytes]] = ()) -> bytes:
    """
    Build call data: ``selector ‖ head ‖ tail``.

    Static arguments occupy one head word each. ``DynamicBytes`` arguments
    put an offset (relative to the end of the selector) in the head and
    ``length ‖ payload`` (payload right-padded to a word) in the tail.

    Raises:
        MalformedValueError: If the selector is not 4 bytes
    """
    selector = to_bytes(selector)
    if len(selector) != 4:
        raise MalformedValueError(f"Selector must be exactly 4 bytes, got {len(selector)}")

    head_size = WORD_SIZE * len(args)
    head = []
    tail = b""
    for arg in args:
        if isinstance(arg, DynamicBytes):
            head.append(encode_word(head_size + len(tail)))
            tail += encode_word(len(arg)) + _pad_right(bytes(arg))
        else:
            head.append(encode_word(arg))
    return selector + b"".join(head) + tail


def _require(raw: bytes, end: int, what: str) -> None:
    if len(raw) < end:
        raise TruncatedDataError(
            f"Cannot read {what}: need {end} bytes, got {len(raw)}"
        )


def decode_uint(raw: Union[str, bytes], word_index: int = 0) -> int:
    """Read the big-endian integer stored in a given word."""
    raw = to_bytes(raw)
    start = word_index * WORD_SIZE
    _require(raw, start + WORD_SIZE, f"word {word_index}")
    return int.from_bytes(raw[start:start + WORD_SIZE], "big")


def decode_fixed_offset_address(raw: Union[str, bytes], word_index: int) -> str:
    """Extract the right-aligned address held in a given word."""
    raw = to_bytes(raw)
    start = word_index * WORD_SIZE
    _require(raw, start + WORD_SIZE, f"address at word {word_index}")
    return normalize_address("0x" + raw[start + 12:start + WORD_SIZE].hex())


def decode_address_array(raw: Union[str, bytes], expected_offset: int = ARRAY_OFFSET) -> List[str]:
    """
    Decode the canonical ABI layout of a returned ``address[]``.

    Layout: offset pointer (word 0), element count N (word 1), then N words
    with right-aligned addresses.

    Raises:
        TruncatedDataError: If the data ends before the declared elements
        UnexpectedLayoutError: If the offset pointer is not ``expected_offset``
    """
    raw = to_bytes(raw)
    _require(raw, 2 * WORD_SIZE, "array header")

    offset = decode_uint(raw, 0)
    if offset != expected_offset:
        raise UnexpectedLayoutError(
            f"Unexpected array offset pointer {offset} (expected {expected_offset})"
        )

    count = decode_uint(raw, 1)
    _require(raw, (2 + count) * WORD_SIZE, f"{count} array elements")
    return [decode_fixed_offset_address(raw, 2 + i) for i in range(count)]
