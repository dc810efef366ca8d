"""
Minimal BCS (Binary Canonical Serialization) writer.

Only the primitives needed to encode programmable transactions are
provided: little-endian unsigned integers, ULEB128 lengths, fixed and
length-prefixed byte strings, and vectors.
"""
from typing import Callable, Iterable, TypeVar

import base58

from ..utils import normalize_address

T = TypeVar('T')

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U64_MAX = 0xFFFFFFFFFFFFFFFF


def uleb128(value: int) -> bytes:
    """Encode a non-negative integer as ULEB128."""
    if value < 0:
        raise ValueError(f"ULEB128 cannot encode negative value {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


class BcsWriter:
    """Accumulates BCS encoded values"""

    def __init__(self):
        self._buffer = bytearray()

    def _uint(self, value: int, size: int, maximum: int) -> "BcsWriter":
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
            raise ValueError(f"Value {value!r} does not fit in u{size * 8}")
        self._buffer += value.to_bytes(size, "little")
        return self

    def u8(self, value: int) -> "BcsWriter":
        return self._uint(value, 1, U8_MAX)

    def u16(self, value: int) -> "BcsWriter":
        return self._uint(value, 2, U16_MAX)

    def u64(self, value: int) -> "BcsWriter":
        return self._uint(value, 8, U64_MAX)

    def boolean(self, value: bool) -> "BcsWriter":
        self._buffer.append(1 if value else 0)
        return self

    def length(self, value: int) -> "BcsWriter":
        self._buffer += uleb128(value)
        return self

    def fixed_bytes(self, value: bytes) -> "BcsWriter":
        self._buffer += value
        return self

    def byte_vector(self, value: bytes) -> "BcsWriter":
        """Length-prefixed byte string (``vector<u8>``)."""
        return self.length(len(value)).fixed_bytes(value)

    def string(self, value: str) -> "BcsWriter":
        return self.byte_vector(value.encode("utf-8"))

    def address(self, value: str) -> "BcsWriter":
        """32-byte account address or object id."""
        return self.fixed_bytes(bytes.fromhex(normalize_address(value)[2:]))

    def digest(self, value: str) -> "BcsWriter":
        """Base58 object or transaction digest as a length-prefixed 32-byte string."""
        raw = base58.b58decode(value)
        if len(raw) != 32:
            raise ValueError(f"Digest must decode to 32 bytes, got {len(raw)}")
        return self.byte_vector(raw)

    def vector(self, items: Iterable[T], encode: Callable[["BcsWriter", T], object]) -> "BcsWriter":
        items = list(items)
        self.length(len(items))
        for item in items:
            encode(self, item)
        return self

    def option(self, value, encode: Callable[["BcsWriter", T], object]) -> "BcsWriter":
        if value is None:
            return self.u8(0)
        self.u8(1)
        encode(self, value)
        return self

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)


def encode_u64(value: int) -> bytes:
    return BcsWriter().u64(value).to_bytes()


def encode_address(value: str) -> bytes:
    return BcsWriter().address(value).to_bytes()


def encode_string(value: str) -> bytes:
    return BcsWriter().string(value).to_bytes()


def encode_bool(value: bool) -> bytes:
    return BcsWriter().boolean(value).to_bytes()


def decode_u64(data: bytes) -> int:
    """Decode a little-endian u64 as returned by Move functions."""
    raw = bytes(data)
    if len(raw) != 8:
        raise ValueError(f"u64 requires exactly 8 bytes, got {len(raw)}")
    return int.from_bytes(raw, "little")
