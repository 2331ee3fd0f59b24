"""Variable-length integer encoding used by the Minecraft protocol."""

from __future__ import annotations

from typing import BinaryIO

__all__ = [
    "VarIntTooBigError",
    "encode_varint",
    "decode_varint",
    "encode_varlong",
    "decode_varlong",
]


class VarIntTooBigError(ValueError):
    """Raised when an encoded VarInt or VarLong runs past its maximum length."""

    def __init__(self, message: str = "var int is too big") -> None:
        super().__init__(message)


def _encode(value: int, bits: int) -> bytes:
    low, high = -(1 << (bits - 1)), 1 << (bits - 1)
    if not low <= value < high:
        raise OverflowError(f"{value} does not fit in a signed {bits}-bit integer")
    value &= (1 << bits) - 1
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            byte |= 0x80
        out.append(byte)
        if not value:
            return bytes(out)


def _decode(reader: BinaryIO, bits: int, max_bytes: int) -> tuple[int, int]:
    result = 0
    num_read = 0
    while True:
        chunk = reader.read(1)
        if not chunk:
            raise EOFError("unexpected end of data while reading a variable-length integer")
        byte = chunk[0]
        result |= (byte & 0x7F) << (7 * num_read)
        num_read += 1
        if num_read > max_bytes:
            raise VarIntTooBigError()
        if not byte & 0x80:
            break
    result &= (1 << bits) - 1
    if result >= 1 << (bits - 1):
        result -= 1 << bits
    return result, num_read


def encode_varint(value: int) -> bytes:
    """Encode a signed 32-bit integer as a VarInt."""
    return _encode(value, 32)


def decode_varint(reader: BinaryIO) -> tuple[int, int]:
    """Read a VarInt from ``reader``; return the value and the number of bytes read."""
    return _decode(reader, 32, 5)


def encode_varlong(value: int) -> bytes:
    """Encode a signed 64-bit integer as a VarLong."""
    return _encode(value, 64)


def decode_varlong(reader: BinaryIO) -> tuple[int, int]:
    """Read a VarLong from ``reader``; return the value and the number of bytes read."""
    return _decode(reader, 64, 10)