"""Packet framing: raw frames on the wire and packets with a decoded id."""

from __future__ import annotations

import dataclasses
import io
import zlib
from typing import Any, BinaryIO, TypeVar

from mcproto.serialization import deserialize_fields, serialize_fields
from mcproto.varint import decode_varint, encode_varint

__all__ = [
    "MAX_PACKET_LENGTH",
    "PacketTooLargeError",
    "RawPacket",
    "MinecraftPacket",
]

MAX_PACKET_LENGTH = 2097151

T = TypeVar("T")
P = TypeVar("P", bound="MinecraftPacket")


class PacketTooLargeError(ValueError):
    """Raised when a length read from the wire exceeds the protocol maximum."""

    def __init__(self, message: str = "counterpart sent a packet which was too big") -> None:
        super().__init__(message)


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = reader.read(size - len(data))
        if not chunk:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        data += chunk
    return bytes(data)


def _read_length(reader: BinaryIO) -> tuple[int, int]:
    value, size = decode_varint(reader)
    if value > MAX_PACKET_LENGTH:
        raise PacketTooLargeError()
    return value, size


@dataclasses.dataclass
class RawPacket:
    """A frame as it travels on the wire, possibly zlib-compressed.

    ``data_length`` is positive when ``data`` is compressed, 0 when a frame in
    the compressed format carries plain data and -1 for the uncompressed format.
    """

    data: bytes = b""
    data_length: int = 0
    packet_length: int = 0

    def payload(self) -> bytes:
        """Return the packet id and data, decompressed if needed."""
        if self.data_length > 0:
            return zlib.decompress(self.data)
        return self.data

    def read_packet_id(self) -> int:
        """Decode only the packet id."""
        return decode_varint(io.BytesIO(self.payload()))[0]

    def read_all(self) -> tuple[int, bytes]:
        """Decode the packet id and return it with the remaining data."""
        reader = io.BytesIO(self.payload())
        packet_id, _ = decode_varint(reader)
        return packet_id, reader.read()

    def write_uncompressed(self, writer: BinaryIO) -> None:
        """Write the frame in the uncompressed format."""
        self.packet_length = len(self.data)
        writer.write(encode_varint(self.packet_length))
        writer.write(self.data)

    def write_compressed(self, writer: BinaryIO) -> None:
        """Write the frame in the compressed format, with its data length."""
        encoded_data_length = encode_varint(self.data_length)
        self.packet_length = len(encoded_data_length) + len(self.data)
        writer.write(encode_varint(self.packet_length))
        writer.write(encoded_data_length)
        writer.write(self.data)

    @classmethod
    def from_uncompressed_reader(cls, reader: BinaryIO) -> RawPacket:
        """Read a frame in the uncompressed format."""
        length, _ = _read_length(reader)
        if length < 0:
            raise ValueError(f"negative packet length {length}")
        return cls(data=_read_exact(reader, length), data_length=-1, packet_length=length)

    @classmethod
    def from_compressed_reader(cls, reader: BinaryIO) -> RawPacket:
        """Read a frame in the compressed format; its data may still be plain."""
        length, _ = _read_length(reader)
        data_length, data_length_size = _read_length(reader)
        remaining = length - data_length_size
        if remaining < 0:
            raise ValueError(f"packet length {length} is shorter than its data length field")
        return cls(
            data=_read_exact(reader, remaining),
            data_length=data_length,
            packet_length=length,
        )


@dataclasses.dataclass
class MinecraftPacket:
    """A packet id with its encoded data; subclasses declare wire fields."""

    packet_id: int = dataclasses.field(default=0, kw_only=True)
    data: bytes = dataclasses.field(default=b"", kw_only=True)

    def serialize_data(self) -> None:
        """Append the encoding of this packet's wire fields to ``data``."""
        buf = io.BytesIO()
        serialize_fields(self, buf)
        self.data = bytes(self.data) + buf.getvalue()

    def deserialize_data(self, cls: type[T]) -> T:
        """Decode ``data`` into a new instance of the dataclass ``cls``."""
        result: Any = deserialize_fields(cls, io.BytesIO(self.data))
        if isinstance(result, MinecraftPacket):
            result.packet_id = self.packet_id
        return result

    def serialize_uncompressed(self, writer: BinaryIO) -> None:
        """Write the packet in the uncompressed format."""
        RawPacket(data=encode_varint(self.packet_id) + bytes(self.data)).write_uncompressed(writer)

    def serialize_compressed(self, writer: BinaryIO, threshold: int) -> None:
        """Write the packet in the compressed format, compressing it at or above ``threshold`` bytes."""
        body = encode_varint(self.packet_id) + bytes(self.data)
        if len(body) >= threshold:
            raw = RawPacket(data=zlib.compress(body), data_length=len(body))
        else:
            raw = RawPacket(data=body, data_length=0)
        raw.write_compressed(writer)

    @classmethod
    def from_raw_packet(cls: type[P], raw: RawPacket) -> P:
        """Build a packet from a raw frame, decompressing it if needed."""
        packet_id, data = raw.read_all()
        return cls(packet_id=packet_id, data=data)