"""A protocol connection that exchanges packets with a peer."""

from __future__ import annotations

import io
import socket
import threading
from typing import Any, BinaryIO

from mcproto.models import (
    DisconnectPacket,
    HandshakePacket,
    LoginStartPacket,
    LoginSuccessPacket,
    SetCompressionPacket,
)
from mcproto.packet import MinecraftPacket, RawPacket

__all__ = ["LoginDisconnectError", "OnlineModeError", "Client"]

_LOGIN_DISCONNECT = 0x00
_ENCRYPTION_REQUEST = 0x01
_LOGIN_SUCCESS = 0x02
_SET_COMPRESSION = 0x03


class LoginDisconnectError(Exception):
    """The server disconnected the client while it was logging in."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"server disconnected the client during initialization with message: {reason}"
        )


class OnlineModeError(Exception):
    """The server asked for encryption, which means it runs in online mode."""

    def __init__(
        self,
        message: str = (
            "received an encryption request which means the server is in online mode; "
            "online mode is not supported"
        ),
    ) -> None:
        super().__init__(message)


def _split_address(address: str | tuple[str, int]) -> tuple[str, int]:
    if isinstance(address, tuple):
        host, port = address
        return host, int(port)
    host, sep, port = address.rpartition(":")
    if not sep or not port:
        raise ValueError(f"address {address!r} must have the form host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


class Client:
    """One end of a connection, reading and writing packets in either framing format.

    ``compression_threshold`` selects the framing: above 0 the compressed
    format is used, otherwise the uncompressed one. :meth:`initialize` sets it
    from the server's answer.
    """

    def __init__(self, connection: socket.socket | None = None, compression_threshold: int = 0) -> None:
        self.compression_threshold = compression_threshold
        self._read_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._connection: socket.socket | None = None
        self._reader: BinaryIO | None = None
        if connection is not None:
            self._attach(connection)

    def _attach(self, connection: socket.socket) -> None:
        self._connection = connection
        self._reader = connection.makefile("rb")

    def _socket(self) -> socket.socket:
        if self._connection is None:
            raise ConnectionError("client is not connected")
        return self._connection

    def _input(self) -> BinaryIO:
        if self._reader is None:
            raise ConnectionError("client is not connected")
        return self._reader

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._connection is not None:
            self.close()

    @classmethod
    def from_listener(cls, listener: socket.socket) -> Client:
        """Accept a connection from a listening socket and wrap it."""
        connection, _ = listener.accept()
        return cls(connection)

    @classmethod
    def from_connection(cls, conn: socket.socket) -> Client:
        """Wrap an already connected socket."""
        return cls(conn)

    def connect(self, address: str | tuple[str, int]) -> None:
        """Open a TCP connection to ``address``, given as ``"host:port"`` or ``(host, port)``."""
        host, port = _split_address(address)
        self._attach(socket.create_connection((host, port)))

    def close(self) -> None:
        """Close the connection; no further packets can be exchanged."""
        connection = self._socket()
        if self._reader is not None:
            self._reader.close()
        connection.close()
        self._connection = None
        self._reader = None

    @property
    def compression_enabled(self) -> bool:
        """Whether packets are framed in the compressed format."""
        return self.compression_threshold > 0

    @property
    def remote_address(self) -> tuple[str, int]:
        """Address of the connected peer as a (host, number) pair."""
        peer = self._socket().getpeername()
        return peer[0], peer[1]

    def initialize(self, host: str, port: int, protocol_version: int, username: str) -> LoginSuccessPacket:
        """Connect, send the handshake and login start, and follow the login until it succeeds.

        Returns the login success packet. Raises :class:`LoginDisconnectError`
        if the server disconnects the client and :class:`OnlineModeError` if it
        asks for encryption.
        """
        self.connect((host, port))

        self.write_packet(
            HandshakePacket(
                packet_id=0x00,
                protocol_version=protocol_version,
                server_address=host,
                server_port=port,
                next_state=2,
            )
        )
        self.write_packet(LoginStartPacket(packet_id=0x00, name=username))

        while True:
            packet = self.receive_packet()
            if packet.packet_id == _LOGIN_DISCONNECT:
                disconnect = packet.deserialize_data(DisconnectPacket)
                raise LoginDisconnectError(disconnect.reason)
            if packet.packet_id == _ENCRYPTION_REQUEST:
                raise OnlineModeError()
            if packet.packet_id == _SET_COMPRESSION:
                set_compression = packet.deserialize_data(SetCompressionPacket)
                if set_compression.threshold < 0:
                    raise ValueError("server sent a set compression packet with a negative threshold")
                self.compression_threshold = set_compression.threshold
            elif packet.packet_id == _LOGIN_SUCCESS:
                return packet.deserialize_data(LoginSuccessPacket)

    def write_packet(self, packet: MinecraftPacket) -> None:
        """Encode the packet's fields and send it in the current framing format."""
        buf = io.BytesIO()
        with self._write_lock:
            packet.serialize_data()
            if self.compression_enabled:
                packet.serialize_compressed(buf, self.compression_threshold)
            else:
                packet.serialize_uncompressed(buf)
            self._socket().sendall(buf.getvalue())

    def write_raw_packet(self, raw: RawPacket) -> None:
        """Send a raw frame in the current framing format."""
        buf = io.BytesIO()
        with self._write_lock:
            if self.compression_enabled:
                raw.write_compressed(buf)
            else:
                raw.write_uncompressed(buf)
            self._socket().sendall(buf.getvalue())

    def receive_raw_packet(self) -> RawPacket:
        """Read one frame without decompressing or decoding it."""
        with self._read_lock:
            reader = self._input()
            if self.compression_enabled:
                return RawPacket.from_compressed_reader(reader)
            return RawPacket.from_uncompressed_reader(reader)

    def receive_packet(self) -> MinecraftPacket:
        """Read one frame and decode its packet id, decompressing it if needed."""
        return MinecraftPacket.from_raw_packet(self.receive_raw_packet())