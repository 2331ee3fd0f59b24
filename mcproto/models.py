"""Packets exchanged while a client logs in."""

from __future__ import annotations

import dataclasses
import uuid

from mcproto.fields import FieldKind, mc_field
from mcproto.packet import MinecraftPacket

__all__ = [
    "DisconnectPacket",
    "HandshakePacket",
    "KeepAlivePacket",
    "LoginStartPacket",
    "LoginSuccessPacket",
    "SetCompressionPacket",
]


@dataclasses.dataclass
class DisconnectPacket(MinecraftPacket):
    """Disconnection with a JSON-encoded reason."""

    reason: str = mc_field(FieldKind.STRING, default="")


@dataclasses.dataclass
class HandshakePacket(MinecraftPacket):
    """First packet a client sends, choosing the next state."""

    protocol_version: int = mc_field(FieldKind.VARINT, default=0)
    server_address: str = mc_field(FieldKind.STRING, default="")
    server_port: int = mc_field(FieldKind.USHORT, default=0)
    next_state: int = mc_field(FieldKind.VARINT, default=0)


@dataclasses.dataclass
class KeepAlivePacket(MinecraftPacket):
    """Keep-alive carrying an identifier to echo back."""

    keep_alive_id: int = mc_field(FieldKind.LONG, default=0)


@dataclasses.dataclass
class LoginStartPacket(MinecraftPacket):
    """Start of login with the player's name."""

    name: str = mc_field(FieldKind.STRING, default="")


@dataclasses.dataclass
class LoginSuccessPacket(MinecraftPacket):
    """Successful login with the player's UUID and confirmed name."""

    uuid: uuid.UUID = mc_field(FieldKind.UUID, default=uuid.UUID(int=0))
    username: str = mc_field(FieldKind.STRING, default="")


@dataclasses.dataclass
class SetCompressionPacket(MinecraftPacket):
    """Switch to the compressed format with the given threshold."""

    threshold: int = mc_field(FieldKind.VARINT, default=0)