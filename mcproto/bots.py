"""Small bots that join a server and react to what it sends."""

from __future__ import annotations

import argparse
import dataclasses
import json
import platform
import uuid
import zlib
from typing import Any

from mcproto.client import Client
from mcproto.fields import FieldKind, mc_field
from mcproto.models import KeepAlivePacket
from mcproto.packet import MinecraftPacket
from mcproto.varint import VarIntTooBigError

__all__ = [
    "ClientBoundChatMessage",
    "ServerBoundChatMessage",
    "UpdateHealth",
    "EntityPositionUpdate",
    "EntityMultiPositionUpdate",
    "PlayerPositionAndLook",
    "TeleportConfirm",
    "PlayerPosition",
    "SpawnPlayer",
    "calculate_delta",
    "answer_keepalive",
    "run_keepalive",
    "run_health",
    "run_echo",
    "run_follow",
    "main",
]

PROTOCOL_VERSION = 754
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 25565

CLIENTBOUND_KEEPALIVE = 0x1F
SERVERBOUND_KEEPALIVE = 0x10
CLIENTBOUND_CHAT = 0x0E
SERVERBOUND_CHAT = 0x03
UPDATE_HEALTH = 0x49
SPAWN_PLAYER = 0x04
ENTITY_POSITION = 0x27
ENTITY_POSITION_AND_ROTATION = 0x28
PLAYER_POSITION_AND_LOOK = 0x34
TELEPORT_CONFIRM = 0x00
PLAYER_POSITION = 0x12

_DEFAULT_USERNAMES = {
    "keepalive": "KeepaliveBot",
    "health": "KeepaliveBot",
    "follow": "KeepaliveBot",
    "echo": "Echo_Keepalive",
}

_NIL_UUID = uuid.UUID(int=0)


@dataclasses.dataclass
class ClientBoundChatMessage(MinecraftPacket):
    """Chat message sent by the server, as JSON text."""

    json_data: str = mc_field(FieldKind.STRING, default="")
    position: int = mc_field(FieldKind.UBYTE, default=0)
    sender: uuid.UUID = mc_field(FieldKind.UUID, default=_NIL_UUID)


@dataclasses.dataclass
class ServerBoundChatMessage(MinecraftPacket):
    """Chat message sent by the client."""

    message: str = mc_field(FieldKind.STRING, default="")


@dataclasses.dataclass
class UpdateHealth(MinecraftPacket):
    """The player's health, food and saturation."""

    health: float = mc_field(FieldKind.FLOAT, default=0.0)
    food: int = mc_field(FieldKind.VARINT, default=0)
    food_saturation: float = mc_field(FieldKind.FLOAT, default=0.0)


@dataclasses.dataclass
class EntityPositionUpdate(MinecraftPacket):
    """Relative movement of an entity."""

    entity_id: int = mc_field(FieldKind.VARINT, default=0)
    delta_x: int = mc_field(FieldKind.SHORT, default=0)
    delta_y: int = mc_field(FieldKind.SHORT, default=0)
    delta_z: int = mc_field(FieldKind.SHORT, default=0)
    on_ground: bool = mc_field(FieldKind.BOOL, default=False)


@dataclasses.dataclass
class EntityMultiPositionUpdate(MinecraftPacket):
    """Relative movement and rotation of an entity."""

    entity_id: int = mc_field(FieldKind.VARINT, default=0)
    delta_x: int = mc_field(FieldKind.SHORT, default=0)
    delta_y: int = mc_field(FieldKind.SHORT, default=0)
    delta_z: int = mc_field(FieldKind.SHORT, default=0)
    yaw: int = mc_field(FieldKind.UBYTE, default=0)
    pitch: int = mc_field(FieldKind.UBYTE, default=0)
    on_ground: bool = mc_field(FieldKind.BOOL, default=False)


@dataclasses.dataclass
class PlayerPositionAndLook(MinecraftPacket):
    """Server-set position and look of the player, to be confirmed."""

    x: float = mc_field(FieldKind.DOUBLE, default=0.0)
    y: float = mc_field(FieldKind.DOUBLE, default=0.0)
    z: float = mc_field(FieldKind.DOUBLE, default=0.0)
    yaw: float = mc_field(FieldKind.FLOAT, default=0.0)
    pitch: float = mc_field(FieldKind.FLOAT, default=0.0)
    flags: int = mc_field(FieldKind.UBYTE, default=0)
    teleport_id: int = mc_field(FieldKind.VARINT, default=0)


@dataclasses.dataclass
class TeleportConfirm(MinecraftPacket):
    """Confirmation of a teleport."""

    teleport_id: int = mc_field(FieldKind.VARINT, default=0)


@dataclasses.dataclass
class PlayerPosition(MinecraftPacket):
    """Position the client reports for its player."""

    x: float = mc_field(FieldKind.DOUBLE, default=0.0)
    feet_y: float = mc_field(FieldKind.DOUBLE, default=0.0)
    z: float = mc_field(FieldKind.DOUBLE, default=0.0)
    on_ground: bool = mc_field(FieldKind.BOOL, default=False)


@dataclasses.dataclass
class SpawnPlayer(MinecraftPacket):
    """A player entity appearing near the client."""

    entity_id: int = mc_field(FieldKind.VARINT, default=0)
    player_uuid: uuid.UUID = mc_field(FieldKind.UUID, default=_NIL_UUID)
    player_x: float = mc_field(FieldKind.DOUBLE, default=0.0)
    player_y: float = mc_field(FieldKind.DOUBLE, default=0.0)
    player_z: float = mc_field(FieldKind.DOUBLE, default=0.0)
    player_yaw: int = mc_field(FieldKind.UBYTE, default=0)
    player_pitch: int = mc_field(FieldKind.UBYTE, default=0)


def calculate_delta(delta: int) -> float:
    """Convert a fixed-point relative move into blocks."""
    return delta / (32 * 128)


def answer_keepalive(client: Any, packet: MinecraftPacket) -> KeepAlivePacket:
    """Echo the identifier of a received keep-alive back to the server; return what was sent."""
    received = packet.deserialize_data(KeepAlivePacket)
    reply = KeepAlivePacket(packet_id=SERVERBOUND_KEEPALIVE, keep_alive_id=received.keep_alive_id)
    client.write_packet(reply)
    return reply


def _receive_tolerant(client: Any) -> MinecraftPacket | None:
    """Receive a packet, reporting and skipping malformed frames; None once the connection ends."""
    while True:
        try:
            return client.receive_packet()
        except (EOFError, ConnectionError):
            return None
        except VarIntTooBigError:
            print("Received a varint which was too big")
        except (ValueError, zlib.error):
            continue


def run_keepalive(client: Any) -> None:
    """Answer keep-alives until the connection ends."""
    while (packet := _receive_tolerant(client)) is not None:
        if packet.packet_id == CLIENTBOUND_KEEPALIVE:
            answer_keepalive(client, packet)
            print("KeepAlive sent")


def run_health(client: Any) -> None:
    """Print health updates and answer keep-alives until the connection ends."""
    while (packet := _receive_tolerant(client)) is not None:
        if packet.packet_id == UPDATE_HEALTH:
            health = packet.deserialize_data(UpdateHealth)
            print(f"Health Update: {health.health:g}H {health.food}F")
        elif packet.packet_id == CLIENTBOUND_KEEPALIVE:
            answer_keepalive(client, packet)


def _receive(client: Any) -> MinecraftPacket | None:
    try:
        return client.receive_packet()
    except EOFError:
        return None


def run_echo(client: Any, username: str) -> None:
    """Announce the platform, then repeat every other player's chat message."""
    client.write_packet(
        ServerBoundChatMessage(
            packet_id=SERVERBOUND_CHAT,
            message=f"I'm running on {platform.system().lower()}, {platform.machine()}",
        )
    )

    while (packet := _receive(client)) is not None:
        if packet.packet_id == CLIENTBOUND_CHAT:
            received = packet.deserialize_data(ClientBoundChatMessage)
            chat = json.loads(received.json_data)
            if chat.get("translate") != "chat.type.text":
                continue
            parts = chat.get("with") or []
            user = parts[0]["text"]
            text = parts[1]["text"]
            if user == username:
                continue
            print(f"<{user}> {text}")
            client.write_packet(ServerBoundChatMessage(packet_id=SERVERBOUND_CHAT, message=text))
        elif packet.packet_id == CLIENTBOUND_KEEPALIVE:
            answer_keepalive(client, packet)


def run_follow(client: Any) -> None:
    """Follow the most recently spawned player around."""
    target = SpawnPlayer()

    def move(delta_x: int, delta_y: int, delta_z: int) -> None:
        target.player_x += calculate_delta(delta_x)
        target.player_y += calculate_delta(delta_y)
        target.player_z += calculate_delta(delta_z)
        client.write_packet(
            PlayerPosition(
                packet_id=PLAYER_POSITION,
                x=target.player_x,
                feet_y=target.player_y,
                z=target.player_z,
                on_ground=True,
            )
        )

    while (packet := _receive(client)) is not None:
        if packet.packet_id == PLAYER_POSITION_AND_LOOK:
            look = packet.deserialize_data(PlayerPositionAndLook)
            client.write_packet(TeleportConfirm(packet_id=TELEPORT_CONFIRM, teleport_id=look.teleport_id))
        elif packet.packet_id == CLIENTBOUND_KEEPALIVE:
            answer_keepalive(client, packet)
        elif packet.packet_id == SPAWN_PLAYER:
            target = packet.deserialize_data(SpawnPlayer)
        elif packet.packet_id in (ENTITY_POSITION, ENTITY_POSITION_AND_ROTATION):
            cls = EntityPositionUpdate if packet.packet_id == ENTITY_POSITION else EntityMultiPositionUpdate
            update = packet.deserialize_data(cls)
            if update.entity_id != target.entity_id:
                continue
            move(update.delta_x, update.delta_y, update.delta_z)


def main(argv: list[str] | None = None) -> int:
    """Join a server with one of the bots."""
    parser = argparse.ArgumentParser(description="Join a server with a simple bot.")
    parser.add_argument("bot", choices=sorted(_DEFAULT_USERNAMES), help="behaviour of the bot")
    parser.add_argument("--host", default=DEFAULT_HOST, help="server host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="server port")
    parser.add_argument("--username", default=None, help="in-game username")
    args = parser.parse_args(argv)
    username = args.username or _DEFAULT_USERNAMES[args.bot]

    client = Client()
    try:
        client.initialize(args.host, args.port, PROTOCOL_VERSION, username)
        if args.bot == "keepalive":
            print("Joined the server as:", username)
            run_keepalive(client)
        elif args.bot == "health":
            run_health(client)
        elif args.bot == "echo":
            run_echo(client, username)
        else:
            run_follow(client)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())