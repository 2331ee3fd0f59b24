"""A status-only server that answers server-list pings."""

from __future__ import annotations

import argparse
import base64
import dataclasses
import json
import socket
import threading
from pathlib import Path

from mcproto.client import Client
from mcproto.fields import FieldKind, mc_field
from mcproto.packet import MinecraftPacket

__all__ = [
    "Version",
    "PlayerSample",
    "Players",
    "Description",
    "StatusResponse",
    "Handshake",
    "Disconnect",
    "Ping",
    "build_status",
    "handle_client",
    "serve",
    "main",
]

DEFAULT_FAVICON = "gopher.png"
DEFAULT_PORT = 25565


@dataclasses.dataclass
class Version:
    name: str
    protocol: int


@dataclasses.dataclass
class PlayerSample:
    name: str
    id: str


@dataclasses.dataclass
class Players:
    max: int
    online: int
    sample: list[PlayerSample] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class Description:
    text: str


@dataclasses.dataclass
class StatusResponse:
    """The JSON document a server returns to a status request."""

    version: Version
    players: Players
    description: Description
    favicon: str

    def to_json(self) -> str:
        """Encode the response as compact JSON."""
        return json.dumps(dataclasses.asdict(self), separators=(",", ":"), ensure_ascii=False)


@dataclasses.dataclass
class Handshake(MinecraftPacket):
    protocol_version: int = mc_field(FieldKind.VARINT, default=0)
    server_address: str = mc_field(FieldKind.STRING, default="")
    server_port: int = mc_field(FieldKind.USHORT, default=0)
    next_state: int = mc_field(FieldKind.VARINT, default=0)


@dataclasses.dataclass
class Disconnect(MinecraftPacket):
    reason: str = mc_field(FieldKind.STRING, default="")


@dataclasses.dataclass
class Ping(MinecraftPacket):
    payload: int = mc_field(FieldKind.LONG, default=0)


def build_status(favicon: bytes) -> StatusResponse:
    """Build the status response advertised by this server, with a PNG favicon."""
    return StatusResponse(
        version=Version(name="1.17", protocol=755),
        players=Players(
            max=-1,
            online=2,
            sample=[
                PlayerSample(name="StatusBot1", id="4566e69f-c907-48ee-8d71-d7ba5aa00d20"),
                PlayerSample(name="AwesomePlayer2", id="4566e69f-c907-48ee-8d71-d7ba5aa00d30"),
            ],
        ),
        description=Description(text="Awesome minecraft server! Made with mcproto!"),
        favicon="data:image/png;base64," + base64.b64encode(favicon).decode("ascii"),
    )


def handle_client(client: Client, favicon_path: str | Path = DEFAULT_FAVICON) -> None:
    """Serve one connection: answer status requests and a ping, refuse logins."""
    try:
        handshake = client.receive_packet().deserialize_data(Handshake)
        if handshake.next_state != 0x01:
            client.write_packet(Disconnect(packet_id=0x00, reason='"Only ping"'))
            return

        print(f"New ping from {client.remote_address[0]}!")

        while True:
            try:
                packet = client.receive_packet()
            except EOFError:
                break

            if packet.packet_id == 0x00:
                favicon = Path(favicon_path).read_bytes()
                status = build_status(favicon)
                client.write_packet(Disconnect(packet_id=0x00, reason=status.to_json()))
            elif packet.packet_id == 0x01:
                ping = packet.deserialize_data(Ping)
                ping.packet_id = 0x01
                client.write_packet(ping)
                return
    finally:
        try:
            client.close()
        except ConnectionError:
            pass


def serve(host: str = "", port: int = DEFAULT_PORT, favicon_path: str | Path = DEFAULT_FAVICON) -> None:
    """Listen on ``host``:``port`` and handle every connection in its own thread."""
    with socket.create_server((host, port)) as listener:
        while True:
            try:
                client = Client.from_listener(listener)
            except OSError as exc:
                print(exc)
                continue
            threading.Thread(target=handle_client, args=(client, favicon_path), daemon=True).start()


def main(argv: list[str] | None = None) -> int:
    """Run the status server from the command line."""
    parser = argparse.ArgumentParser(description="Answer server-list pings.")
    parser.add_argument("--host", default="", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument("--favicon", default=DEFAULT_FAVICON, help="PNG file sent as favicon")
    args = parser.parse_args(argv)
    try:
        serve(args.host, args.port, args.favicon)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())