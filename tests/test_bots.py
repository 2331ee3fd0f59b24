import json
import socket
import struct
import uuid

import pytest

from mcproto.bots import (
    ClientBoundChatMessage,
    EntityMultiPositionUpdate,
    EntityPositionUpdate,
    PlayerPosition,
    PlayerPositionAndLook,
    ServerBoundChatMessage,
    SpawnPlayer,
    TeleportConfirm,
    UpdateHealth,
    answer_keepalive,
    calculate_delta,
    main,
    run_echo,
    run_follow,
    run_health,
    run_keepalive,
)
from mcproto.client import Client
from mcproto.models import KeepAlivePacket
from mcproto.packet import MinecraftPacket
from mcproto.varint import VarIntTooBigError, encode_varint


class FakeClient:
    def __init__(self, incoming):
        self._incoming = list(incoming)
        self.written = []

    def receive_packet(self):
        if not self._incoming:
            raise EOFError("end")
        item = self._incoming.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def write_packet(self, packet):
        packet.serialize_data()
        self.written.append(packet)


def framed(packet):
    packet.serialize_data()
    return MinecraftPacket(packet_id=packet.packet_id, data=packet.data)


def chat(user, text, translate="chat.type.text"):
    doc = {"translate": translate, "with": [{"text": user}, {"text": text}]}
    return framed(ClientBoundChatMessage(packet_id=0x0E, json_data=json.dumps(doc)))


def test_calculate_delta_scale():
    assert calculate_delta(0) == 0
    assert calculate_delta(32 * 128) == 1
    assert calculate_delta(-32 * 128) == -1
    for value in (-32768, -5, 17, 32767):
        assert calculate_delta(value) * 4096 == value


def test_answer_keepalive_echoes_id():
    client = FakeClient([])
    incoming = framed(KeepAlivePacket(packet_id=0x1F, keep_alive_id=-123456789))
    reply = answer_keepalive(client, incoming)
    assert client.written == [reply]
    assert reply.packet_id == 0x10
    assert reply.keep_alive_id == -123456789
    assert reply.data == struct.pack(">q", -123456789)


def test_run_keepalive_over_socket(capsys):
    ours, theirs = socket.socketpair()
    try:
        keep_id = 0x0102030405060708
        frame = framed(KeepAlivePacket(packet_id=0x1F, keep_alive_id=keep_id))
        body = encode_varint(0x1F) + frame.data
        theirs.sendall(encode_varint(len(body)) + body)
        theirs.shutdown(socket.SHUT_WR)

        client = Client(ours)
        run_keepalive(client)
        client.close()

        reader = theirs.makefile("rb")
        assert reader.read(10) == b"\x09\x10" + struct.pack(">q", keep_id)
        reader.close()
    finally:
        theirs.close()
    assert "KeepAlive sent" in capsys.readouterr().out


def test_run_keepalive_skips_oversized_varint(capsys):
    client = FakeClient(
        [
            VarIntTooBigError(),
            framed(KeepAlivePacket(packet_id=0x1F, keep_alive_id=9)),
            framed(MinecraftPacket(packet_id=0x20)),
        ]
    )
    run_keepalive(client)
    assert [p.keep_alive_id for p in client.written] == [9]
    assert "Received a varint which was too big" in capsys.readouterr().out


def test_run_health_prints_update(capsys):
    client = FakeClient(
        [
            framed(UpdateHealth(packet_id=0x49, health=20.0, food=18, food_saturation=5.0)),
            framed(KeepAlivePacket(packet_id=0x1F, keep_alive_id=3)),
        ]
    )
    run_health(client)
    assert "Health Update: 20H 18F" in capsys.readouterr().out
    assert len(client.written) == 1
    assert client.written[0].keep_alive_id == 3


def test_run_echo_repeats_others(capsys):
    client = FakeClient(
        [
            chat("alice", "hello"),
            chat("Bot", "ignored"),
            chat("carol", "joined", translate="multiplayer.player.joined"),
        ]
    )
    run_echo(client, "Bot")
    assert isinstance(client.written[0], ServerBoundChatMessage)
    assert client.written[0].message.startswith("I'm running on")
    assert [p.message for p in client.written[1:]] == ["hello"]
    assert client.written[1].packet_id == 0x03
    assert "<alice> hello" in capsys.readouterr().out


def test_run_follow_confirms_teleport():
    client = FakeClient([framed(PlayerPositionAndLook(packet_id=0x34, teleport_id=77))])
    run_follow(client)
    assert len(client.written) == 1
    confirm = client.written[0]
    assert isinstance(confirm, TeleportConfirm)
    assert confirm.packet_id == 0x00
    assert confirm.teleport_id == 77


def test_run_follow_tracks_spawned_player():
    spawn = SpawnPlayer(
        packet_id=0x04,
        entity_id=7,
        player_uuid=uuid.UUID(int=5),
        player_x=1.0,
        player_y=2.0,
        player_z=3.0,
    )
    client = FakeClient(
        [
            framed(spawn),
            framed(EntityPositionUpdate(packet_id=0x27, entity_id=8, delta_x=4096)),
            framed(EntityPositionUpdate(packet_id=0x27, entity_id=7, delta_x=4096, delta_z=-4096)),
            framed(EntityMultiPositionUpdate(packet_id=0x28, entity_id=7, delta_y=4096, yaw=10)),
        ]
    )
    run_follow(client)
    assert len(client.written) == 2
    first, second = client.written
    assert isinstance(first, PlayerPosition)
    assert first.packet_id == 0x12
    assert (first.x, first.feet_y, first.z) == (
        1.0 + calculate_delta(4096),
        2.0,
        3.0 + calculate_delta(-4096),
    )
    assert first.on_ground is True
    assert (second.x, second.feet_y, second.z) == (first.x, 2.0 + calculate_delta(4096), first.z)


def test_client_bound_chat_round_trip():
    message = ClientBoundChatMessage(
        packet_id=0x0E, json_data='{"text":"hi"}', position=1, sender=uuid.UUID(int=99)
    )
    decoded = framed(message).deserialize_data(ClientBoundChatMessage)
    assert decoded.json_data == '{"text":"hi"}'
    assert decoded.position == 1
    assert decoded.sender == uuid.UUID(int=99)


def test_main_rejects_unknown_bot():
    with pytest.raises(SystemExit) as excinfo:
        main(["dance"])
    assert excinfo.value.code == 2