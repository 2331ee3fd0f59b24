# mcproto

A small library for speaking the Minecraft Java Edition network protocol from
Python, with a status server and a few example bots. It uses only the standard
library.

## What is in it

- `mcproto.varint`: `encode_varint` and `encode_varlong` turn signed 32- and
  64-bit integers into bytes. `decode_varint` and `decode_varlong` read from a
  binary stream and return `(value, bytes_read)`. An encoding longer than 5
  (VarInt) or 10 (VarLong) bytes raises `VarIntTooBigError`, and a stream that
  ends early raises `EOFError`. Encoding a value outside the signed range
  raises `OverflowError`.
- `mcproto.fields`: declare packet fields on dataclasses with
  `mc_field(kind, *, length=None, depends_on=None, item=None, default=...,
  default_factory=...)`. The kind is a `FieldKind`, or its string value:
  - `varint`, `varlong`, `string` (VarInt length then UTF-8);
  - `bytes` (a raw run, with a length needed when reading) and `ignore`
    (zero padding of a given length);
  - `array` (a list of `item` dataclasses, with a length needed when reading);
  - the fixed-width big-endian kinds `bool`, `byte`, `ubyte`, `short`,
    `ushort`, `int`, `uint`, `long`, `ulong`, `float`, `double`, and `uuid`
    (16 bytes, as `uuid.UUID`).

  `length` is a number, a numeric string, or the name of another field that
  holds the length. `depends_on` names a field whose truth decides whether this
  one is on the wire. The helpers `wire_fields`, `check_dependency` and
  `get_length` expose these rules. Errors derive from `SerializationError`:
  `InvalidLengthError`, `MissingLengthError`, `NotSequenceError` and
  `IncorrectFieldTypeError`.
- `mcproto.serialization`: `serialize_fields(obj, buf)` writes an instance's
  declared fields in order. `deserialize_fields(cls, buf)` reads them back and
  builds a new instance. Skipped fields keep their dataclass defaults.
- `mcproto.packet`: `MinecraftPacket` is a dataclass base with keyword-only
  `packet_id` and `data`. Subclass it and declare fields.
  - `serialize_data()` appends the encoded fields to `data`.
  - `deserialize_data(cls)` decodes `data` into a new instance of `cls`.
  - `serialize_uncompressed(writer)` and `serialize_compressed(writer,
    threshold)` write a framed packet. The compressed form zlib-compresses
    bodies of at least `threshold` bytes.

  `RawPacket` is a frame as read from or written to the wire. It offers
  `from_uncompressed_reader`, `from_compressed_reader`, `write_uncompressed`,
  `write_compressed`, `payload`, `read_packet_id` and `read_all`. A length
  above `MAX_PACKET_LENGTH` (2097151) raises `PacketTooLargeError`.
- `mcproto.models`: the login packets `HandshakePacket`, `LoginStartPacket`,
  `SetCompressionPacket`, `LoginSuccessPacket`, `DisconnectPacket` and
  `KeepAlivePacket`.
- `mcproto.client`: `Client`, a TCP connection that reads and writes packets
  under separate locks for reading and writing.

## Using the client

```python
from mcproto.client import Client

client = Client()
success = client.initialize("127.0.0.1", 25565, 754, "SomeBot")
print(success.username)

while True:
    packet = client.receive_packet()
    ...
```

`initialize` connects, sends the handshake and the login start, and applies
any set-compression threshold the server sends. It returns the
`LoginSuccessPacket`. It raises:

- `LoginDisconnectError`, carrying the server's `reason`, if the server
  disconnects the client;
- `OnlineModeError` if the server asks for encryption;
- `ValueError` for a negative compression threshold.

Other ways to make a client:

- `connect("host:port")` or `connect((host, port))` opens a plain connection.
- `Client.from_listener(sock)` wraps a connection accepted from a listening
  socket.
- `Client.from_connection(sock)` wraps an already connected socket.

The client sends packets with `write_packet` and `write_raw_packet`, and
receives them with `receive_packet` and `receive_raw_packet`. It uses the
compressed framing while `compression_threshold` is above 0
(`compression_enabled`). `remote_address` gives the peer's `(host, port)`.
`close()` ends the connection, and a `Client` also works as a context manager.

## Commands

`mcproto-server` answers server-list pings:

```
mcproto-server [--host HOST] [--port 25565] [--favicon gopher.png]
```

It handles each connection in its own thread. It answers a status request
with a fixed response: version "1.17", protocol 755, a two-player sample, a
description, and the PNG favicon read from `--favicon`. It echoes the ping
payload and then closes. A client that asks to log in is sent a disconnect
with the reason `"Only ping"`. The same pieces are available as
`mcproto.server.build_status`, `handle_client` and `serve`.

`mcproto-bot` joins an offline-mode server with protocol 754:

```
mcproto-bot {echo,follow,health,keepalive} [--host 127.0.0.1] [--port 25565] [--username NAME]
```

Every bot answers keep-alives. The bots are:

- `keepalive` prints "KeepAlive sent" for each answer.
- `health` prints each health update.
- `echo` announces its platform in chat. It then repeats every chat message
  from other players.
- `follow` confirms teleports and keeps the most recently spawned player as
  its target. It reports a new position whenever that player moves.

The bot loops are also available as `mcproto.bots.run_keepalive`,
`run_health`, `run_echo` and `run_follow`.

## What it does not do

- Online-mode servers are not supported. There is no encryption or
  authentication, and a server that asks for encryption ends the login with
  `OnlineModeError`.
- There is no NBT field kind, so packets that carry NBT data cannot be
  declared with `mc_field`.
- Only the packets listed above are defined. The server answers status and
  ping only; it is not a game server.