"""Minecraft Java Edition protocol: VarInts, packet fields and framing, an offline-mode client, a status server and bots."""

__version__ = "0.1.0"

__all__ = ["bots", "client", "fields", "models", "packet", "serialization", "server", "varint"]