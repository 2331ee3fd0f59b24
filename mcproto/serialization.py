"""Encoding and decoding dataclasses declared with :func:`mcproto.fields.mc_field`."""

from __future__ import annotations

import dataclasses
import struct
import uuid
from typing import Any, BinaryIO, TypeVar

from mcproto.fields import (
    FieldKind,
    IncorrectFieldTypeError,
    MissingLengthError,
    NotSequenceError,
    SerializationError,
    check_dependency,
    get_length,
    wire_fields,
)
from mcproto.varint import decode_varint, decode_varlong, encode_varint, encode_varlong

__all__ = ["serialize_fields", "deserialize_fields"]

T = TypeVar("T")

_VAR_BITS = {FieldKind.VARINT: 32, FieldKind.VARLONG: 64}


def _is_instance_of_dataclass(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _required(length: int | None, field: dataclasses.Field) -> int:
    if length is None or length < 0:
        raise MissingLengthError(f"field {field.name!r} needs a length")
    return length


def _read_exact(buf: BinaryIO, size: int) -> bytes:
    data = buf.read(size)
    if len(data) < size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


def _write_value(field: dataclasses.Field, value: Any, length: int | None, buf: BinaryIO) -> None:
    kind: FieldKind = field.metadata["mc"]
    name = field.name

    if kind in _VAR_BITS:
        bits = _VAR_BITS[kind]
        if (
            isinstance(value, bool)
            or not isinstance(value, int)
            or not -(1 << (bits - 1)) <= value < 1 << (bits - 1)
        ):
            raise IncorrectFieldTypeError(f"field {name!r} is not a {bits}-bit integer")
        buf.write(encode_varint(value) if kind is FieldKind.VARINT else encode_varlong(value))
    elif kind is FieldKind.STRING:
        if not isinstance(value, str):
            raise IncorrectFieldTypeError(f"field {name!r} is not a string")
        data = value.encode("utf-8")
        buf.write(encode_varint(len(data)))
        buf.write(data)
    elif kind is FieldKind.IGNORE:
        buf.write(bytes(_required(length, field)))
    elif kind is FieldKind.BYTES:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise IncorrectFieldTypeError(f"field {name!r} is not bytes")
        buf.write(bytes(value))
    elif kind is FieldKind.ARRAY:
        if not isinstance(value, (list, tuple)):
            raise NotSequenceError(f"field {name!r} is not a list or tuple")
        for item in value:
            if not _is_instance_of_dataclass(item):
                raise IncorrectFieldTypeError(f"items of field {name!r} must be dataclass instances")
            serialize_fields(item, buf)
    elif kind is FieldKind.UUID:
        if not isinstance(value, uuid.UUID):
            raise IncorrectFieldTypeError(f"field {name!r} is not a UUID")
        buf.write(value.bytes)
    elif kind is FieldKind.BOOL:
        if not isinstance(value, bool):
            raise IncorrectFieldTypeError(f"field {name!r} is not a bool")
        buf.write(struct.pack(">?", value))
    else:
        try:
            buf.write(struct.pack(">" + kind.struct_format, value))
        except (struct.error, OverflowError) as exc:
            raise IncorrectFieldTypeError(f"field {name!r} cannot be written as {kind.value}") from exc


def serialize_fields(obj: Any, buf: BinaryIO) -> None:
    """Write every declared field of dataclass instance ``obj`` into ``buf``."""
    for field in wire_fields(obj):
        if not check_dependency(obj, field):
            continue
        length = get_length(obj, field)
        _write_value(field, getattr(obj, field.name), length, buf)


class _Partial:
    """Attribute view of the values decoded so far, falling back to field defaults."""

    def __init__(self, cls: type, values: dict[str, Any]) -> None:
        self._fields = {f.name: f for f in dataclasses.fields(cls)}
        self._values = values

    def __getattr__(self, name: str) -> Any:
        if name in self._values:
            return self._values[name]
        field = self._fields.get(name)
        if field is not None:
            if field.default is not dataclasses.MISSING:
                return field.default
            if field.default_factory is not dataclasses.MISSING:
                return field.default_factory()
        raise AttributeError(name)


def _read_value(field: dataclasses.Field, length: int | None, buf: BinaryIO) -> Any:
    kind: FieldKind = field.metadata["mc"]

    if kind is FieldKind.VARINT:
        return decode_varint(buf)[0]
    if kind is FieldKind.VARLONG:
        return decode_varlong(buf)[0]
    if kind is FieldKind.STRING:
        size, _ = decode_varint(buf)
        if size < 0:
            raise SerializationError(f"field {field.name!r} has a negative string length")
        return _read_exact(buf, size).decode("utf-8")
    if kind is FieldKind.BYTES:
        return _read_exact(buf, _required(length, field))
    if kind is FieldKind.ARRAY:
        count = _required(length, field)
        item = field.metadata["item"]
        return [deserialize_fields(item, buf) for _ in range(count)]

    fmt = kind.struct_format
    raw = _read_exact(buf, struct.calcsize(">" + fmt))
    if kind is FieldKind.UUID:
        return uuid.UUID(bytes=raw)
    return struct.unpack(">" + fmt, raw)[0]


def deserialize_fields(cls: type[T], buf: BinaryIO) -> T:
    """Read the declared fields of dataclass ``cls`` from ``buf`` and build an instance.

    Fields that are skipped (unmet dependency, ignored padding or not declared
    for the wire) take their dataclass defaults.
    """
    if not (dataclasses.is_dataclass(cls) and isinstance(cls, type)):
        raise TypeError(f"{cls!r} is not a dataclass")
    values: dict[str, Any] = {}
    partial = _Partial(cls, values)
    for field in wire_fields(cls):
        length = get_length(partial, field)
        if not check_dependency(partial, field):
            continue
        if field.metadata["mc"] is FieldKind.IGNORE:
            _read_exact(buf, _required(length, field))
            continue
        values[field.name] = _read_value(field, length, buf)
    return cls(**values)