"""Declaring how dataclass fields are laid out on the wire."""

from __future__ import annotations

import dataclasses
import enum
import re
from typing import Any

__all__ = [
    "FieldKind",
    "SerializationError",
    "InvalidLengthError",
    "MissingLengthError",
    "NotSequenceError",
    "IncorrectFieldTypeError",
    "mc_field",
    "check_dependency",
    "get_length",
    "wire_fields",
]

_INTEGER = re.compile(r"[+-]?[0-9]+")


class SerializationError(ValueError):
    """Base class for errors raised while encoding or decoding packet fields."""


class InvalidLengthError(SerializationError):
    """A field's length is neither an integer nor the name of an integer field."""


class MissingLengthError(SerializationError):
    """A field that needs a length has none."""


class NotSequenceError(SerializationError):
    """An array field does not hold a list or tuple."""


class IncorrectFieldTypeError(SerializationError):
    """A field's value does not match its declared wire kind."""


class FieldKind(enum.Enum):
    """Wire representation of a field."""

    VARINT = "varint"
    VARLONG = "varlong"
    STRING = "string"
    IGNORE = "ignore"
    BYTES = "bytes"
    ARRAY = "array"
    BOOL = "bool"
    BYTE = "byte"
    UBYTE = "ubyte"
    SHORT = "short"
    USHORT = "ushort"
    INT = "int"
    UINT = "uint"
    LONG = "long"
    ULONG = "ulong"
    FLOAT = "float"
    DOUBLE = "double"
    UUID = "uuid"

    @property
    def struct_format(self) -> str | None:
        """The big-endian ``struct`` code of a fixed-width kind, else None."""
        return _FIXED_FORMATS.get(self)


_FIXED_FORMATS = {
    FieldKind.BOOL: "?",
    FieldKind.BYTE: "b",
    FieldKind.UBYTE: "B",
    FieldKind.SHORT: "h",
    FieldKind.USHORT: "H",
    FieldKind.INT: "i",
    FieldKind.UINT: "I",
    FieldKind.LONG: "q",
    FieldKind.ULONG: "Q",
    FieldKind.FLOAT: "f",
    FieldKind.DOUBLE: "d",
    FieldKind.UUID: "16s",
}


def mc_field(
    kind: FieldKind | str,
    *,
    length: int | str | None = None,
    depends_on: str | None = None,
    item: type | None = None,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """Declare a dataclass field that takes part in packet serialization.

    ``length`` is either a number or the name of another field holding it;
    ``depends_on`` names a field whose truth decides whether this one is
    present; ``item`` is the dataclass of each element of an array field.
    """
    kind = FieldKind(kind)
    if kind is FieldKind.ARRAY and item is None:
        raise TypeError("an array field needs an item class")
    if item is not None and kind is not FieldKind.ARRAY:
        raise TypeError("only array fields take an item class")
    if length is not None and (isinstance(length, bool) or not isinstance(length, (int, str))):
        raise TypeError("length must be an int, a field name or None")
    if kind is FieldKind.IGNORE and default is dataclasses.MISSING and default_factory is dataclasses.MISSING:
        default = None
    metadata = {"mc": kind, "len": length, "depends_on": depends_on, "item": item}
    return dataclasses.field(default=default, default_factory=default_factory, metadata=metadata)


def wire_fields(obj_or_cls: Any) -> tuple[dataclasses.Field, ...]:
    """Return the fields of a dataclass that were declared with :func:`mc_field`, in order."""
    return tuple(f for f in dataclasses.fields(obj_or_cls) if "mc" in f.metadata)


def check_dependency(obj: Any, field: dataclasses.Field) -> bool:
    """Tell whether ``field`` is present: true without a dependency, else the dependency's truth."""
    name = field.metadata.get("depends_on")
    if not name:
        return True
    return bool(getattr(obj, name))


def get_length(obj: Any, field: dataclasses.Field) -> int | None:
    """Resolve the length of ``field`` on ``obj``; None when it declares none."""
    length = field.metadata.get("len")
    if length is None:
        return None
    if isinstance(length, int):
        return length
    if _INTEGER.fullmatch(length):
        return int(length)
    value = getattr(obj, length, None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise InvalidLengthError(f"invalid length {length!r} on field {field.name!r}")