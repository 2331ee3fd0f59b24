import io
import struct
import uuid
from dataclasses import dataclass, field

import pytest

from mcproto.fields import (
    FieldKind,
    IncorrectFieldTypeError,
    InvalidLengthError,
    MissingLengthError,
    NotSequenceError,
    mc_field,
)
from mcproto.serialization import deserialize_fields, serialize_fields
from mcproto.varint import decode_varint, decode_varlong


def _serialize(obj):
    buf = io.BytesIO()
    serialize_fields(obj, buf)
    return buf.getvalue()


@dataclass
class Child:
    var_int: int = mc_field(FieldKind.VARINT, default=0)
    text: str = mc_field(FieldKind.STRING, default="")


def test_basic_serialization():
    @dataclass
    class Basic:
        var_int: int = mc_field(FieldKind.VARINT, default=0)

    assert _serialize(Basic(var_int=0x7B)) == b"\x7b"


def test_full_serialization():
    @dataclass
    class Full:
        var_int: int = mc_field(FieldKind.VARINT)
        var_long: int = mc_field(FieldKind.VARLONG)
        var_string: str = mc_field(FieldKind.STRING)
        inherit_value: int = mc_field(FieldKind.LONG)
        ignore: object = mc_field(FieldKind.IGNORE, length="5")
        byte: int = mc_field(FieldKind.UBYTE, default=0)
        data: bytes = mc_field(FieldKind.BYTES, default=b"")

    obj = Full(
        var_int=10,
        var_long=-2147483648,
        var_string="test",
        inherit_value=-32392839992839239,
        byte=0xFA,
        data=b"\x01\x02\x03\x04",
    )
    buf = io.BytesIO(_serialize(obj))

    assert decode_varint(buf)[0] == 10
    assert decode_varlong(buf)[0] == -2147483648
    size, _ = decode_varint(buf)
    assert size == 4
    assert buf.read(size) == b"test"
    assert struct.unpack(">q", buf.read(8))[0] == -32392839992839239
    assert buf.read(5) == bytes(5)
    assert buf.read(1) == b"\xfa"
    assert buf.read(4) == b"\x01\x02\x03\x04"
    assert buf.read() == b""


def test_unknown_inherit():
    @dataclass
    class UnknownInherit:
        value: str = mc_field(FieldKind.INT, default="")

    with pytest.raises(IncorrectFieldTypeError):
        _serialize(UnknownInherit())


def test_bad_len_field():
    @dataclass
    class BadLen:
        filler: object = mc_field(FieldKind.IGNORE, length="badvalue", default=123)

    with pytest.raises(InvalidLengthError):
        _serialize(BadLen())


@dataclass
class WithDependency:
    has_varint: bool = mc_field(FieldKind.BOOL, default=False)
    var_int: int = mc_field(FieldKind.VARINT, depends_on="has_varint", default=0)


def test_dependency_met():
    assert _serialize(WithDependency(has_varint=True, var_int=5)) == b"\x01\x05"


def test_dependency_not_met():
    assert _serialize(WithDependency(has_varint=False)) == b"\x00"


def test_dependency_deserialization():
    assert deserialize_fields(WithDependency, io.BytesIO(b"\x01\x07")) == WithDependency(True, 7)
    assert deserialize_fields(WithDependency, io.BytesIO(b"\x00")) == WithDependency(False, 0)


def test_struct_array_serialization():
    @dataclass
    class Parent:
        items: list = mc_field(FieldKind.ARRAY, item=Child, default_factory=list)

    data = _serialize(Parent(items=[Child(1, "Hello"), Child(5, "World")]))
    assert len(data) == 14
    assert data == b"\x01\x05Hello\x05\x05World"


def test_array_deserialization():
    @dataclass
    class Nested:
        nested: list = mc_field(FieldKind.ARRAY, item=Child, length="2", default_factory=list)

    result = deserialize_fields(Nested, io.BytesIO(bytes([0x01, 0x02, 0x59, 0x68, 0x02, 0x00])))
    assert result.nested == [Child(1, "Yh"), Child(2, "")]


def test_deserialization():
    @dataclass
    class Everything:
        var_int: int = mc_field(FieldKind.VARINT, default=0)
        var_long: int = mc_field(FieldKind.VARLONG, default=0)
        string: str = mc_field(FieldKind.STRING, default="")
        inherit: int = mc_field(FieldKind.UINT, default=0)
        ignore: object = mc_field(FieldKind.IGNORE, length="6")
        data: bytes = mc_field(FieldKind.BYTES, length="3", default=b"")

    buf = io.BytesIO(
        bytes(
            [
                0x80, 0x01,
                0x80, 0x80, 0x80, 0x80, 0x80, 0x80, 0x80, 0x80, 0x80, 0x01,
                0x04, 0x59, 0x59, 0x59, 0x59,
                0xFF, 0x00, 0xFF, 0x00,
                0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
                0x01, 0x02, 0x03,
            ]
        )
    )
    result = deserialize_fields(Everything, buf)
    assert result.var_int == 128
    assert result.var_long == -9223372036854775808
    assert result.string == "YYYY"
    assert result.inherit == 4278255360
    assert result.ignore is None
    assert result.data == b"\x01\x02\x03"
    assert buf.read() == b""


def test_invalid_length_deserialization():
    @dataclass
    class WithLength:
        data: bytes = mc_field(FieldKind.BYTES, length="invalid", default=b"")

    with pytest.raises(InvalidLengthError):
        deserialize_fields(WithLength, io.BytesIO(b""))


def test_length_from_previous_field_round_trip():
    @dataclass
    class Counted:
        count: int = mc_field(FieldKind.VARINT, default=0)
        items: list = mc_field(FieldKind.ARRAY, item=Child, length="count", default_factory=list)

    obj = Counted(count=2, items=[Child(3, "a"), Child(-1, "bé")])
    assert deserialize_fields(Counted, io.BytesIO(_serialize(obj))) == obj


def test_fixed_width_round_trip():
    @dataclass
    class Fixed:
        flag: bool = mc_field(FieldKind.BOOL, default=False)
        small: int = mc_field(FieldKind.BYTE, default=0)
        short: int = mc_field(FieldKind.SHORT, default=0)
        ushort: int = mc_field(FieldKind.USHORT, default=0)
        integer: int = mc_field(FieldKind.INT, default=0)
        ulong: int = mc_field(FieldKind.ULONG, default=0)
        single: float = mc_field(FieldKind.FLOAT, default=0.0)
        double: float = mc_field(FieldKind.DOUBLE, default=0.0)
        ident: uuid.UUID = mc_field(FieldKind.UUID, default_factory=lambda: uuid.UUID(int=0))
        untracked: str = field(default="kept")

    obj = Fixed(True, -5, -300, 65535, -70000, 2**64 - 1, 0.5, 1.25, uuid.UUID(int=42))
    data = _serialize(obj)
    assert len(data) == 1 + 1 + 2 + 2 + 4 + 8 + 4 + 8 + 16
    assert data[:2] == b"\x01\xfb"
    assert deserialize_fields(Fixed, io.BytesIO(data)) == obj


def test_ignore_without_length():
    @dataclass
    class Padding:
        pad: object = mc_field(FieldKind.IGNORE)

    with pytest.raises(MissingLengthError):
        _serialize(Padding())


def test_bytes_without_length_on_read():
    @dataclass
    class Blob:
        data: bytes = mc_field(FieldKind.BYTES, default=b"")

    with pytest.raises(MissingLengthError):
        deserialize_fields(Blob, io.BytesIO(b"\x01\x02"))


def test_array_needs_sequence():
    @dataclass
    class Parent:
        items: object = mc_field(FieldKind.ARRAY, item=Child, default=5)

    with pytest.raises(NotSequenceError):
        _serialize(Parent())


def test_varint_out_of_range():
    @dataclass
    class Big:
        value: int = mc_field(FieldKind.VARINT, default=2**31)

    with pytest.raises(IncorrectFieldTypeError):
        _serialize(Big())


def test_truncated_string():
    with pytest.raises(EOFError):
        deserialize_fields(Child, io.BytesIO(b"\x01\x05Hel"))