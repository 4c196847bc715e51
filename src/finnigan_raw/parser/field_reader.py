"""Schema-driven record decoder.

A schema is an ordered tuple of FieldSpec(name, kind). The order is the
wire order. Each kind knows its byte width (None when it depends on the
data), how to read itself from a ByteCursor, and how to pack a value back
into bytes, so one generic loop decodes every fixed structure in the file:

    SAMPLE = schema(
        ("first_scan", UINT32),
        ("low_mz", FLOAT64),
        ("tag", FixedUtf16(88)),
    )
    rec = decode(cursor, SAMPLE)
    rec["first_scan"], rec.size
"""

import struct
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from finnigan_raw.models.records import Record
from finnigan_raw.parser.byte_cursor import ByteCursor


_UINT_CODES = {1: "B", 2: "H", 4: "I", 8: "Q"}
_INT_CODES = {1: "b", 2: "h", 4: "i", 8: "q"}
_FLOAT_CODES = {4: "f", 8: "d"}


class _Scalar:
    """Fixed-width numeric kind backed by a single struct code.

    Reads go through the matching typed ByteCursor method (uint32, float64, ...).
    """

    __slots__ = ()

    prefix = ""

    @property
    def code(self) -> str:
        raise NotImplementedError

    @property
    def size(self) -> int:
        return struct.calcsize("<" + self.code)

    def read(self, cursor: ByteCursor):
        return getattr(cursor, f"{self.prefix}{8 * self.size}")()

    def pack(self, value) -> bytes:
        return struct.pack("<" + self.code, value if value is not None else 0)


@dataclass(frozen=True, slots=True)
class UInt(_Scalar):
    width: int
    prefix = "uint"

    def __post_init__(self) -> None:
        if self.width not in _UINT_CODES:
            raise ValueError(f"Unsupported unsigned integer width {self.width}")

    @property
    def code(self) -> str:
        return _UINT_CODES[self.width]


@dataclass(frozen=True, slots=True)
class Int(_Scalar):
    width: int
    prefix = "int"

    def __post_init__(self) -> None:
        if self.width not in _INT_CODES:
            raise ValueError(f"Unsupported signed integer width {self.width}")

    @property
    def code(self) -> str:
        return _INT_CODES[self.width]


@dataclass(frozen=True, slots=True)
class Float(_Scalar):
    width: int
    prefix = "float"

    def __post_init__(self) -> None:
        if self.width not in _FLOAT_CODES:
            raise ValueError(f"Unsupported float width {self.width}")

    @property
    def code(self) -> str:
        return _FLOAT_CODES[self.width]


UINT8 = UInt(1)
UINT16 = UInt(2)
UINT32 = UInt(4)
UINT64 = UInt(8)
INT8 = Int(1)
INT16 = Int(2)
INT32 = Int(4)
FLOAT32 = Float(4)
FLOAT64 = Float(8)


@dataclass(frozen=True, slots=True)
class RawBytes:
    """Opaque bytes, returned unconverted."""
    size: int

    def read(self, cursor: ByteCursor) -> bytes:
        return cursor.bytes(self.size)

    def pack(self, value) -> bytes:
        return _pad(value or b"", self.size)


@dataclass(frozen=True, slots=True)
class FixedUtf16:
    """Fixed-size UTF-16LE text block; trailing NUL padding is stripped."""
    size: int        # in bytes, not code units

    def __post_init__(self) -> None:
        if self.size % 2:
            raise ValueError(f"UTF-16 block size must be even, got {self.size}")

    def read(self, cursor: ByteCursor) -> str:
        return cursor.bytes(self.size).decode("utf-16-le", errors="replace").rstrip("\x00")

    def pack(self, value) -> bytes:
        return _pad((value or "").encode("utf-16-le"), self.size)


@dataclass(frozen=True, slots=True)
class FixedAscii:
    """Fixed-size ASCII text block; trailing NUL padding is stripped."""
    size: int

    def read(self, cursor: ByteCursor) -> str:
        return cursor.bytes(self.size).decode("ascii", errors="replace").rstrip("\x00")

    def pack(self, value) -> bytes:
        return _pad((value or "").encode("ascii"), self.size)


@dataclass(frozen=True, slots=True)
class PascalUtf16:
    """UInt32 length in UTF-16 code units, followed by the text itself."""

    @property
    def size(self) -> None:
        return None

    def read(self, cursor: ByteCursor) -> str:
        length = cursor.uint32()
        return cursor.bytes(2 * length).decode("utf-16-le", errors="replace")

    def pack(self, value) -> bytes:
        encoded = (value or "").encode("utf-16-le")
        return struct.pack("<I", len(encoded) // 2) + encoded


@dataclass(frozen=True, slots=True)
class Array:
    """`count` consecutive values of one numeric kind, read as a tuple."""
    kind: _Scalar
    count: int

    @property
    def size(self) -> int:
        return self.kind.size * self.count

    def read(self, cursor: ByteCursor) -> tuple:
        # One bounded read for the whole run, so a short array fails up front.
        return struct.unpack(f"<{self.count}{self.kind.code}", cursor.bytes(self.size))

    def pack(self, value) -> bytes:
        values = tuple(value or ())
        if len(values) != self.count:
            raise ValueError(f"Array expects {self.count} values, got {len(values)}")
        return struct.pack(f"<{self.count}{self.kind.code}", *values)


@dataclass(frozen=True, slots=True)
class Nested:
    """A sub-record decoded with its own schema."""
    schema: tuple["FieldSpec", ...]

    @property
    def size(self) -> int | None:
        return fixed_size(self.schema)

    def read(self, cursor: ByteCursor) -> Record:
        return decode(cursor, self.schema)

    def pack(self, value) -> bytes:
        return encode(self.schema, value)


class FieldSpec(NamedTuple):
    name: str
    kind: Any


def _pad(data: bytes, size: int) -> bytes:
    if len(data) > size:
        raise ValueError(f"Value of {len(data)} bytes does not fit a {size}-byte field")
    return data + b"\x00" * (size - len(data))


def schema(*fields: tuple[str, Any]) -> tuple[FieldSpec, ...]:
    """Build an ordered schema, rejecting duplicate field names."""
    specs = tuple(FieldSpec(name, kind) for name, kind in fields)
    seen: set[str] = set()
    for spec in specs:
        if spec.name in seen:
            raise ValueError(f"Duplicate field name {spec.name!r} in schema")
        seen.add(spec.name)
    return specs


def fixed_size(fields: tuple[FieldSpec, ...]) -> int | None:
    """Static byte size of a schema, or None if any field is variable-length."""
    total = 0
    for spec in fields:
        size = spec.kind.size
        if size is None:
            return None
        total += size
    return total


def decode(cursor: ByteCursor, fields: tuple[FieldSpec, ...]) -> Record:
    """Decode one record at the cursor's current position."""
    start = cursor.position
    values: dict[str, Any] = {}
    for spec in fields:
        values[spec.name] = spec.kind.read(cursor)
    return Record(fields=values, offset=start, size=cursor.position - start)


def encode(fields: tuple[FieldSpec, ...], values: Mapping[str, Any] | Record | None = None) -> bytes:
    """Pack values into the wire layout of a schema.

    Missing values are written as zero / empty; text is NUL-padded.
    """
    values = values if values is not None else {}
    return b"".join(spec.kind.pack(values.get(spec.name)) for spec in fields)
