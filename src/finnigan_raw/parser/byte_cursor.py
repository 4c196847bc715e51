"""Low-level byte cursor with typed little-endian reads over a seekable stream."""

import io
import struct
from typing import BinaryIO

from finnigan_raw.parser.errors import TruncatedRead


class ByteCursor:
    """Wraps a seekable binary stream with typed reads and a moving position.

    The source length is measured once at construction, so every read can
    check its bounds before touching the stream: a short read raises
    TruncatedRead and consumes nothing.
    """

    __slots__ = ("_stream", "_pos", "_end")

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._end = stream.seek(0, io.SEEK_END)
        self._pos = 0
        stream.seek(0)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ByteCursor":
        return cls(io.BytesIO(data))

    @property
    def position(self) -> int:
        return self._pos

    @property
    def size(self) -> int:
        return self._end

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def _read(self, size: int) -> bytes:
        if size < 0:
            raise ValueError(f"Negative read size {size} at offset {self._pos}")
        if self._pos + size > self._end:
            raise TruncatedRead(self._pos, size, self._end - self._pos)
        chunk = self._stream.read(size)
        if len(chunk) != size:
            # The stream shrank underneath us.
            self._stream.seek(self._pos)
            raise TruncatedRead(self._pos, size, len(chunk))
        self._pos += size
        return chunk

    def _unpack(self, fmt: str, size: int):
        return struct.unpack(fmt, self._read(size))[0]

    def uint8(self) -> int:
        return self._read(1)[0]

    def uint16(self) -> int:
        return self._unpack("<H", 2)

    def uint32(self) -> int:
        return self._unpack("<I", 4)

    def uint64(self) -> int:
        return self._unpack("<Q", 8)

    def int8(self) -> int:
        return self._unpack("<b", 1)

    def int16(self) -> int:
        return self._unpack("<h", 2)

    def int32(self) -> int:
        return self._unpack("<i", 4)

    def int64(self) -> int:
        return self._unpack("<q", 8)

    def float32(self) -> float:
        return self._unpack("<f", 4)

    def float64(self) -> float:
        return self._unpack("<d", 8)

    def bytes(self, size: int) -> bytes:
        return self._read(size)

    def seek(self, offset: int) -> None:
        """Seek to an absolute position within the source."""
        if offset < 0 or offset > self._end:
            raise ValueError(f"Seek to {offset} is outside bounds [0, {self._end}]")
        self._stream.seek(offset)
        self._pos = offset
