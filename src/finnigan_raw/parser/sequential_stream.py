"""Readers for count-prefixed streams of variable-length records.

Streams such as the scan-event trailer, the scan-parameter records and the
error log start with a UInt32 record count, followed by records whose sizes
are only known once decoded. Record k therefore cannot be located without
decoding records 1..k-1; the readers here walk forward from the count field
and stop as soon as the requested record is produced.

Per-scan streams (trailer, scan parameters) are known to sometimes carry a
zero count. For those the reader is given a fallback count (the number of
scans) and reports a MalformedCount anomaly instead of failing.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from finnigan_raw.parser.byte_cursor import ByteCursor
from finnigan_raw.parser.errors import MalformedCount, OutOfRange

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decoder = Callable[[ByteCursor], T]


@dataclass(slots=True)
class StreamRead(Generic[T]):
    """Records decoded from the start of a stream, plus any repaired anomalies."""
    records: list[T]
    declared_count: int      # count field as stored
    count: int               # count actually used (differs after a fallback)
    end_offset: int          # first byte after the last decoded record
    anomalies: list[MalformedCount] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[T]:
        return iter(self.records)

    def __getitem__(self, index: int) -> T:
        return self.records[index]

    @property
    def recovered(self) -> bool:
        return bool(self.anomalies)


class SequentialStream(Generic[T]):
    """A count-prefixed record stream at a fixed address."""

    def __init__(
        self,
        cursor: ByteCursor,
        addr: int,
        decode_one: Decoder,
        *,
        name: str,
        fallback_count: int | None = None,
    ) -> None:
        self._cursor = cursor
        self._addr = addr
        self._decode_one = decode_one
        self.name = name
        self._fallback_count = fallback_count

    def _read_count(self) -> tuple[int, int, list[MalformedCount]]:
        self._cursor.seek(self._addr)
        declared = self._cursor.uint32()
        if declared == 0 and self._fallback_count:
            anomaly = MalformedCount(self.name, self._addr, self._fallback_count)
            logger.warning(anomaly.message)
            return declared, self._fallback_count, [anomaly]
        return declared, declared, []

    def scan_upto(self, k: int) -> StreamRead[T]:
        """Decode records 1..k and stop; never reads past the k-th record."""
        declared, count, anomalies = self._read_count()
        if not 0 <= k <= count:
            raise OutOfRange(f"{self.name} record count", k, 0, count)
        records = [self._decode_one(self._cursor) for _ in range(k)]
        return StreamRead(
            records=records,
            declared_count=declared,
            count=count,
            end_offset=self._cursor.position,
            anomalies=anomalies,
        )

    def read_all(self) -> StreamRead[T]:
        declared, count, anomalies = self._read_count()
        records = [self._decode_one(self._cursor) for _ in range(count)]
        return StreamRead(
            records=records,
            declared_count=declared,
            count=count,
            end_offset=self._cursor.position,
            anomalies=anomalies,
        )

    def iter_records(self) -> Iterator[T]:
        """Yield records lazily.

        The cursor is repositioned before every record, so other reads may
        run between iterations. Anomalies are logged only; use scan_upto()
        or read_all() to receive them.
        """
        _declared, count, _anomalies = self._read_count()
        pos = self._cursor.position
        for _ in range(count):
            self._cursor.seek(pos)
            record = self._decode_one(self._cursor)
            pos = self._cursor.position
            yield record


def read_counted(cursor: ByteCursor, decode_one: Decoder) -> list[T]:
    """Read a UInt32 count and that many records at the cursor, in full."""
    count = cursor.uint32()
    return [decode_one(cursor) for _ in range(count)]


def read_hierarchy(cursor: ByteCursor, decode_one: Decoder) -> list[list[T]]:
    """Read a two-level stream: segment count, then a counted list per segment."""
    nsegs = cursor.uint32()
    return [read_counted(cursor, decode_one) for _ in range(nsegs)]
