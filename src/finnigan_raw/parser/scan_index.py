"""Random access into the fixed-stride scan index stream.

All entries in the stream have the same size, which is learned by decoding
the first one. Entry n then lives at

    scan_index_addr + (n - first_scan) * record_size

so any entry can be read with one seek and one decode.
"""

import logging

from finnigan_raw.models.records import Record
from finnigan_raw.models.scan_index import ScanIndexEntry
from finnigan_raw.parser.byte_cursor import ByteCursor
from finnigan_raw.parser.errors import InconsistentRecordSize, OutOfRange
from finnigan_raw.parser.field_reader import FieldSpec, decode

logger = logging.getLogger(__name__)


def _to_entry(rec: Record, scan_number: int) -> ScanIndexEntry:
    # Wide layouts carry the real 64-bit offset after the 32-bit one.
    offset = rec.get("long_offset", rec["offset"])
    return ScanIndexEntry(
        scan_number=scan_number,
        offset=offset,
        index=rec["index"],
        scan_event=rec["scan_event"],
        scan_segment=rec["scan_segment"],
        next=rec["next"],
        data_size=rec["data_size"],
        start_time=rec["start_time"],
        total_current=rec["total_current"],
        base_intensity=rec["base_intensity"],
        base_mz=rec["base_mz"],
        low_mz=rec["low_mz"],
        high_mz=rec["high_mz"],
        byte_offset=rec.offset,
    )


class DirectAccessIndex:
    """O(1) lookup of ScanIndexEntry records by scan number."""

    __slots__ = ("_cursor", "_addr", "_first", "_last", "_layout", "_record_size")

    def __init__(
        self,
        cursor: ByteCursor,
        scan_index_addr: int,
        first_scan: int,
        last_scan: int,
        layout: tuple[FieldSpec, ...],
    ) -> None:
        self._cursor = cursor
        self._addr = scan_index_addr
        self._first = first_scan
        self._last = last_scan
        self._layout = layout
        self._record_size: int | None = None

    def __len__(self) -> int:
        return self._last - self._first + 1

    @property
    def record_size(self) -> int:
        if self._record_size is None:
            self._cursor.seek(self._addr)
            rec = decode(self._cursor, self._layout)
            self._record_size = rec.size
            logger.debug("scan index at %d: record size %d", self._addr, rec.size)
        return self._record_size

    def _check(self, n: int) -> None:
        if not self._first <= n <= self._last:
            raise OutOfRange("Scan number", n, self._first, self._last)

    def offset(self, n: int) -> int:
        """Absolute address of the index record for scan *n*."""
        self._check(n)
        return self._addr + (n - self._first) * self.record_size

    def _decode_next(self, n: int) -> ScanIndexEntry:
        rec = decode(self._cursor, self._layout)
        if rec.size != self._record_size:
            raise InconsistentRecordSize(rec.offset, self._record_size, rec.size, "scan index entry")
        return _to_entry(rec, n)

    def entry(self, n: int) -> ScanIndexEntry:
        self._cursor.seek(self.offset(n))
        return self._decode_next(n)

    def entries(self, first: int, last: int) -> list[ScanIndexEntry]:
        """Decode the contiguous run of entries for scans first..last."""
        self._check(first)
        self._check(last)
        if last < first:
            return []
        self._cursor.seek(self.offset(first))
        return [self._decode_next(n) for n in range(first, last + 1)]
