"""RawFile: one open raw file and the decoding operations on it.

Owns the file handle and a single ByteCursor. Every operation seeks the
cursor explicitly before decoding, so calls can be made in any order, but
they share one position and must not run concurrently.

Typical use:

    with RawFile.open(path) as raw:
        version = raw.read_file_header().version
        raw.read_address_directory(version, run_header_addr)
        events = raw.scan_events_upto(10)
        header, profile, peaks = raw.decode_scan(10, events[-1])
        profile.bins((400.0, 410.0), fill_gaps=True)

The run-header address lives in the RawFileInfo block, which this package
does not decode; callers supply it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import BinaryIO

from finnigan_raw.engine.reader_config import ReaderConfig
from finnigan_raw.models.converter import select_converter
from finnigan_raw.models.directory import AddressDirectory, FileHeader
from finnigan_raw.models.scan_data import Peak, ScanData
from finnigan_raw.models.scan_event import (
    ErrorLogEntry,
    GenericDataHeader,
    ScanEvent,
    ScanEventTemplate,
    ScanParameters,
)
from finnigan_raw.models.scan_index import ScanIndexEntry
from finnigan_raw.parser.address_directory import decode_address_directory, decode_file_header
from finnigan_raw.parser.byte_cursor import ByteCursor
from finnigan_raw.parser.errors import OutOfRange
from finnigan_raw.parser.scan_event_parser import (
    decode_error_log_entry,
    decode_generic_header,
    decode_scan_event,
    decode_scan_event_template,
    decode_scan_parameters,
    generic_record_schema,
)
from finnigan_raw.parser.scan_index import DirectAccessIndex
from finnigan_raw.parser.scan_payload import decode_packet
from finnigan_raw.parser.schemas import SCAN_INDEX_LAYOUTS, layout_for
from finnigan_raw.parser.sequential_stream import (
    SequentialStream,
    StreamRead,
    read_counted,
    read_hierarchy,
)

logger = logging.getLogger(__name__)


class RawFile:
    """Random and sequential access to the scans of one raw file."""

    def __init__(
        self,
        stream: BinaryIO,
        config: ReaderConfig | None = None,
        *,
        name: str = "<stream>",
        owns_stream: bool = False,
    ) -> None:
        self._stream = stream
        self._owns_stream = owns_stream
        self._config = config or ReaderConfig()
        self._cursor = ByteCursor(stream)
        self.name = name
        self._version: int | None = None
        self._directory: AddressDirectory | None = None
        self._index: DirectAccessIndex | None = None

    @classmethod
    def open(cls, path: str | Path, config: ReaderConfig | None = None) -> RawFile:
        path = Path(path)
        handle = path.open("rb")
        try:
            raw = cls(handle, config, name=str(path), owns_stream=True)
        except BaseException:
            handle.close()
            raise
        logger.debug("opened %s (%d bytes)", path, raw._cursor.size)
        return raw

    def close(self) -> None:
        if self._owns_stream and not self._stream.closed:
            self._stream.close()
            logger.debug("closed %s", self.name)

    def __enter__(self) -> RawFile:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed

    @property
    def config(self) -> ReaderConfig:
        return self._config

    @property
    def directory(self) -> AddressDirectory:
        if self._directory is None:
            raise ValueError("Address directory not read; call read_address_directory() first")
        return self._directory

    @property
    def format_version(self) -> int:
        if self._version is None:
            raise ValueError("Format version unknown; call read_address_directory() first")
        return self._version

    # ------------------------------------------------------------------
    # Fixed structures
    # ------------------------------------------------------------------

    def read_file_header(self) -> FileHeader:
        self._cursor.seek(0)
        return decode_file_header(self._cursor)

    def read_address_directory(self, format_version: int, run_header_addr: int) -> AddressDirectory:
        """Decode the run header and set up the scan index for this file."""
        self._cursor.seek(run_header_addr)
        directory = decode_address_directory(self._cursor, format_version)
        self._version = format_version
        self._directory = directory
        self._index = DirectAccessIndex(
            self._cursor,
            directory.scan_index_addr,
            directory.first_scan,
            directory.last_scan,
            layout_for(SCAN_INDEX_LAYOUTS, format_version, "scan index"),
        )
        return directory

    def _scan_index(self) -> DirectAccessIndex:
        if self._index is None:
            raise ValueError("Address directory not read; call read_address_directory() first")
        return self._index

    def index_entry(self, n: int) -> ScanIndexEntry:
        return self._scan_index().entry(n)

    def index_entries(self, first: int, last: int) -> list[ScanIndexEntry]:
        return self._scan_index().entries(first, last)

    # ------------------------------------------------------------------
    # Sequential streams
    # ------------------------------------------------------------------

    def _decode_event(self, cursor: ByteCursor) -> ScanEvent:
        return decode_scan_event(cursor, self.format_version, self._config.activation_override)

    def _trailer(self) -> SequentialStream[ScanEvent]:
        directory = self.directory
        return SequentialStream(
            self._cursor,
            directory.trailer_addr,
            self._decode_event,
            name="scan event trailer",
            fallback_count=directory.scan_count,
        )

    def scan_events_upto(self, k: int) -> StreamRead[ScanEvent]:
        """Decode the first *k* scan events (scans first_scan .. first_scan + k - 1)."""
        return self._trailer().scan_upto(k)

    def iter_scan_events(self) -> Iterator[ScanEvent]:
        return self._trailer().iter_records()

    def scan_event(self, n: int) -> ScanEvent:
        """Decode the scan event for scan *n*; costs a pass over events 1..n."""
        directory = self.directory
        if not directory.first_scan <= n <= directory.last_scan:
            raise OutOfRange("Scan number", n, directory.first_scan, directory.last_scan)
        return self.scan_events_upto(n - directory.first_scan + 1).records[-1]

    def error_log(self) -> StreamRead[ErrorLogEntry]:
        stream = SequentialStream(
            self._cursor,
            self.directory.error_log_addr,
            decode_error_log_entry,
            name="error log",
        )
        return stream.read_all()

    def scan_event_hierarchy(self) -> list[list[ScanEventTemplate]]:
        """Decode the scan-event templates, segment by segment.

        The hierarchy follows the error log and has no address of its own,
        so the error log is decoded first.
        """
        self.error_log()
        return self._read_hierarchy()

    def _read_hierarchy(self) -> list[list[ScanEventTemplate]]:
        version = self.format_version
        return read_hierarchy(self._cursor, lambda c: decode_scan_event_template(c, version))

    def scan_parameters_header(self) -> GenericDataHeader:
        """Decode the layout of the scan-parameters records.

        It sits right after the error log and the template hierarchy, both
        of which must be consumed in full to reach it.
        """
        self._cursor.seek(self.directory.error_log_addr)
        read_counted(self._cursor, decode_error_log_entry)
        self._read_hierarchy()
        return decode_generic_header(self._cursor)

    def scan_parameters_upto(
        self,
        k: int,
        header: GenericDataHeader | None = None,
    ) -> StreamRead[ScanParameters]:
        header = header or self.scan_parameters_header()
        record_schema = generic_record_schema(header)
        directory = self.directory
        stream = SequentialStream(
            self._cursor,
            directory.params_addr,
            lambda c: decode_scan_parameters(c, record_schema),
            name="scan parameters",
            fallback_count=directory.scan_count,
        )
        return stream.scan_upto(k)

    # ------------------------------------------------------------------
    # Scan payloads
    # ------------------------------------------------------------------

    def decode_scan(self, n: int, event: ScanEvent | None = None) -> ScanData:
        """Decode the data packet of scan *n*.

        *event* supplies the calibration; without it the trailer is scanned
        up to scan *n* to find it.
        """
        entry = self.index_entry(n)
        if event is None:
            event = self.scan_event(n)
        converter = select_converter(event.coefficients)
        self._cursor.seek(self.directory.scan_data_addr + entry.offset)
        return decode_packet(self._cursor, converter)

    def _event_for(self, n: int, events: Sequence[ScanEvent]) -> ScanEvent:
        first = self.directory.first_scan
        last = first + len(events) - 1
        if not first <= n <= last:
            raise OutOfRange("Scan number", n, first, last)
        return events[n - first]

    def parent_scan(self, n: int, events: Sequence[ScanEvent]) -> int | None:
        """Nearest earlier scan with a lower MS power than scan *n*.

        *events* holds the scan events from first_scan on, at least up to n.
        """
        ms_power = self._event_for(n, events).ms_power
        first = self.directory.first_scan
        for m in range(n - 1, first - 1, -1):
            if events[m - first].ms_power < ms_power:
                return m
        return None

    def precursor_peak(
        self,
        n: int,
        events: Sequence[ScanEvent],
        tolerance: float | None = None,
    ) -> Peak | None:
        """Find the precursor ion of dependent scan *n* in its parent scan.

        Searches the parent's profile (as a peak list) if it has one, otherwise
        its centroids. Returns None for independent scans, scans without a
        parent, or when nothing lies within *tolerance* of the precursor m/z.
        """
        event = self._event_for(n, events)
        if not event.dependent or event.reaction is None:
            return None
        parent = self.parent_scan(n, events)
        if parent is None:
            return None
        if tolerance is None:
            tolerance = self._config.precursor_tolerance

        data = self.decode_scan(parent, self._event_for(parent, events))
        if data.profile is not None:
            peaks = data.profile.as_peaks()
        elif data.peaks is not None:
            peaks = data.peaks
        else:
            return None
        return peaks.nearest(event.reaction.precursor_mz, tolerance)


def open_raw(path: str | Path, config: ReaderConfig | None = None) -> RawFile:
    return RawFile.open(path, config)
