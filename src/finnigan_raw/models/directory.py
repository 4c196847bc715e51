"""File header and address directory models."""

from dataclasses import dataclass


@dataclass(slots=True)
class AuditTag:
    time: int        # Windows FILETIME (100 ns ticks since 1601-01-01)
    tag_1: str       # usually the operator / account name
    tag_2: str


@dataclass(slots=True)
class FileHeader:
    """The 1356-byte header at the start of every raw file."""
    magic: int
    signature: str
    version: int
    audit_start: AuditTag
    audit_end: AuditTag
    tag: str


@dataclass(slots=True)
class AddressDirectory:
    """Scan-number bounds and absolute offsets of every data stream.

    Decoded from the SampleInfo preamble and its RunHeader wrapper; when
    the wrapper carries 64-bit addresses (`wide`), those replace the 32-bit
    copies.
    """
    first_scan: int          # inclusive, 1-based
    last_scan: int           # inclusive
    inst_log_length: int
    scan_index_addr: int
    scan_data_addr: int
    inst_log_addr: int
    error_log_addr: int
    trailer_addr: int        # scan-event trailer stream
    params_addr: int         # scan-parameters stream
    max_ion_current: float = 0.0
    low_mz: float = 0.0
    high_mz: float = 0.0
    start_time: float = 0.0  # minutes
    end_time: float = 0.0
    wide: bool = False

    @property
    def scan_count(self) -> int:
        return self.last_scan - self.first_scan + 1
