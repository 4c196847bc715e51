"""Scan index entry model."""

from dataclasses import dataclass


@dataclass(slots=True)
class ScanIndexEntry:
    """Fixed-size per-scan summary from the scan index stream."""
    scan_number: int
    offset: int              # scan data packet offset, relative to scan_data_addr
    index: int               # 0-based scan index as stored in the file
    scan_event: int
    scan_segment: int
    next: int
    data_size: int
    start_time: float        # retention time, minutes
    total_current: float
    base_intensity: float
    base_mz: float
    low_mz: float
    high_mz: float
    byte_offset: int = 0     # absolute address of this index record
