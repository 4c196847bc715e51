"""Decode the file header and the RunHeader/SampleInfo address directory.

SampleInfo is a fixed-size preamble holding the scan-number bounds and the
addresses of most data streams. RunHeader wraps it and adds the addresses of
the scan-event trailer and scan-parameters streams. Newer versions append a
block of 64-bit addresses that replace the 32-bit ones. Which layout applies
is decided by the format version alone (see schemas.RUN_HEADER_LAYOUTS).
"""

import logging

from finnigan_raw.models.directory import AddressDirectory, AuditTag, FileHeader
from finnigan_raw.models.records import Record
from finnigan_raw.parser.byte_cursor import ByteCursor
from finnigan_raw.parser.errors import DecodeError
from finnigan_raw.parser.field_reader import decode
from finnigan_raw.parser.schemas import (
    FILE_HEADER,
    FILE_MAGIC,
    RUN_HEADER_LAYOUTS,
    layout_for,
)

logger = logging.getLogger(__name__)


def _audit_tag(rec: Record) -> AuditTag:
    return AuditTag(time=rec["time"], tag_1=rec["tag_1"], tag_2=rec["tag_2"])


def decode_file_header(cursor: ByteCursor) -> FileHeader:
    """Decode the file header at the cursor (normally offset 0)."""
    start = cursor.position
    rec = decode(cursor, FILE_HEADER)
    if rec["magic"] != FILE_MAGIC:
        raise DecodeError(
            f"Expected file magic {FILE_MAGIC:#06x}, got {rec['magic']:#06x} at offset {start}",
            start,
        )
    return FileHeader(
        magic=rec["magic"],
        signature=rec["signature"],
        version=rec["version"],
        audit_start=_audit_tag(rec["audit_start"]),
        audit_end=_audit_tag(rec["audit_end"]),
        tag=rec["tag"],
    )


def decode_address_directory(cursor: ByteCursor, format_version: int) -> AddressDirectory:
    """Decode the RunHeader at the cursor using the layout for *format_version*."""
    layout = layout_for(RUN_HEADER_LAYOUTS, format_version, "run header")
    rec = decode(cursor, layout)
    info = rec["sample_info"]

    if info["last_scan"] < info["first_scan"]:
        raise DecodeError(
            f"Run header at offset {rec.offset}: last scan {info['last_scan']} "
            f"precedes first scan {info['first_scan']}",
            rec.offset,
        )

    # Addresses come from SampleInfo and the legacy tail, unless the wide
    # block is present.
    addresses = rec.get("wide_addresses")
    wide = addresses is not None
    if not wide:
        addresses = {
            "scan_index_addr": info["scan_index_addr"],
            "data_addr": info["data_addr"],
            "inst_log_addr": info["inst_log_addr"],
            "error_log_addr": info["error_log_addr"],
            "scan_trailer_addr": rec["scan_trailer_addr"],
            "scan_params_addr": rec["scan_params_addr"],
        }

    directory = AddressDirectory(
        first_scan=info["first_scan"],
        last_scan=info["last_scan"],
        inst_log_length=info["inst_log_length"],
        scan_index_addr=addresses["scan_index_addr"],
        scan_data_addr=addresses["data_addr"],
        inst_log_addr=addresses["inst_log_addr"],
        error_log_addr=addresses["error_log_addr"],
        trailer_addr=addresses["scan_trailer_addr"],
        params_addr=addresses["scan_params_addr"],
        max_ion_current=info["max_ion_current"],
        low_mz=info["low_mz"],
        high_mz=info["high_mz"],
        start_time=info["start_time"],
        end_time=info["end_time"],
        wide=wide,
    )
    logger.debug(
        "run header v%d at %d (%d bytes): scans %d..%d",
        format_version, rec.offset, rec.size, directory.first_scan, directory.last_scan,
    )
    return directory
