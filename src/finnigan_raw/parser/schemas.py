"""Wire layouts of every fixed structure in a raw file.

Layouts that change between format versions are kept in lookup tables keyed
by the version integer from the file header. Decoders pick a layout once
with layout_for() and never branch on the version themselves.

Field names prefixed "unknown_" hold data whose meaning has not been
identified; they are decoded so that the byte accounting stays exact.
"""

from typing import Any

from finnigan_raw.models.constants import GenericDataType
from finnigan_raw.parser.errors import DecodeError, UnsupportedVersion
from finnigan_raw.parser.field_reader import (
    FLOAT32,
    FLOAT64,
    INT8,
    INT16,
    INT32,
    PascalUtf16,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    FieldSpec,
    FixedAscii,
    FixedUtf16,
    Nested,
    RawBytes,
    schema,
)


FILE_MAGIC = 0xA101
FILE_SIGNATURE = "Finnigan"


def layout_for(table: dict[int, Any], version: int, what: str) -> Any:
    """Look up the layout registered for *version* or raise UnsupportedVersion."""
    try:
        return table[version]
    except KeyError:
        raise UnsupportedVersion(version, what) from None


# ---------------------------------------------------------------------------
# File header (1356 bytes, version-independent)
# ---------------------------------------------------------------------------

AUDIT_TAG = schema(
    ("time", UINT64),              # Windows FILETIME
    ("tag_1", FixedUtf16(50)),
    ("tag_2", FixedUtf16(50)),
    ("unknown_long", UINT32),
)

FILE_HEADER = schema(
    ("magic", UINT16),
    ("signature", FixedUtf16(18)),
    ("unknown_long_1", UINT32),
    ("unknown_long_2", UINT32),
    ("unknown_long_3", UINT32),
    ("unknown_long_4", UINT32),
    ("version", UINT32),
    ("audit_start", Nested(AUDIT_TAG)),
    ("audit_end", Nested(AUDIT_TAG)),
    ("unknown_long_5", UINT32),
    ("unknown_area", RawBytes(60)),
    ("tag", FixedUtf16(1028)),
)


# ---------------------------------------------------------------------------
# Address directory: SampleInfo preamble wrapped by RunHeader
# ---------------------------------------------------------------------------

SAMPLE_INFO = schema(
    ("unknown_long_1", UINT32),
    ("unknown_long_2", UINT32),
    ("first_scan", UINT32),
    ("last_scan", UINT32),
    ("inst_log_length", UINT32),
    ("unknown_long_3", UINT32),
    ("unknown_long_4", UINT32),
    ("scan_index_addr", UINT32),
    ("data_addr", UINT32),
    ("inst_log_addr", UINT32),
    ("error_log_addr", UINT32),
    ("unknown_long_5", UINT32),
    ("max_ion_current", FLOAT64),
    ("low_mz", FLOAT64),
    ("high_mz", FLOAT64),
    ("start_time", FLOAT64),
    ("end_time", FLOAT64),
    ("unknown_area", RawBytes(56)),
    ("tag_1", FixedUtf16(88)),
    ("tag_2", FixedUtf16(40)),
    ("tag_3", FixedUtf16(320)),
)

_FILE_NAME = FixedUtf16(520)

RUN_HEADER_LEGACY = schema(
    ("sample_info", Nested(SAMPLE_INFO)),
    ("orig_file_name", _FILE_NAME),
    ("file_name_1", _FILE_NAME),
    ("file_name_2", _FILE_NAME),
    ("file_name_3", _FILE_NAME),
    ("file_name_4", _FILE_NAME),
    ("file_name_5", _FILE_NAME),
    ("file_name_6", _FILE_NAME),
    ("unknown_double_1", FLOAT64),
    ("unknown_double_2", FLOAT64),
    ("file_name_7", _FILE_NAME),
    ("file_name_8", _FILE_NAME),
    ("file_name_9", _FILE_NAME),
    ("file_name_10", _FILE_NAME),
    ("file_name_11", _FILE_NAME),
    ("file_name_12", _FILE_NAME),
    ("file_name_13", _FILE_NAME),
    ("scan_trailer_addr", UINT32),
    ("scan_params_addr", UINT32),
    ("unknown_length_1", UINT32),
    ("unknown_length_2", UINT32),
    ("nsegs", UINT32),
    ("unknown_long_1", UINT32),
    ("unknown_long_2", UINT32),
    ("own_addr", UINT32),
    ("unknown_long_3", UINT32),
    ("unknown_long_4", UINT32),
)

# 64-bit addresses appended by newer firmware; they supersede the 32-bit
# copies in SampleInfo and the legacy tail.
WIDE_ADDRESSES = schema(
    ("scan_index_addr", UINT64),
    ("data_addr", UINT64),
    ("inst_log_addr", UINT64),
    ("error_log_addr", UINT64),
    ("unknown_addr", UINT64),
    ("scan_trailer_addr", UINT64),
    ("scan_params_addr", UINT64),
    ("own_addr", UINT64),
)

RUN_HEADER_WIDE = schema(
    *RUN_HEADER_LEGACY,
    ("wide_addresses", Nested(WIDE_ADDRESSES)),
)

RUN_HEADER_LAYOUTS: dict[int, tuple[FieldSpec, ...]] = {
    57: RUN_HEADER_LEGACY,
    60: RUN_HEADER_LEGACY,
    62: RUN_HEADER_LEGACY,
    63: RUN_HEADER_LEGACY,
    64: RUN_HEADER_WIDE,
    66: RUN_HEADER_WIDE,
}


# ---------------------------------------------------------------------------
# Scan index
# ---------------------------------------------------------------------------

SCAN_INDEX_ENTRY = schema(
    ("offset", UINT32),
    ("index", UINT32),
    ("scan_event", UINT16),
    ("scan_segment", UINT16),
    ("next", UINT32),
    ("unknown_long", UINT32),
    ("data_size", UINT32),
    ("start_time", FLOAT64),
    ("total_current", FLOAT64),
    ("base_intensity", FLOAT64),
    ("base_mz", FLOAT64),
    ("low_mz", FLOAT64),
    ("high_mz", FLOAT64),
)

SCAN_INDEX_ENTRY_WIDE = schema(
    *SCAN_INDEX_ENTRY,
    ("long_offset", UINT64),
    ("unknown_long_2", UINT32),
    ("unknown_long_3", UINT32),
)

SCAN_INDEX_LAYOUTS: dict[int, tuple[FieldSpec, ...]] = {
    version: (SCAN_INDEX_ENTRY_WIDE if layout is RUN_HEADER_WIDE else SCAN_INDEX_ENTRY)
    for version, layout in RUN_HEADER_LAYOUTS.items()
}


# ---------------------------------------------------------------------------
# Scan events and templates
# ---------------------------------------------------------------------------

PREAMBLE_SIZES: dict[int, int] = {
    57: 41,
    60: 80,
    62: 80,
    63: 120,
    64: 128,
    66: 136,
}

# Byte positions inside the ScanEvent preamble
PREAMBLE_POLARITY = 4
PREAMBLE_SCAN_MODE = 5
PREAMBLE_MS_POWER = 6
PREAMBLE_SCAN_TYPE = 7
PREAMBLE_DEPENDENT = 10
PREAMBLE_IONIZATION = 11
PREAMBLE_ACTIVATION = 24
PREAMBLE_ANALYZER = 40

REACTION = schema(
    ("precursor_mz", FLOAT64),
    ("unknown_double", FLOAT64),
    ("energy", FLOAT64),
    ("unknown_long_1", UINT32),
    ("unknown_long_2", UINT32),
)

FRACTION_COLLECTOR = schema(
    ("low_mz", FLOAT64),
    ("high_mz", FLOAT64),
)

# ScanEvent is variable-length: preamble, UInt32 reaction count + reactions,
# one long, fraction collector, UInt32 coefficient count + Float64
# coefficients, two longs. The fixed pieces between the counts:
SCAN_EVENT_MIDDLE = schema(
    ("unknown_long_1", UINT32),
    ("fraction_collector", Nested(FRACTION_COLLECTOR)),
)

SCAN_EVENT_TAIL = schema(
    ("unknown_long_2", UINT32),
    ("unknown_long_3", UINT32),
)

SCAN_EVENT_TEMPLATE_LAYOUTS: dict[int, tuple[FieldSpec, ...]] = {
    version: schema(
        ("preamble", RawBytes(size)),
        ("unknown_long_1", UINT32),
        ("fraction_collector", Nested(FRACTION_COLLECTOR)),
        ("unknown_long_2", UINT32),
        ("unknown_long_3", UINT32),
    )
    for version, size in PREAMBLE_SIZES.items()
}


# ---------------------------------------------------------------------------
# Error log and generic (self-describing) records
# ---------------------------------------------------------------------------

ERROR_LOG_ENTRY = schema(
    ("time", FLOAT32),
    ("message", PascalUtf16()),
)

GENERIC_DATA_DESCRIPTOR = schema(
    ("type", UINT32),
    ("length", UINT32),
    ("label", PascalUtf16()),
)

_GENERIC_KINDS = {
    GenericDataType.CHAR: lambda length: INT8,
    GenericDataType.TRUE_FALSE: lambda length: UINT8,
    GenericDataType.YES_NO: lambda length: UINT8,
    GenericDataType.ON_OFF: lambda length: UINT8,
    GenericDataType.UCHAR: lambda length: UINT8,
    GenericDataType.SHORT: lambda length: INT16,
    GenericDataType.USHORT: lambda length: UINT16,
    GenericDataType.LONG: lambda length: INT32,
    GenericDataType.ULONG: lambda length: UINT32,
    GenericDataType.FLOAT: lambda length: FLOAT32,
    GenericDataType.DOUBLE: lambda length: FLOAT64,
    GenericDataType.ASCII: lambda length: FixedAscii(length),
    GenericDataType.WIDE: lambda length: FixedUtf16(2 * length),
}


def generic_kind(type_code: int, length: int):
    """Field kind for a GenericDataDescriptor; None for section labels."""
    if type_code == GenericDataType.SECTION:
        return None
    try:
        factory = _GENERIC_KINDS[type_code]
    except KeyError:
        raise DecodeError(f"Unknown generic data type code {type_code}") from None
    return factory(length)


# ---------------------------------------------------------------------------
# Scan data packet
# ---------------------------------------------------------------------------

PACKET_HEADER = schema(
    ("unknown_long_1", UINT32),
    ("profile_words", UINT32),          # sizes are in 4-byte words
    ("peak_list_words", UINT32),
    ("layout", UINT32),
    ("descriptor_list_size", UINT32),
    ("unknown_stream_size", UINT32),
    ("triplet_stream_size", UINT32),
    ("unknown_long_2", UINT32),
    ("low_mz", FLOAT32),
    ("high_mz", FLOAT32),
)

PROFILE_HEAD = schema(
    ("first_value", FLOAT64),
    ("step", FLOAT64),
    ("peak_count", UINT32),             # number of chunks
    ("nbins", UINT32),
)

PROFILE_CHUNK_HEAD = schema(
    ("first_bin", UINT32),
    ("nbins", UINT32),
)

PROFILE_CHUNK_FUDGE = schema(
    ("fudge", FLOAT32),
)

PEAK = schema(
    ("mz", FLOAT32),
    ("abundance", FLOAT32),
)
