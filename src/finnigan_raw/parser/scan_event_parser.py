"""Decoders for the variable-length per-scan and log records.

ScanEvent layout:
  preamble            version-dependent byte block (see schemas.PREAMBLE_SIZES)
  n_reactions         UInt32
  reactions           n_reactions x REACTION (32 bytes each)
  unknown_long_1      UInt32
  fraction_collector  2 x Float64
  n_coefficients      UInt32
  coefficients        n_coefficients x Float64 (calibration payload)
  unknown_long_2/3    2 x UInt32

Scan parameters are self-describing: a GenericDataHeader lists
(type, length, label) triples, and every scan-parameters record is decoded
with the schema those triples describe.
"""

from finnigan_raw.models.constants import (
    Activation,
    Analyzer,
    Ionization,
    MsPower,
    Polarity,
    ScanMode,
    ScanType,
    enum_or_int,
)
from finnigan_raw.models.scan_event import (
    ErrorLogEntry,
    FractionCollector,
    GenericDataDescriptor,
    GenericDataHeader,
    Reaction,
    ScanEvent,
    ScanEventTemplate,
    ScanParameters,
)
from finnigan_raw.models.records import Record
from finnigan_raw.parser.byte_cursor import ByteCursor
from finnigan_raw.parser.field_reader import FLOAT64, Array, FieldSpec, RawBytes, decode, schema
from finnigan_raw.parser.schemas import (
    ERROR_LOG_ENTRY,
    GENERIC_DATA_DESCRIPTOR,
    PREAMBLE_ACTIVATION,
    PREAMBLE_ANALYZER,
    PREAMBLE_DEPENDENT,
    PREAMBLE_IONIZATION,
    PREAMBLE_MS_POWER,
    PREAMBLE_POLARITY,
    PREAMBLE_SCAN_MODE,
    PREAMBLE_SCAN_TYPE,
    PREAMBLE_SIZES,
    REACTION,
    SCAN_EVENT_MIDDLE,
    SCAN_EVENT_TAIL,
    SCAN_EVENT_TEMPLATE_LAYOUTS,
    generic_kind,
    layout_for,
)
from finnigan_raw.parser.sequential_stream import read_counted


def _fraction_collector(rec: Record) -> FractionCollector:
    return FractionCollector(low_mz=rec["low_mz"], high_mz=rec["high_mz"])


def _optional_byte(preamble: bytes, pos: int) -> int | None:
    return preamble[pos] if pos < len(preamble) else None


def decode_scan_event(
    cursor: ByteCursor,
    version: int,
    activation_override: int | None = None,
) -> ScanEvent:
    """Decode one ScanEvent at the cursor.

    *activation_override* replaces the activation code stored in the
    preamble (older firmware leaves it unset or wrong).
    """
    preamble_kind = RawBytes(layout_for(PREAMBLE_SIZES, version, "scan event"))
    start = cursor.position

    preamble = preamble_kind.read(cursor)
    n_reactions = cursor.uint32()
    reactions = [decode(cursor, REACTION) for _ in range(n_reactions)]
    middle = decode(cursor, SCAN_EVENT_MIDDLE)
    n_coefficients = cursor.uint32()
    coefficients = Array(FLOAT64, n_coefficients).read(cursor)
    decode(cursor, SCAN_EVENT_TAIL)

    if activation_override is not None:
        activation = activation_override
    else:
        code = _optional_byte(preamble, PREAMBLE_ACTIVATION)
        activation = None if code is None else enum_or_int(Activation, code)
    analyzer = _optional_byte(preamble, PREAMBLE_ANALYZER)

    return ScanEvent(
        preamble=preamble,
        polarity=enum_or_int(Polarity, preamble[PREAMBLE_POLARITY]),
        scan_mode=enum_or_int(ScanMode, preamble[PREAMBLE_SCAN_MODE]),
        ms_power=enum_or_int(MsPower, preamble[PREAMBLE_MS_POWER]),
        scan_type=enum_or_int(ScanType, preamble[PREAMBLE_SCAN_TYPE]),
        dependent=bool(preamble[PREAMBLE_DEPENDENT]),
        ionization=enum_or_int(Ionization, preamble[PREAMBLE_IONIZATION]),
        activation=activation,
        analyzer=None if analyzer is None else enum_or_int(Analyzer, analyzer),
        reactions=[Reaction(precursor_mz=r["precursor_mz"], energy=r["energy"]) for r in reactions],
        fraction_collector=_fraction_collector(middle["fraction_collector"]),
        coefficients=coefficients,
        offset=start,
        size=cursor.position - start,
    )


def decode_scan_event_template(cursor: ByteCursor, version: int) -> ScanEventTemplate:
    rec = decode(cursor, layout_for(SCAN_EVENT_TEMPLATE_LAYOUTS, version, "scan event template"))
    return ScanEventTemplate(
        preamble=rec["preamble"],
        fraction_collector=_fraction_collector(rec["fraction_collector"]),
        offset=rec.offset,
        size=rec.size,
    )


def decode_error_log_entry(cursor: ByteCursor) -> ErrorLogEntry:
    rec = decode(cursor, ERROR_LOG_ENTRY)
    return ErrorLogEntry(time=rec["time"], message=rec["message"], offset=rec.offset, size=rec.size)


def _decode_descriptor(cursor: ByteCursor) -> GenericDataDescriptor:
    rec = decode(cursor, GENERIC_DATA_DESCRIPTOR)
    return GenericDataDescriptor(type=rec["type"], length=rec["length"], label=rec["label"])


def decode_generic_header(cursor: ByteCursor) -> GenericDataHeader:
    start = cursor.position
    descriptors = read_counted(cursor, _decode_descriptor)
    return GenericDataHeader(descriptors=descriptors, offset=start, size=cursor.position - start)


def generic_record_schema(header: GenericDataHeader) -> tuple[FieldSpec, ...]:
    """Build the record schema described by a GenericDataHeader.

    Section labels carry no data and are dropped; repeated labels get a
    numeric suffix so field names stay unique.
    """
    fields = []
    seen: dict[str, int] = {}
    for descriptor in header.descriptors:
        kind = generic_kind(descriptor.type, descriptor.length)
        if kind is None:
            continue
        label = descriptor.label
        if label in seen:
            seen[label] += 1
            label = f"{label} [{seen[label]}]"
        else:
            seen[label] = 1
        fields.append((label, kind))
    return schema(*fields)


def decode_scan_parameters(cursor: ByteCursor, record_schema: tuple[FieldSpec, ...]) -> ScanParameters:
    return ScanParameters(record=decode(cursor, record_schema))
