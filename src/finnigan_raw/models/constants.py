"""Scan-event enumerations and generic-data type codes.

Codes are the byte values stored in the ScanEvent preamble. Values outside
these enums are passed through as plain ints by the decoders.
"""

from enum import IntEnum


class Polarity(IntEnum):
    NEGATIVE = 0
    POSITIVE = 1
    ANY = 2


class ScanMode(IntEnum):
    CENTROID = 0
    PROFILE = 1
    UNDEFINED = 2


class MsPower(IntEnum):
    UNDEFINED = 0
    MS1 = 1
    MS2 = 2
    MS3 = 3
    MS4 = 4
    MS5 = 5
    MS6 = 6
    MS7 = 7
    MS8 = 8


class ScanType(IntEnum):
    FULL = 0
    ZOOM = 1
    SIM = 2
    SRM = 3
    CRM = 4
    UNDEFINED = 5
    Q1 = 6
    Q3 = 7


class Ionization(IntEnum):
    EI = 0
    CI = 1
    FAB = 2
    ESI = 3
    APCI = 4
    NSI = 5
    TSP = 6
    FD = 7
    MALDI = 8
    GD = 9
    UNDEFINED = 10


class Activation(IntEnum):
    CID = 0
    MPD = 1
    ECD = 2
    PQD = 3
    ETD = 4
    HCD = 5
    ANY = 6
    SA = 7
    PTR = 8
    NETD = 9
    NPTR = 10


class Analyzer(IntEnum):
    ITMS = 0
    TQMS = 1
    SQMS = 2
    TOFMS = 3
    FTMS = 4
    SECTOR = 5
    UNDEFINED = 6


class GenericDataType(IntEnum):
    """Type codes used by GenericDataDescriptor entries."""
    SECTION = 0x0      # label only, no data
    CHAR = 0x1
    TRUE_FALSE = 0x2
    YES_NO = 0x3
    ON_OFF = 0x4
    UCHAR = 0x5
    SHORT = 0x6
    USHORT = 0x7
    LONG = 0x8
    ULONG = 0x9
    FLOAT = 0xB
    DOUBLE = 0xC
    ASCII = 0xD
    WIDE = 0xE


def enum_or_int(enum_cls: type[IntEnum], value: int) -> int:
    """Return the enum member for *value*, or the bare int if unknown."""
    try:
        return enum_cls(value)
    except ValueError:
        return value
