"""Decoder for Finnigan / Thermo mass-spectrometer raw files."""

import logging

from finnigan_raw.engine.raw_file import RawFile, open_raw
from finnigan_raw.engine.reader_config import ReaderConfig
from finnigan_raw.models.constants import Activation
from finnigan_raw.models.converter import CalibratedConverter, IdentityConverter, select_converter
from finnigan_raw.models.scan_data import Peak, Peaks, Profile, ScanData
from finnigan_raw.parser.errors import (
    DecodeError,
    InconsistentRecordSize,
    MalformedCount,
    OutOfRange,
    TruncatedRead,
    UnsupportedVersion,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Activation",
    "CalibratedConverter",
    "DecodeError",
    "IdentityConverter",
    "InconsistentRecordSize",
    "MalformedCount",
    "OutOfRange",
    "Peak",
    "Peaks",
    "Profile",
    "RawFile",
    "ReaderConfig",
    "ScanData",
    "TruncatedRead",
    "UnsupportedVersion",
    "open_raw",
    "select_converter",
]
