"""Decode failures and recoverable anomalies.

Every structural failure is a ValueError subclass carrying the byte offset
where decoding stopped. Recoverable anomalies are plain dataclasses handed
back to the caller alongside the repaired result; they are never raised.
"""

from dataclasses import dataclass


class DecodeError(ValueError):
    """Base class for structural decode failures."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class TruncatedRead(DecodeError):
    """Fewer bytes remain in the source than a field or record requires."""

    def __init__(self, offset: int, expected: int, available: int) -> None:
        super().__init__(
            f"Read of {expected} bytes at offset {offset} "
            f"would exceed boundary ({available} bytes available)",
            offset,
        )
        self.expected = expected
        self.available = available


class OutOfRange(DecodeError):
    """A scan number or record index outside the valid range."""

    def __init__(self, what: str, value: int, low: int, high: int) -> None:
        super().__init__(f"{what} {value} is outside the range [{low}, {high}]")
        self.value = value
        self.low = low
        self.high = high


class UnsupportedVersion(DecodeError):
    """No known field layout for the given format version."""

    def __init__(self, version: int, what: str = "file format") -> None:
        super().__init__(f"No known {what} layout for version {version}")
        self.version = version


class InconsistentRecordSize(DecodeError):
    """A supposedly fixed-size record decoded to a different length."""

    def __init__(self, offset: int, expected: int, actual: int, what: str = "record") -> None:
        super().__init__(
            f"{what} at offset {offset} consumed {actual} bytes, expected {expected}",
            offset,
        )
        self.expected = expected
        self.actual = actual


@dataclass(slots=True)
class MalformedCount:
    """A record-count field that read zero where a positive count is required.

    The stream was decoded using `substituted_count` instead.
    """
    stream: str              # e.g. "scan event trailer"
    offset: int              # absolute offset of the count field
    substituted_count: int

    @property
    def message(self) -> str:
        return (
            f"{self.stream}: record count at offset {self.offset} is 0; "
            f"assuming {self.substituted_count} records"
        )
