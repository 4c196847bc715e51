"""Scan event, template, error log and scan parameter models.

These all come from variable-length streams that can only be read from the
start, so each model remembers where it was decoded (`offset`) and how many
bytes it took (`size`).
"""

from dataclasses import dataclass, field
from typing import Any

from finnigan_raw.models.records import Record


@dataclass(slots=True)
class Reaction:
    """Precursor selection for one stage of an MSn scan."""
    precursor_mz: float
    energy: float            # collision energy


@dataclass(slots=True)
class FractionCollector:
    low_mz: float
    high_mz: float


@dataclass(slots=True)
class ScanEvent:
    """A decoded trailer record describing how one scan was acquired."""
    preamble: bytes
    polarity: int            # Polarity, or raw int if unrecognized
    scan_mode: int           # ScanMode
    ms_power: int            # MsPower: 1 = MS1, 2 = MS2, ...
    scan_type: int           # ScanType
    dependent: bool          # triggered by a prior scan
    ionization: int
    activation: int | None   # Activation; None if the preamble predates it
    analyzer: int | None
    reactions: list[Reaction]
    fraction_collector: FractionCollector
    coefficients: tuple[float, ...]    # calibration payload
    offset: int = 0
    size: int = 0

    @property
    def reaction(self) -> Reaction | None:
        """The reaction that selected this scan's precursor (the last stage)."""
        return self.reactions[-1] if self.reactions else None

    @property
    def precursor_mz(self) -> float | None:
        reaction = self.reaction
        return reaction.precursor_mz if reaction else None


@dataclass(slots=True)
class ScanEventTemplate:
    """Fixed-size entry of the scan-event-template hierarchy."""
    preamble: bytes
    fraction_collector: FractionCollector
    offset: int = 0
    size: int = 0


@dataclass(slots=True)
class ErrorLogEntry:
    time: float              # minutes into the run
    message: str
    offset: int = 0
    size: int = 0


@dataclass(slots=True)
class GenericDataDescriptor:
    """One (type, length, label) triple of a self-describing record layout."""
    type: int                # GenericDataType
    length: int
    label: str


@dataclass(slots=True)
class GenericDataHeader:
    descriptors: list[GenericDataDescriptor] = field(default_factory=list)
    offset: int = 0
    size: int = 0


_CHARGE_STATE_LABEL = "Charge State:"


@dataclass(slots=True)
class ScanParameters:
    """Per-scan key/value record decoded with the scan-parameters header."""
    record: Record

    def __getitem__(self, label: str) -> Any:
        return self.record[label]

    def get(self, label: str, default: Any = None) -> Any:
        return self.record.get(label, default)

    @property
    def offset(self) -> int:
        return self.record.offset

    @property
    def size(self) -> int:
        return self.record.size

    @property
    def charge_state(self) -> int | None:
        """Precursor charge; None when not recorded or recorded as 0."""
        value = self.record.get(_CHARGE_STATE_LABEL)
        return int(value) if value else None
