"""Configuration knobs for RawFile.

Defaults decode files exactly as stored. Converters for instruments whose
firmware writes a wrong activation code can force one here.
"""

from dataclasses import dataclass

from finnigan_raw.models.constants import Activation


@dataclass(slots=True)
class ReaderConfig:
    """Tuneable parameters passed explicitly to the decoders."""

    activation_override: Activation | None = None   # replaces the preamble's activation code
    precursor_tolerance: float = 0.05               # m/z window for parent-scan precursor lookup
