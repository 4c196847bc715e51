"""Scan data packet models: header, profile chunks and centroid peaks.

Profile bins are addressed by integer bin index k; the native position of
bin k is `first_value + k * step`. A chunk covers bins
[first_bin, first_bin + nbins). Conversion to m/z is delegated to the
converter attached when the packet was decoded.
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import NamedTuple

from finnigan_raw.models.converter import IDENTITY


# Slack, in bins, when deciding whether a range bound falls on a bin.
_BIN_EPS = 1e-6


@dataclass(slots=True)
class PacketHeader:
    """40-byte header preceding each scan's data; sizes are in bytes."""
    profile_size: int        # 0 = no profile
    peak_list_size: int      # 0 = no centroids
    layout: int              # 0 = chunks carry no fudge value
    low_mz: float
    high_mz: float
    descriptor_list_size: int = 0
    unknown_stream_size: int = 0
    triplet_stream_size: int = 0
    offset: int = 0


@dataclass(slots=True)
class ProfileChunk:
    first_bin: int
    fudge: float             # added to every intensity in the chunk
    signal: list[float]

    @property
    def nbins(self) -> int:
        return len(self.signal)

    @property
    def last_bin(self) -> int:
        return self.first_bin + len(self.signal) - 1


class Peak(NamedTuple):
    position: float
    intensity: float


class Peaks:
    """Instrument-supplied centroids, sorted by position."""

    __slots__ = ("_peaks",)

    def __init__(self, peaks: list[Peak] | None = None) -> None:
        self._peaks = [Peak(*p) for p in (peaks or [])]

    def __len__(self) -> int:
        return len(self._peaks)

    def __iter__(self) -> Iterator[Peak]:
        return iter(self._peaks)

    def __getitem__(self, index: int) -> Peak:
        return self._peaks[index]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Peaks) and self._peaks == other._peaks

    def __repr__(self) -> str:
        return f"Peaks({self._peaks!r})"

    def nearest(self, target: float, tolerance: float) -> Peak | None:
        """Return the peak closest to *target*, or None if none lies within *tolerance*."""
        if tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {tolerance}")
        best: Peak | None = None
        best_distance = math.inf
        for peak in self._peaks:
            distance = abs(peak.position - target)
            if distance < best_distance:
                best = peak
                best_distance = distance
        if best is None or best_distance > tolerance:
            return None
        return best


@dataclass(slots=True)
class Profile:
    """Intensity-vs-position curve stored as non-overlapping chunks."""
    first_value: float
    step: float
    nbins: int
    chunks: list[ProfileChunk] = field(default_factory=list)
    low_mz: float = 0.0      # header-declared range, in m/z
    high_mz: float = 0.0
    converter: object = IDENTITY

    def position(self, k: int) -> float:
        """Native position of bin index *k*."""
        return self.first_value + k * self.step

    def _native_window(self, mz_range: tuple[float, float] | None) -> tuple[float, float]:
        if mz_range is None:
            if self.high_mz > self.low_mz:
                mz_range = (self.low_mz, self.high_mz)
            elif self.chunks:
                # No usable header range: cover every chunk.
                lo = self.position(self.chunks[0].first_bin)
                hi = self.position(self.chunks[-1].last_bin)
                return min(lo, hi), max(lo, hi)
            else:
                return 0.0, -1.0
        a = self.converter.inverse(mz_range[0])
        b = self.converter.inverse(mz_range[1])
        return min(a, b), max(a, b)

    def _bin_window(self, lo: float, hi: float) -> tuple[int, int]:
        if self.step == 0:
            raise ValueError("Profile step is zero")
        ka = (lo - self.first_value) / self.step
        kb = (hi - self.first_value) / self.step
        k_min, k_max = min(ka, kb), max(ka, kb)
        if not (math.isfinite(k_min) and math.isfinite(k_max)):
            # An unbounded side stops at the outermost chunk.
            if not self.chunks:
                return 0, -1
            k_min = max(k_min, min(chunk.first_bin for chunk in self.chunks))
            k_max = min(k_max, max(chunk.last_bin for chunk in self.chunks))
            if k_min > k_max:
                return 0, -1
        return (
            math.ceil(k_min - _BIN_EPS),
            math.floor(k_max + _BIN_EPS),
        )

    def bins(
        self,
        mz_range: tuple[float, float] | None = None,
        fill_gaps: bool = False,
    ) -> list[tuple[float, float]]:
        """Return (position, intensity) pairs within *mz_range*, ascending by position.

        *mz_range* is in converted units (m/z); it defaults to the header range.
        With *fill_gaps* and more than one chunk, every bin in the window not
        covered by a chunk is emitted with zero intensity.
        """
        lo, hi = self._native_window(mz_range)
        if lo > hi:
            return []
        k_lo, k_hi = self._bin_window(lo, hi)
        fill = fill_gaps and len(self.chunks) > 1

        native: list[tuple[float, float]] = []
        next_k = k_lo
        for chunk in self.chunks:
            first = max(chunk.first_bin, k_lo)
            last = min(chunk.last_bin, k_hi)
            if first > last:
                continue
            if fill:
                native.extend((self.position(k), 0.0) for k in range(next_k, first))
            offset = chunk.first_bin
            native.extend(
                (self.position(k), chunk.signal[k - offset] + chunk.fudge)
                for k in range(first, last + 1)
            )
            next_k = last + 1
        if fill:
            native.extend((self.position(k), 0.0) for k in range(next_k, k_hi + 1))

        forward = self.converter.forward
        result = [(forward(x), y) for x, y in native]
        result.sort(key=lambda pair: pair[0])
        return result

    def as_peaks(self, mz_range: tuple[float, float] | None = None) -> Peaks:
        """View the profile bins as a peak list (no gap filling)."""
        return Peaks([Peak(x, y) for x, y in self.bins(mz_range)])


@dataclass(slots=True)
class ScanData:
    """One decoded scan data packet."""
    header: PacketHeader
    profile: Profile | None
    peaks: Peaks | None
    converter: object = IDENTITY

    def __iter__(self):
        return iter((self.header, self.profile, self.peaks))
