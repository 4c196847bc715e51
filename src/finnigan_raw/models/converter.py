"""Mapping between native bin positions and m/z.

Fourier-transform instruments record profile bins in the frequency domain;
each scan event carries the calibration coefficients needed to turn a
frequency into m/z. Which coefficients are used and in what formula depends
on how many the firmware wrote, so the calibrated forms are kept in a table
keyed by coefficient count:

    4 coefficients, (A, B, C) = c[1:4]:        m = A + B/f + C/f^2
    5 or 7 coefficients, (A, B, C) = c[2:5]:   m = A + B/f^2 + C/f^4

Both inverses are the positive root of the quadratic in 1/f (or 1/f^2).
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from finnigan_raw.parser.errors import UnsupportedVersion


class IdentityConverter:
    """Bins are already in m/z."""

    __slots__ = ()

    is_identity = True

    def forward(self, native: float) -> float:
        return native

    def inverse(self, physical: float) -> float:
        return physical

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IdentityConverter)

    def __hash__(self) -> int:
        return hash(IdentityConverter)

    def __repr__(self) -> str:
        return "IdentityConverter()"


IDENTITY = IdentityConverter()


def _quadratic_root(a: float, b: float, c: float, mz: float) -> float:
    # Solves (mz - a) x^2 - b x - c = 0 for the positive x.
    d = mz - a
    if c == 0.0:
        return b / d
    return (b + math.sqrt(max(b * b + 4.0 * d * c, 0.0))) / (2.0 * d)


@dataclass(frozen=True, slots=True)
class CalibratedConverter:
    """Frequency <-> m/z using one of the firmware calibration forms."""
    a: float
    b: float
    c: float
    power: int               # 1: terms in 1/f, 1/f^2; 2: terms in 1/f^2, 1/f^4

    is_identity = False

    def forward(self, native: float) -> float:
        x = native ** self.power
        return self.a + self.b / x + self.c / (x * x)

    def inverse(self, physical: float) -> float:
        # m/z at or below the asymptote A is reached only as f -> infinity.
        if physical <= self.a:
            return math.inf
        x = _quadratic_root(self.a, self.b, self.c, physical)
        return x if self.power == 1 else math.sqrt(x)

    @classmethod
    def from_coefficients(cls, coefficients: Sequence[float]) -> "CalibratedConverter":
        try:
            first, power = _CALIBRATION_FORMS[len(coefficients)]
        except KeyError:
            raise UnsupportedVersion(len(coefficients), "calibration (coefficient count)") from None
        a, b, c = coefficients[first:first + 3]
        return cls(a=a, b=b, c=c, power=power)


# coefficient count -> (index of A, power of f)
_CALIBRATION_FORMS: dict[int, tuple[int, int]] = {
    4: (1, 1),
    5: (2, 2),
    7: (2, 2),
}


def bins_are_physical(coefficients: Sequence[float]) -> bool:
    """True when a scan's bins need no conversion.

    Files only say so implicitly: an event with no calibration coefficients
    is taken to mean its profile is already in m/z.
    """
    return len(coefficients) == 0


def select_converter(coefficients: Sequence[float]) -> "IdentityConverter | CalibratedConverter":
    """Pick the converter for a scan event's calibration payload."""
    if bins_are_physical(coefficients):
        return IDENTITY
    return CalibratedConverter.from_coefficients(coefficients)
