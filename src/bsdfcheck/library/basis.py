"""Angle bases for tabulated BSDF matrices.

An :class:`AngleBasis` divides the hemisphere into latitude rings, each split
into ``nphis`` equal azimuthal patches. Patches are numbered ring by ring
starting at the pole, with patch ``k`` of a ring centred on azimuth
``2*pi*k/nphis``. The three LBNL/Klems resolutions used by WINDOW are built in.

Bases work in a local frame where every direction lies in the +Z hemisphere.
:func:`orient` maps local directions to the material frame:

* front exiting: ``(x, y, z)``
* front incident: ``(-x, -y, z)``
* back exiting: ``(x, y, -z)``
* back incident: ``(-x, -y, -z)``

All vectors point away from the surface; an incident vector points toward
the source.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from bsdfcheck.types import Side

__all__ = [
    "AngleBasis",
    "BUILTIN_BASES",
    "KLEMS_FULL",
    "KLEMS_HALF",
    "KLEMS_QUARTER",
    "LatitudeRing",
    "get_basis",
    "orient",
]

_THETA_TOL = 1e-6


@dataclass(frozen=True, slots=True)
class LatitudeRing:
    """Polar band ``[theta_min, theta_max)`` in degrees with ``nphis`` patches."""

    theta_min: float
    theta_max: float
    nphis: int

    def __post_init__(self) -> None:
        if not 0.0 <= self.theta_min < self.theta_max <= 90.0:
            raise ValueError(
                f"Invalid ring bounds [{self.theta_min}, {self.theta_max}] (degrees)"
            )
        if self.nphis < 1:
            raise ValueError("nphis must be at least 1")

    @property
    def cos2_bounds(self) -> tuple[float, float]:
        return (
            math.cos(math.radians(self.theta_min)) ** 2,
            math.cos(math.radians(self.theta_max)) ** 2,
        )

    def proj_solid_angle(self) -> float:
        """Projected solid angle of one patch in this ring."""
        c0, c1 = self.cos2_bounds
        return math.pi * (c0 - c1) / self.nphis


@dataclass(frozen=True)
class AngleBasis:
    name: str
    rings: tuple[LatitudeRing, ...]

    def __post_init__(self) -> None:
        rings = tuple(self.rings)
        object.__setattr__(self, "rings", rings)
        if not rings:
            raise ValueError("An angle basis needs at least one latitude ring")
        if abs(rings[0].theta_min) > _THETA_TOL:
            raise ValueError("First latitude ring must start at the pole")
        if abs(rings[-1].theta_max - 90.0) > _THETA_TOL:
            raise ValueError("Last latitude ring must end at the horizon")
        for lower, upper in zip(rings, rings[1:]):
            if abs(lower.theta_max - upper.theta_min) > _THETA_TOL:
                raise ValueError(
                    f"Latitude rings of basis {self.name!r} are not contiguous at "
                    f"{lower.theta_max} / {upper.theta_min} degrees"
                )

    @property
    def nangles(self) -> int:
        return sum(ring.nphis for ring in self.rings)

    def _locate(self, index: int) -> tuple[LatitudeRing, int]:
        for ring in self.rings:
            if index < ring.nphis:
                return ring, index
            index -= ring.nphis
        raise IndexError(index)

    def vector(self, position: float) -> NDArray[np.float64] | None:
        """Local direction for fractional patch coordinate ``position``.

        The integer part selects the patch, the fraction moves across it in
        both polar (uniform in projected solid angle) and azimuthal directions,
        so ``index + 0.5`` is the patch centre. Returns ``None`` outside the
        basis.
        """

        if not math.isfinite(position) or position < 0.0:
            return None
        index = int(math.floor(position))
        if index >= self.nangles:
            return None
        frac = position - index
        ring, k = self._locate(index)
        c0, c1 = ring.cos2_bounds
        cos_t = math.sqrt((1.0 - frac) * c0 + frac * c1)
        sin_t = math.sqrt(max(0.0, 1.0 - cos_t * cos_t))
        azimuth = 2.0 * math.pi * (k + frac - 0.5) / ring.nphis
        return np.array([math.cos(azimuth) * sin_t, math.sin(azimuth) * sin_t, cos_t])

    def index(self, direction: ArrayLike) -> int:
        """Patch index containing local ``direction``, or ``-1``."""

        x, y, z = (float(c) for c in np.asarray(direction, dtype=np.float64).reshape(3))
        norm = math.sqrt(x * x + y * y + z * z)
        if norm == 0.0 or not math.isfinite(norm) or z < 0.0:
            return -1
        theta = math.degrees(math.acos(min(1.0, z / norm)))
        offset = 0
        for ring in self.rings:
            if theta < ring.theta_max or ring is self.rings[-1]:
                azimuth = math.atan2(y, x) % (2.0 * math.pi)
                k = int(math.floor(azimuth * ring.nphis / (2.0 * math.pi) + 0.5)) % ring.nphis
                return offset + k
            offset += ring.nphis
        return -1

    def proj_solid_angle(self, index: int) -> float:
        ring, _ = self._locate(index)
        return ring.proj_solid_angle()

    def proj_solid_angles(self) -> NDArray[np.float64]:
        """Projected solid angle of every patch, in index order."""
        return np.concatenate(
            [np.full(ring.nphis, ring.proj_solid_angle()) for ring in self.rings]
        )


def orient(direction: ArrayLike, side: Side, *, incident: bool) -> NDArray[np.float64]:
    """Map between the local basis frame and the material frame.

    The mapping is its own inverse.
    """

    v = np.array(direction, dtype=np.float64).reshape(3)
    if incident:
        v[0] = -v[0]
        v[1] = -v[1]
    if side == Side.BACK:
        v[2] = -v[2]
    return v


def _klems(name: str, blocks: list[tuple[float, float, int]]) -> AngleBasis:
    return AngleBasis(name, tuple(LatitudeRing(lo, hi, n) for lo, hi, n in blocks))


KLEMS_FULL = _klems(
    "LBNL/Klems Full",
    [
        (0.0, 5.0, 1),
        (5.0, 15.0, 8),
        (15.0, 25.0, 16),
        (25.0, 35.0, 20),
        (35.0, 45.0, 24),
        (45.0, 55.0, 24),
        (55.0, 65.0, 24),
        (65.0, 75.0, 16),
        (75.0, 90.0, 12),
    ],
)
KLEMS_HALF = _klems(
    "LBNL/Klems Half",
    [
        (0.0, 6.5, 1),
        (6.5, 19.5, 8),
        (19.5, 32.5, 12),
        (32.5, 45.5, 16),
        (45.5, 58.5, 20),
        (58.5, 71.5, 12),
        (71.5, 90.0, 4),
    ],
)
KLEMS_QUARTER = _klems(
    "LBNL/Klems Quarter",
    [
        (0.0, 9.0, 1),
        (9.0, 27.0, 8),
        (27.0, 45.0, 12),
        (45.0, 63.0, 12),
        (63.0, 90.0, 8),
    ],
)

BUILTIN_BASES: dict[str, AngleBasis] = {
    basis.name.lower(): basis for basis in (KLEMS_FULL, KLEMS_HALF, KLEMS_QUARTER)
}


def get_basis(name: str) -> AngleBasis:
    key = name.strip().lower()
    try:
        return BUILTIN_BASES[key]
    except KeyError as exc:
        raise KeyError(f"Unknown angle basis: {name!r}") from exc
