"""Shared value types for BSDF classification and reciprocity checks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag, IntEnum

__all__ = [
    "BSDFFlags",
    "BSDFType",
    "NEUTRAL_CX",
    "NEUTRAL_CY",
    "SDValue",
    "Side",
]

NEUTRAL_CX = 1.0 / 3.0
NEUTRAL_CY = 1.0 / 3.0
"""Equal-energy white point used for uncoloured data."""


class Side(IntEnum):
    """Material side; front is the +Z hemisphere."""

    FRONT = 1
    BACK = -1


class BSDFType(str, Enum):
    PURE_LAMBERTIAN = "Pure Lambertian"
    KLEMS_FULL = "Klems Full"
    KLEMS_HALF = "Klems Half"
    KLEMS_QUARTER = "Klems Quarter"
    UNKNOWN_MATRIX = "Unknown Matrix"
    ANISOTROPIC_TREE = "Anisotropic Tensor Tree"
    ISOTROPIC_TREE = "Isotropic Tensor Tree"
    UNKNOWN_TREE = "Unknown Tensor Tree"
    UNKNOWN = "Unknown"


class BSDFFlags(Flag):
    """Structural feature flags reported alongside :class:`BSDFType`."""

    NONE = 0
    IN_COLOR = 0x1
    ISOTROPIC = 0x2
    MATRIX = 0x4
    TTREE = 0x8


@dataclass(frozen=True, slots=True)
class SDValue:
    """Luminance with CIE (x, y) chromaticity.

    Used both for Lambertian baselines and for the result of a general BSDF
    evaluation. A zero value keeps the neutral chromaticity.
    """

    cie_y: float = 0.0
    cx: float = NEUTRAL_CX
    cy: float = NEUTRAL_CY

    @property
    def is_neutral(self) -> bool:
        return self.cx == NEUTRAL_CX and self.cy == NEUTRAL_CY
