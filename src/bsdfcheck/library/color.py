"""Colorimetric conversions between CIE XYZ, (x, y) and (u', v')."""

from __future__ import annotations

from typing import Iterable

from bsdfcheck.types import NEUTRAL_CX, NEUTRAL_CY, SDValue

__all__ = [
    "chromaticity_to_xyz",
    "mix_values",
    "uv_to_chromaticity",
    "xyz_to_chromaticity",
]


def xyz_to_chromaticity(x: float, y: float, z: float) -> tuple[float, float]:
    total = x + y + z
    if total <= 0.0:
        return NEUTRAL_CX, NEUTRAL_CY
    return x / total, y / total


def uv_to_chromaticity(u: float, v: float) -> tuple[float, float]:
    """Convert CIE 1976 (u', v') to CIE 1931 (x, y)."""
    denom = 6.0 * u - 16.0 * v + 12.0
    if denom <= 0.0:
        return NEUTRAL_CX, NEUTRAL_CY
    return 9.0 * u / denom, 4.0 * v / denom


def chromaticity_to_xyz(cie_y: float, cx: float, cy: float) -> tuple[float, float, float]:
    if cy <= 0.0:
        return 0.0, cie_y, 0.0
    return cie_y * cx / cy, cie_y, cie_y * (1.0 - cx - cy) / cy


def mix_values(values: Iterable[SDValue]) -> SDValue:
    """Sum values, mixing chromaticities in proportion to luminance."""

    sx = sy = sz = 0.0
    for value in values:
        x, y, z = chromaticity_to_xyz(value.cie_y, value.cx, value.cy)
        sx += x
        sy += y
        sz += z
    if sy == 0.0:
        return SDValue(0.0)
    cx, cy = xyz_to_chromaticity(sx, sy, sz)
    return SDValue(sy, cx, cy)
