"""Matrix-tabulated BSDF distributions over a pair of angle bases."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from bsdfcheck.library.basis import AngleBasis, orient
from bsdfcheck.library.color import xyz_to_chromaticity
from bsdfcheck.types import NEUTRAL_CX, NEUTRAL_CY, SDValue, Side

__all__ = [
    "MatrixDistribution",
    "extract_matrix_diffuse",
    "lookup_matrix_value",
    "matrix_extrema",
    "reconstruct_direction",
]


def _frozen(values: ArrayLike) -> NDArray[np.float64]:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(eq=False)
class MatrixDistribution:
    """BSDF table indexed by ``(outgoing bin, incident bin)``.

    ``values`` holds luminance (CIE Y) and is shaped ``(nout, ninc)``. When the
    data is colour-resolved, ``chroma`` holds the matching CIE X and CIE Z
    tables. Arrays are frozen after construction so the bin counts stay fixed.
    """

    values: NDArray[np.float64]
    in_basis: AngleBasis
    out_basis: AngleBasis
    in_side: Side = Side.FRONT
    out_side: Side = Side.FRONT
    chroma: tuple[NDArray[np.float64], NDArray[np.float64]] | None = None

    def __post_init__(self) -> None:
        self.values = _frozen(self.values)
        self.in_side = Side(self.in_side)
        self.out_side = Side(self.out_side)
        if self.values.ndim != 2:
            raise ValueError("values must be 2-D (outgoing x incident)")
        expected = (self.out_basis.nangles, self.in_basis.nangles)
        if self.values.shape != expected:
            raise ValueError(
                f"values shape {self.values.shape} does not match bases {expected}"
            )
        if self.chroma is not None:
            cie_x, cie_z = (_frozen(table) for table in self.chroma)
            if cie_x.shape != self.values.shape or cie_z.shape != self.values.shape:
                raise ValueError("chroma tables must match the luminance table shape")
            self.chroma = (cie_x, cie_z)

    @property
    def ninc(self) -> int:
        return int(self.values.shape[1])

    @property
    def nout(self) -> int:
        return int(self.values.shape[0])

    @property
    def in_color(self) -> bool:
        return self.chroma is not None

    def incvec(self, position: float) -> NDArray[np.float64] | None:
        local = self.in_basis.vector(position)
        if local is None:
            return None
        return orient(local, self.in_side, incident=True)

    def outvec(self, position: float) -> NDArray[np.float64] | None:
        local = self.out_basis.vector(position)
        if local is None:
            return None
        return orient(local, self.out_side, incident=False)

    def incndx(self, direction: ArrayLike) -> int:
        return self.in_basis.index(orient(direction, self.in_side, incident=True))

    def outndx(self, direction: ArrayLike) -> int:
        return self.out_basis.index(orient(direction, self.out_side, incident=False))

    def value(self, out_bin: int, in_bin: int) -> float:
        return float(self.values[out_bin, in_bin])

    def color_value(self, out_bin: int, in_bin: int) -> SDValue:
        cie_y = self.value(out_bin, in_bin)
        if self.chroma is None:
            return SDValue(cie_y)
        cie_x, cie_z = self.chroma
        cx, cy = xyz_to_chromaticity(
            float(cie_x[out_bin, in_bin]), cie_y, float(cie_z[out_bin, in_bin])
        )
        return SDValue(cie_y, cx, cy)


def reconstruct_direction(
    matrix: MatrixDistribution, position: float, side: Literal["in", "out"]
) -> tuple[NDArray[np.float64] | None, bool]:
    """Direction for a fractional bin coordinate; ``ok`` is false out of domain."""

    if side == "in":
        vec = matrix.incvec(position)
    elif side == "out":
        vec = matrix.outvec(position)
    else:
        raise ValueError(f"side must be 'in' or 'out', got {side!r}")
    return vec, vec is not None


def lookup_matrix_value(matrix: MatrixDistribution, out_bin: int, in_bin: int) -> float:
    return matrix.value(out_bin, in_bin)


def matrix_extrema(matrix: MatrixDistribution) -> tuple[float, float]:
    """Return ``(max_hemi, min_proj_sa)`` for a matrix.

    ``max_hemi`` is the largest directional-hemispherical integral over all
    incident bins; ``min_proj_sa`` is the smallest patch in either basis.
    """

    out_sa = matrix.out_basis.proj_solid_angles()
    in_sa = matrix.in_basis.proj_solid_angles()
    hemi = (matrix.values * out_sa[:, np.newaxis]).sum(axis=0)
    max_hemi = float(hemi.max()) if hemi.size else 0.0
    return max_hemi, float(min(out_sa.min(), in_sa.min()))


def extract_matrix_diffuse(matrix: MatrixDistribution) -> tuple[SDValue, MatrixDistribution]:
    """Move the table minimum into a Lambertian baseline.

    Returns the baseline (luminance ``min * pi``) and the remaining directional
    matrix. Tables with a non-positive minimum are returned unchanged.
    """

    ymin = float(matrix.values.min())
    if ymin <= 0.0:
        return SDValue(0.0), matrix

    chroma = None
    cx, cy = NEUTRAL_CX, NEUTRAL_CY
    if matrix.chroma is not None:
        cie_x, cie_z = matrix.chroma
        xmin = max(float(cie_x.min()), 0.0)
        zmin = max(float(cie_z.min()), 0.0)
        cx, cy = xyz_to_chromaticity(xmin, ymin, zmin)
        chroma = (cie_x - xmin, cie_z - zmin)

    directional = dataclasses.replace(matrix, values=matrix.values - ymin, chroma=chroma)
    return SDValue(ymin * math.pi, cx, cy), directional
