"""Pytest configuration and synthetic BSDF fixtures for the bsdfcheck test suite."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np
import pytest

from bsdfcheck.library.basis import AngleBasis
from bsdfcheck.library.dataset import HemisphereComponent
from bsdfcheck.library.matrix import MatrixDistribution
from bsdfcheck.types import Side

_SIDES = {
    "rf": (Side.FRONT, Side.FRONT),
    "rb": (Side.BACK, Side.BACK),
    "tf": (Side.FRONT, Side.BACK),
    "tb": (Side.BACK, Side.FRONT),
}

_BLOCK = """\
  <WavelengthData>
   <Wavelength unit="Integral">{channel}</Wavelength>
   <WavelengthDataBlock>
    <WavelengthDataDirection>{direction}</WavelengthDataDirection>
    <ColumnAngleBasis>{basis}</ColumnAngleBasis>
    <RowAngleBasis>{basis}</RowAngleBasis>
    <ScatteringData>{data}</ScatteringData>
   </WavelengthDataBlock>
  </WavelengthData>
"""

_DOCUMENT = """\
<?xml version="1.0" encoding="UTF-8"?>
<WindowElement xmlns="http://windows.lbl.gov">
 <WindowElementType>System</WindowElementType>
 <Optical>
 <Layer>
  <Material>
   <Name>{name}</Name>
   <Manufacturer>{manufacturer}</Manufacturer>
   <Thickness unit="Millimeter">6</Thickness>
   <Width unit="Meter">1</Width>
   <Height unit="Meter">2</Height>
  </Material>
{geometry}  <DataDefinition>
   <IncidentDataStructure>{structure}</IncidentDataStructure>
{angle_bases}  </DataDefinition>
{blocks} </Layer>
 </Optical>
</WindowElement>
"""


@pytest.fixture
def make_matrix() -> Callable[..., MatrixDistribution]:
    """Factory for matrices on a pair of bases, oriented for a named slot."""

    def _make(
        basis: AngleBasis,
        slot: str = "rf",
        value: float | np.ndarray = 1.0,
        *,
        out_basis: AngleBasis | None = None,
        chroma: tuple[np.ndarray, np.ndarray] | None = None,
    ) -> MatrixDistribution:
        out_basis = out_basis or basis
        in_side, out_side = _SIDES[slot]
        values = np.broadcast_to(
            np.asarray(value, dtype=np.float64), (out_basis.nangles, basis.nangles)
        )
        return MatrixDistribution(
            values,
            in_basis=basis,
            out_basis=out_basis,
            in_side=in_side,
            out_side=out_side,
            chroma=chroma,
        )

    return _make


@pytest.fixture
def hemi() -> Callable[..., HemisphereComponent]:
    """Wrap a distribution as a hemisphere component with computed extrema."""

    return HemisphereComponent.from_distribution


def scattering_block(
    channel: str, direction: str, basis: str, values: Sequence[float] | str
) -> str:
    data = values if isinstance(values, str) else " ".join(f"{v:g}" for v in values)
    return _BLOCK.format(channel=channel, direction=direction, basis=basis, data=data)


@pytest.fixture
def bsdf_block() -> Callable[..., str]:
    return scattering_block


@pytest.fixture
def write_bsdf(tmp_path: Path) -> Callable[..., Path]:
    """Write a WINDOW XML document built from ``scattering_block`` strings."""

    def _write(
        blocks: Sequence[str],
        *,
        filename: str = "sample.xml",
        structure: str = "Columns",
        angle_bases: str = "",
        geometry: str = "",
        name: str = "Synthetic Blind",
        manufacturer: str = "ACME Glazing",
    ) -> Path:
        document = _DOCUMENT.format(
            name=name,
            manufacturer=manufacturer,
            geometry=geometry,
            structure=structure,
            angle_bases=angle_bases,
            blocks="".join(blocks),
        )
        path = tmp_path / filename
        path.write_text(document, encoding="utf-8")
        return path

    return _write
