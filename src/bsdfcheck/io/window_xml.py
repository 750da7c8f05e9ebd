"""Loader for LBNL WINDOW BSDF XML files.

The loader reads the first optical ``Layer`` of a ``WindowElement``:

* ``Material`` supplies the name, manufacturer, and width/height/thickness.
* ``Geometry`` (MGF) is kept verbatim when present.
* ``DataDefinition`` gives the ``IncidentDataStructure`` (``Columns`` or
  ``Rows`` for matrices, ``TensorTree3``/``TensorTree4`` for trees) and any
  custom ``AngleBasis`` definitions.
* Each ``WavelengthData`` block contributes one channel (``Visible`` or
  ``CIE-Y`` luminance; ``CIE-X``/``CIE-Z`` matrix chroma; ``CIE-u``/``CIE-v``
  tree chroma) for one of the four scattering directions.

With ``Columns`` the column basis is the incident basis and each run of
``ninc`` values is one outgoing direction; with ``Rows`` the row basis is the
incident basis and each run of ``nout`` values is one incident direction.
Namespaces are ignored so files with or without
``xmlns="http://windows.lbl.gov"`` load the same way.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from bsdfcheck.config import CheckConfig
from bsdfcheck.errors import BSDFFileNotFoundError, BSDFLoadError
from bsdfcheck.library.basis import AngleBasis, LatitudeRing, get_basis
from bsdfcheck.library.dataset import (
    SLOT_NAMES,
    BSDFDataset,
    DistributionComponent,
    HemisphereComponent,
)
from bsdfcheck.library.matrix import MatrixDistribution, extract_matrix_diffuse
from bsdfcheck.library.tree import TreeDistribution, extract_tree_diffuse, parse_tensor_tree
from bsdfcheck.types import SDValue, Side
from bsdfcheck.utils.paths import StrPath

__all__ = ["load_dataset"]

logger = logging.getLogger(__name__)

_UNIT_TO_METRES = {
    "meter": 1.0,
    "metre": 1.0,
    "centimeter": 1e-2,
    "millimeter": 1e-3,
    "foot": 0.3048,
    "inch": 0.0254,
}

# direction name -> (slot, incident side, outgoing side, Lambertian field)
_DIRECTIONS = {
    "reflection front": ("rf", Side.FRONT, Side.FRONT, "r_lamb_front"),
    "reflection back": ("rb", Side.BACK, Side.BACK, "r_lamb_back"),
    "transmission front": ("tf", Side.FRONT, Side.BACK, "t_lamb_front"),
    "transmission back": ("tb", Side.BACK, Side.FRONT, "t_lamb_back"),
}

_LUMINANCE = {"visible", "cie-y"}
_MATRIX_CHROMA = ("cie-x", "cie-z")
_TREE_CHROMA = ("cie-u", "cie-v")
_NUMBER_SEP = re.compile(r"[\s,]+")


@dataclass
class _SlotData:
    channels: dict[str, str] = field(default_factory=dict)
    column_basis: str = ""
    row_basis: str = ""


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for sub in elem:
        if _local(sub.tag) == name:
            return sub
    return None


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [sub for sub in elem if _local(sub.tag) == name]


def _text(elem: ET.Element | None, name: str, default: str = "") -> str:
    if elem is None:
        return default
    sub = _child(elem, name)
    if sub is None or sub.text is None:
        return default
    return sub.text.strip()


def _length_m(material: ET.Element | None, name: str) -> float:
    if material is None:
        return 0.0
    elem = _child(material, name)
    if elem is None or not (elem.text or "").strip():
        return 0.0
    unit = elem.get("unit", "meter").strip().lower()
    try:
        scale = _UNIT_TO_METRES[unit]
    except KeyError as exc:
        raise BSDFLoadError(f"Unknown dimensional unit {elem.get('unit')!r} for {name}") from exc
    try:
        return float(elem.text) * scale
    except ValueError as exc:
        raise BSDFLoadError(f"Bad {name} value {elem.text!r}") from exc


def _read_angle_bases(definition: ET.Element) -> dict[str, AngleBasis]:
    bases: dict[str, AngleBasis] = {}
    for basis_elem in _children(definition, "AngleBasis"):
        name = _text(basis_elem, "AngleBasisName")
        if not name:
            raise BSDFLoadError("AngleBasis without AngleBasisName")
        blocks = _children(basis_elem, "AngleBasisBlock")
        if not blocks:
            continue
        rings = []
        try:
            for block in blocks:
                bounds = _child(block, "ThetaBounds")
                rings.append(
                    LatitudeRing(
                        float(_text(bounds, "LowerTheta")),
                        float(_text(bounds, "UpperTheta")),
                        int(_text(block, "nPhis")),
                    )
                )
            bases[name.lower()] = AngleBasis(name, tuple(rings))
        except ValueError as exc:
            raise BSDFLoadError(f"Bad angle basis {name!r}: {exc}") from exc
    return bases


def _resolve_basis(name: str, bases: dict[str, AngleBasis]) -> AngleBasis:
    if not name:
        raise BSDFLoadError("WavelengthDataBlock is missing its angle basis")
    basis = bases.get(name.lower())
    if basis is not None:
        return basis
    try:
        return get_basis(name)
    except KeyError as exc:
        raise BSDFLoadError(f"Undefined angle basis {name!r}") from exc


def _parse_numbers(text: str, expected: int, what: str) -> np.ndarray:
    tokens = [tok for tok in _NUMBER_SEP.split(text) if tok]
    if len(tokens) != expected:
        raise BSDFLoadError(f"{what}: expected {expected} values, found {len(tokens)}")
    try:
        return np.asarray([float(tok) for tok in tokens], dtype=np.float64)
    except ValueError as exc:
        raise BSDFLoadError(f"{what}: {exc}") from exc


def _build_matrix(
    direction: str,
    slot: _SlotData,
    bases: dict[str, AngleBasis],
    rows_incident: bool,
) -> MatrixDistribution:
    _, in_side, out_side, _ = _DIRECTIONS[direction]
    column_basis = _resolve_basis(slot.column_basis, bases)
    row_basis = _resolve_basis(slot.row_basis, bases)
    in_basis, out_basis = (row_basis, column_basis) if rows_incident else (column_basis, row_basis)
    ninc, nout = in_basis.nangles, out_basis.nangles

    def table(channel: str) -> np.ndarray:
        flat = _parse_numbers(slot.channels[channel], ninc * nout, f"{direction} {channel}")
        if rows_incident:
            return flat.reshape(ninc, nout).T
        return flat.reshape(nout, ninc)

    luminance = next(ch for ch in slot.channels if ch in _LUMINANCE)
    chroma = None
    if all(ch in slot.channels for ch in _MATRIX_CHROMA):
        chroma = (table("cie-x"), table("cie-z"))
    elif any(ch in slot.channels for ch in _MATRIX_CHROMA):
        logger.warning("%s: incomplete CIE-X/CIE-Z data, loading luminance only", direction)
    return MatrixDistribution(
        table(luminance),
        in_basis=in_basis,
        out_basis=out_basis,
        in_side=in_side,
        out_side=out_side,
        chroma=chroma,
    )


def _build_tree(direction: str, slot: _SlotData, ndim: int) -> TreeDistribution:
    _, in_side, out_side, _ = _DIRECTIONS[direction]
    luminance = next(ch for ch in slot.channels if ch in _LUMINANCE)
    trees = [parse_tensor_tree(slot.channels[luminance], ndim)]
    if all(ch in slot.channels for ch in _TREE_CHROMA):
        trees.extend(parse_tensor_tree(slot.channels[ch], ndim) for ch in _TREE_CHROMA)
    elif any(ch in slot.channels for ch in _TREE_CHROMA):
        logger.warning("%s: incomplete CIE-u/CIE-v data, loading luminance only", direction)
    return TreeDistribution(tuple(trees), in_side=in_side, out_side=out_side)


def _collect_slots(layer: ET.Element) -> dict[str, _SlotData]:
    slots: dict[str, _SlotData] = {}
    for wdata in _children(layer, "WavelengthData"):
        channel = _text(wdata, "Wavelength").lower()
        for block in _children(wdata, "WavelengthDataBlock"):
            direction = _text(block, "WavelengthDataDirection").lower()
            if direction not in _DIRECTIONS:
                logger.warning("Skipping unknown WavelengthDataDirection %r", direction)
                continue
            if channel not in _LUMINANCE and channel not in _MATRIX_CHROMA + _TREE_CHROMA:
                logger.warning("Skipping unsupported wavelength channel %r", channel)
                continue
            slot = slots.setdefault(direction, _SlotData())
            if channel in slot.channels:
                raise BSDFLoadError(f"Duplicate {channel} data for {direction}")
            slot.channels[channel] = _text(block, "ScatteringData")
            slot.column_basis = slot.column_basis or _text(block, "ColumnAngleBasis")
            slot.row_basis = slot.row_basis or _text(block, "RowAngleBasis")
    return slots


def _parse_layer(layer: ET.Element, config: CheckConfig, source: Path) -> BSDFDataset:
    material = _child(layer, "Material")
    geometry = _child(layer, "Geometry")
    mgf = None
    if geometry is not None and geometry.get("format", "MGF").upper() == "MGF":
        mgf = "".join(geometry.itertext()).strip() or None

    definition = _child(layer, "DataDefinition")
    if definition is None:
        raise BSDFLoadError("Missing DataDefinition")
    structure = _text(definition, "IncidentDataStructure").lower()
    tree_ndim = {"tensortree3": 3, "tensortree4": 4}.get(structure)
    if tree_ndim is None and structure not in {"columns", "rows"}:
        raise BSDFLoadError(f"Unsupported IncidentDataStructure {structure!r}")
    bases = _read_angle_bases(definition)

    slots = _collect_slots(layer)
    if not slots:
        raise BSDFLoadError("No scattering data found")

    fields: dict[str, object] = {}
    for direction, slot in slots.items():
        slot_name, _, _, lamb_name = _DIRECTIONS[direction]
        if not any(ch in slot.channels for ch in _LUMINANCE):
            raise BSDFLoadError(f"{direction}: chroma data without Visible/CIE-Y luminance")
        dist: DistributionComponent
        lamb = SDValue(0.0)
        if tree_ndim is None:
            dist = _build_matrix(direction, slot, bases, rows_incident=structure == "rows")
            if config.extract_diffuse:
                lamb, dist = extract_matrix_diffuse(dist)
        else:
            dist = _build_tree(direction, slot, tree_ndim)
            if config.extract_diffuse:
                lamb, dist = extract_tree_diffuse(dist)
        fields[lamb_name] = lamb
        hemi = HemisphereComponent.from_distribution(dist, tree_samples=config.tree_hemi_samples)
        if config.extract_diffuse and hemi.max_hemi < config.min_directional_hemi:
            logger.debug("%s: no directional part left after diffuse extraction", direction)
            continue
        fields[slot_name] = hemi

    return BSDFDataset(
        mgf=mgf,
        name=_text(material, "Name"),
        manufacturer=_text(material, "Manufacturer"),
        dimensions_m=(
            _length_m(material, "Width"),
            _length_m(material, "Height"),
            _length_m(material, "Thickness"),
        ),
        source=source,
        **fields,
    )


def load_dataset(path: StrPath, config: CheckConfig | None = None) -> BSDFDataset:
    """Parse a WINDOW BSDF XML file into a :class:`BSDFDataset`.

    Raises :class:`BSDFLoadError` (or :class:`BSDFFileNotFoundError`) for any
    file that cannot be read or converted.
    """

    config = config or CheckConfig()
    src = Path(path)
    if not src.is_file():
        raise BSDFFileNotFoundError(f"Cannot find file '{src}'")
    try:
        root = ET.parse(src).getroot()
    except ET.ParseError as exc:
        raise BSDFLoadError(f"{src}: XML syntax error: {exc}") from exc
    except OSError as exc:
        raise BSDFLoadError(f"{src}: {exc}") from exc

    if _local(root.tag) != "WindowElement":
        raise BSDFLoadError(f"{src}: root element is {_local(root.tag)!r}, not 'WindowElement'")
    optical = _child(root, "Optical")
    layer = _child(optical, "Layer") if optical is not None else None
    if layer is None:
        raise BSDFLoadError(f"{src}: missing Optical/Layer element")

    try:
        dataset = _parse_layer(layer, config, src)
    except BSDFLoadError as exc:
        raise BSDFLoadError(f"{src}: {exc}") from exc
    except ValueError as exc:
        raise BSDFLoadError(f"{src}: inconsistent BSDF data: {exc}") from exc
    present = [name for name in SLOT_NAMES if dataset.slot(name) is not None]
    logger.debug("Loaded %s with slots %s", src, present)
    return dataset
