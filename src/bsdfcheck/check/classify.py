"""Structural classification of a loaded BSDF."""

from __future__ import annotations

from bsdfcheck.library.dataset import BSDFDataset, DistributionComponent
from bsdfcheck.library.matrix import MatrixDistribution
from bsdfcheck.library.tree import TreeDistribution
from bsdfcheck.types import BSDFFlags, BSDFType

__all__ = ["classify", "dominant_component"]

# Transmission is the most informative pair, so it is inspected first.
_SLOT_ORDER = ("tb", "tf", "rf", "rb")

_KLEMS_BY_NINC = {
    145: BSDFType.KLEMS_FULL,
    73: BSDFType.KLEMS_HALF,
    41: BSDFType.KLEMS_QUARTER,
}

_TREE_BY_NDIM = {
    4: BSDFType.ANISOTROPIC_TREE,
    3: BSDFType.ISOTROPIC_TREE,
}


def dominant_component(dataset: BSDFDataset) -> DistributionComponent | None:
    """First component of the first present slot in ``tb, tf, rf, rb`` order."""
    for name in _SLOT_ORDER:
        hemi = dataset.slot(name)
        if hemi is not None:
            return hemi.first
    return None


def classify(dataset: BSDFDataset) -> tuple[BSDFType, BSDFFlags]:
    """Return the representation type of ``dataset`` and its feature flags."""

    component = dominant_component(dataset)
    if component is None:
        return BSDFType.PURE_LAMBERTIAN, BSDFFlags.NONE

    match component:
        case MatrixDistribution():
            flags = BSDFFlags.MATRIX
            if component.in_color:
                flags |= BSDFFlags.IN_COLOR
            return _KLEMS_BY_NINC.get(component.ninc, BSDFType.UNKNOWN_MATRIX), flags
        case TreeDistribution():
            flags = BSDFFlags.TTREE
            if component.in_color:
                flags |= BSDFFlags.IN_COLOR
            bsdf_type = _TREE_BY_NDIM.get(component.ndim, BSDFType.UNKNOWN_TREE)
            if bsdf_type is BSDFType.ISOTROPIC_TREE:
                flags |= BSDFFlags.ISOTROPIC
            return bsdf_type, flags
        case _:
            return BSDFType.UNKNOWN, BSDFFlags.NONE
