from __future__ import annotations

import numpy as np
import pytest

from bsdfcheck.check.classify import classify, dominant_component
from bsdfcheck.library.basis import KLEMS_FULL, KLEMS_HALF, KLEMS_QUARTER, AngleBasis, LatitudeRing
from bsdfcheck.library.dataset import BSDFDataset, HemisphereComponent, OtherDistribution
from bsdfcheck.library.tree import TreeDistribution, parse_tensor_tree
from bsdfcheck.types import BSDFFlags, BSDFType, SDValue


def _tree_slot(ndim: int, colour: bool = False) -> HemisphereComponent:
    trees = [parse_tensor_tree("{ 0.5 }", ndim)]
    if colour:
        trees += [parse_tensor_tree("{ 0.2 }", ndim), parse_tensor_tree("{ 0.45 }", ndim)]
    return HemisphereComponent.from_distribution(TreeDistribution(tuple(trees)), tree_samples=1)


def test_pure_lambertian() -> None:
    dataset = BSDFDataset(r_lamb_front=SDValue(0.4))
    assert classify(dataset) == (BSDFType.PURE_LAMBERTIAN, BSDFFlags.NONE)
    assert dominant_component(dataset) is None


@pytest.mark.parametrize(
    ("basis", "expected"),
    [
        (KLEMS_FULL, BSDFType.KLEMS_FULL),
        (KLEMS_HALF, BSDFType.KLEMS_HALF),
        (KLEMS_QUARTER, BSDFType.KLEMS_QUARTER),
    ],
)
def test_klems_matrices(make_matrix, hemi, basis: AngleBasis, expected: BSDFType) -> None:
    dataset = BSDFDataset(tf=hemi(make_matrix(basis, "tf", 0.1)))
    assert classify(dataset) == (expected, BSDFFlags.MATRIX)


def test_unknown_matrix_size(make_matrix, hemi) -> None:
    odd = AngleBasis("Odd", (LatitudeRing(0, 90, 999),))
    single = AngleBasis("Single", (LatitudeRing(0, 90, 1),))
    dataset = BSDFDataset(rf=hemi(make_matrix(odd, "rf", 0.1, out_basis=single)))
    assert classify(dataset) == (BSDFType.UNKNOWN_MATRIX, BSDFFlags.MATRIX)


def test_colour_matrix_sets_flag(make_matrix, hemi) -> None:
    chroma = (np.full((41, 41), 0.1), np.full((41, 41), 0.1))
    dataset = BSDFDataset(rb=hemi(make_matrix(KLEMS_QUARTER, "rb", 0.1, chroma=chroma)))
    bsdf_type, flags = classify(dataset)
    assert bsdf_type is BSDFType.KLEMS_QUARTER
    assert flags == BSDFFlags.MATRIX | BSDFFlags.IN_COLOR


def test_trees() -> None:
    assert classify(BSDFDataset(rf=_tree_slot(4))) == (BSDFType.ANISOTROPIC_TREE, BSDFFlags.TTREE)
    bsdf_type, flags = classify(BSDFDataset(tb=_tree_slot(3, colour=True)))
    assert bsdf_type is BSDFType.ISOTROPIC_TREE
    assert flags == BSDFFlags.TTREE | BSDFFlags.ISOTROPIC | BSDFFlags.IN_COLOR
    bsdf_type, flags = classify(BSDFDataset(tb=_tree_slot(2)))
    assert bsdf_type is BSDFType.UNKNOWN_TREE
    assert flags == BSDFFlags.TTREE


def test_unknown_representation() -> None:
    dataset = BSDFDataset(tf=HemisphereComponent((OtherDistribution(payload="proxy"),)))
    assert classify(dataset) == (BSDFType.UNKNOWN, BSDFFlags.NONE)


def test_transmission_back_is_inspected_first(make_matrix, hemi) -> None:
    tb = hemi(make_matrix(KLEMS_HALF, "tb", 0.1))
    dataset = BSDFDataset(rf=_tree_slot(4), tf=hemi(make_matrix(KLEMS_FULL, "tf")), tb=tb)
    assert dominant_component(dataset) is tb.first
    assert classify(dataset)[0] is BSDFType.KLEMS_HALF


def test_reflection_only_uses_front_before_back(make_matrix, hemi) -> None:
    dataset = BSDFDataset(rf=hemi(make_matrix(KLEMS_FULL, "rf")), rb=_tree_slot(4))
    assert classify(dataset) == (BSDFType.KLEMS_FULL, BSDFFlags.MATRIX)
