"""BSDF data library: angle bases, distributions, datasets, and evaluation.

This layer owns the in-memory BSDF representation that the checks in
:mod:`bsdfcheck.check` read. Loading from disk lives in :mod:`bsdfcheck.io`.
"""

from .basis import (
    BUILTIN_BASES,
    KLEMS_FULL,
    KLEMS_HALF,
    KLEMS_QUARTER,
    AngleBasis,
    LatitudeRing,
    get_basis,
    orient,
)
from .color import chromaticity_to_xyz, mix_values, uv_to_chromaticity, xyz_to_chromaticity
from .dataset import (
    SLOT_NAMES,
    BSDFDataset,
    DistributionComponent,
    HemisphereComponent,
    OtherDistribution,
    free_dataset,
)
from .evaluate import component_value, evaluate_bsdf, select_hemisphere
from .matrix import (
    MatrixDistribution,
    extract_matrix_diffuse,
    lookup_matrix_value,
    matrix_extrema,
    reconstruct_direction,
)
from .tree import (
    TensorTree,
    TreeDistribution,
    TreeNode,
    disk_to_square,
    extract_tree_diffuse,
    parse_tensor_tree,
    tree_coordinates,
    tree_extrema,
)

__all__ = [
    "AngleBasis",
    "BSDFDataset",
    "BUILTIN_BASES",
    "DistributionComponent",
    "HemisphereComponent",
    "KLEMS_FULL",
    "KLEMS_HALF",
    "KLEMS_QUARTER",
    "LatitudeRing",
    "MatrixDistribution",
    "OtherDistribution",
    "SLOT_NAMES",
    "TensorTree",
    "TreeDistribution",
    "TreeNode",
    "chromaticity_to_xyz",
    "component_value",
    "disk_to_square",
    "evaluate_bsdf",
    "extract_matrix_diffuse",
    "extract_tree_diffuse",
    "free_dataset",
    "get_basis",
    "lookup_matrix_value",
    "matrix_extrema",
    "mix_values",
    "orient",
    "parse_tensor_tree",
    "reconstruct_direction",
    "select_hemisphere",
    "tree_coordinates",
    "tree_extrema",
    "uv_to_chromaticity",
    "xyz_to_chromaticity",
]
