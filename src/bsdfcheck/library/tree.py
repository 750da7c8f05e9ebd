"""Tensor-tree BSDF distributions.

A tensor tree subdivides the unit hypercube ``[0, 1)^ndim`` of direction
coordinates. Anisotropic trees (``ndim == 4``) index
``(u_in, v_in, u_out, v_out)``; isotropic trees (``ndim == 3``) index
``(u_in, u_out, v_out)`` after rotating the pair so the incident azimuth is
fixed. Directions map to the unit square with the Shirley-Chiu concentric
mapping of their projected ``(x, y)`` components, which preserves area, so a
square cell of side ``s`` covers a projected solid angle of ``pi * s**2``.

Serialised trees use nested braces. A node is either ``2**ndim`` child nodes
or a leaf holding ``k**ndim`` values (``k`` a power of two), both in C order
with the first coordinate varying slowest::

    { {0.1 0.2 ...} { ... } ... }
"""

from __future__ import annotations

import dataclasses
import itertools
import math
import re
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from bsdfcheck.errors import BSDFLoadError
from bsdfcheck.library.basis import orient
from bsdfcheck.library.color import uv_to_chromaticity
from bsdfcheck.types import SDValue, Side

__all__ = [
    "TensorTree",
    "TreeDistribution",
    "TreeNode",
    "disk_to_square",
    "extract_tree_diffuse",
    "parse_tensor_tree",
    "tree_coordinates",
    "tree_extrema",
]

_TOKEN_RE = re.compile(r"[{}]|[^\s{},]+")
_COORD_MAX = 1.0 - 1e-12


@dataclass(eq=False, slots=True)
class TreeNode:
    children: tuple[TreeNode, ...] = ()
    leaf: NDArray[np.float64] | None = None

    @property
    def is_leaf(self) -> bool:
        return self.leaf is not None


def _split(pos: list[float]) -> tuple[int, list[float]]:
    """Child index and child-relative coordinates for a branch step."""
    child = 0
    inner = []
    for p in pos:
        bit = 1 if p >= 0.5 else 0
        child = (child << 1) | bit
        inner.append(p * 2.0 - bit)
    return child, inner


def _leaf_index(leaf: NDArray[np.float64], pos: list[float]) -> tuple[int, ...]:
    k = leaf.shape[0]
    return tuple(min(int(p * k), k - 1) for p in pos)


@dataclass(eq=False)
class TensorTree:
    ndim: int
    root: TreeNode

    def __post_init__(self) -> None:
        if self.ndim < 1:
            raise ValueError("ndim must be positive")

    def lookup(self, coords: ArrayLike) -> float:
        pos = [min(max(float(c), 0.0), _COORD_MAX) for c in np.asarray(coords).reshape(-1)]
        if len(pos) != self.ndim:
            raise ValueError(f"Expected {self.ndim} coordinates, got {len(pos)}")
        node = self.root
        while not node.is_leaf:
            child, pos = _split(pos)
            node = node.children[child]
        return float(node.leaf[_leaf_index(node.leaf, pos)])

    def min_cell(self) -> float:
        """Side length of the smallest cell, as a fraction of the unit cube."""

        def walk(node: TreeNode, size: float) -> float:
            if node.is_leaf:
                return size / node.leaf.shape[0]
            return min(walk(child, size * 0.5) for child in node.children)

        return walk(self.root, 1.0)

    def min_value(self) -> float:
        def walk(node: TreeNode) -> float:
            if node.is_leaf:
                return float(node.leaf.min())
            return min(walk(child) for child in node.children)

        return walk(self.root)

    def shifted(self, offset: float) -> TensorTree:
        """Copy of the tree with ``offset`` added to every leaf value."""

        def walk(node: TreeNode) -> TreeNode:
            if node.is_leaf:
                return TreeNode(leaf=node.leaf + offset)
            return TreeNode(children=tuple(walk(child) for child in node.children))

        return TensorTree(self.ndim, walk(self.root))

    def hemispherical(self, in_coords: ArrayLike) -> float:
        """Integrate over the two outgoing coordinates for fixed incident ones.

        The result is in projected-solid-angle units (a constant tree of value
        ``c`` integrates to ``pi * c``).
        """

        n_in = self.ndim - 2
        pos_in = [min(max(float(c), 0.0), _COORD_MAX) for c in np.asarray(in_coords).reshape(-1)]
        if n_in < 0 or len(pos_in) != n_in:
            raise ValueError(f"Expected {n_in} incident coordinates")

        def walk(node: TreeNode, pos: list[float], area: float) -> float:
            if node.is_leaf:
                k = node.leaf.shape[0]
                sub = node.leaf[tuple(min(int(p * k), k - 1) for p in pos)]
                return float(np.mean(sub)) * area
            bits = [1 if p >= 0.5 else 0 for p in pos]
            inner = [p * 2.0 - b for p, b in zip(pos, bits)]
            total = 0.0
            for child_index, child in enumerate(node.children):
                if all(
                    ((child_index >> (self.ndim - 1 - d)) & 1) == bits[d] for d in range(n_in)
                ):
                    total += walk(child, inner, area * 0.25)
            return total

        return math.pi * walk(self.root, pos_in, 1.0)


@dataclass(eq=False)
class TreeDistribution:
    """Luminance tree with optional CIE (u', v') chroma trees."""

    trees: tuple[TensorTree, ...]
    in_side: Side = Side.FRONT
    out_side: Side = Side.FRONT

    def __post_init__(self) -> None:
        self.trees = tuple(self.trees)
        self.in_side = Side(self.in_side)
        self.out_side = Side(self.out_side)
        if not self.trees:
            raise ValueError("A tree distribution needs a primary tree")
        if any(tree.ndim != self.trees[0].ndim for tree in self.trees[1:]):
            raise ValueError("Chroma trees must match the primary tree dimensionality")

    @property
    def ndim(self) -> int:
        return self.trees[0].ndim

    @property
    def in_color(self) -> bool:
        return len(self.trees) > 1

    def value_at(self, out_vec: ArrayLike, in_vec: ArrayLike) -> SDValue | None:
        coords = tree_coordinates(self.ndim, out_vec, in_vec, self.in_side, self.out_side)
        if coords is None:
            return None
        cie_y = self.trees[0].lookup(coords)
        if len(self.trees) < 3:
            return SDValue(cie_y)
        cx, cy = uv_to_chromaticity(self.trees[1].lookup(coords), self.trees[2].lookup(coords))
        return SDValue(cie_y, cx, cy)


def disk_to_square(x: float, y: float) -> tuple[float, float]:
    """Shirley-Chiu concentric map from the unit disk to ``[0, 1]^2``."""

    r = math.hypot(x, y)
    if r == 0.0:
        return 0.5, 0.5
    phi = math.atan2(y, x)
    if phi < -math.pi / 4.0:
        phi += 2.0 * math.pi
    if phi < math.pi / 4.0:
        a, b = r, phi * r / (math.pi / 4.0)
    elif phi < 3.0 * math.pi / 4.0:
        b = r
        a = -(phi - math.pi / 2.0) * b / (math.pi / 4.0)
    elif phi < 5.0 * math.pi / 4.0:
        a = -r
        b = (phi - math.pi) * a / (math.pi / 4.0)
    else:
        b = -r
        a = -(phi - 3.0 * math.pi / 2.0) * b / (math.pi / 4.0)
    return 0.5 * (a + 1.0), 0.5 * (b + 1.0)


def _local_unit(vec: ArrayLike, side: Side, incident: bool) -> NDArray[np.float64] | None:
    local = orient(vec, side, incident=incident)
    norm = float(np.linalg.norm(local))
    if norm == 0.0 or not math.isfinite(norm):
        return None
    local /= norm
    if local[2] < 0.0:
        return None
    return local


def tree_coordinates(
    ndim: int,
    out_vec: ArrayLike,
    in_vec: ArrayLike,
    in_side: Side,
    out_side: Side,
) -> tuple[float, ...] | None:
    """Tree coordinates for a direction pair, or ``None`` outside the domain."""

    v_in = _local_unit(in_vec, in_side, True)
    v_out = _local_unit(out_vec, out_side, False)
    if v_in is None or v_out is None:
        return None
    if ndim == 4:
        return (*disk_to_square(v_in[0], v_in[1]), *disk_to_square(v_out[0], v_out[1]))
    if ndim == 3:
        rot = math.pi - math.atan2(v_in[1], v_in[0])
        cos_r, sin_r = math.cos(rot), math.sin(rot)
        x_out = cos_r * v_out[0] - sin_r * v_out[1]
        y_out = sin_r * v_out[0] + cos_r * v_out[1]
        u_in = 0.5 * (1.0 - math.hypot(v_in[0], v_in[1]))
        return (u_in, *disk_to_square(x_out, y_out))
    return None


def _parse_node(tokens: list[str], pos: int, ndim: int) -> tuple[TreeNode, int]:
    if pos >= len(tokens) or tokens[pos] != "{":
        raise BSDFLoadError(f"Expected '{{' at tensor tree token {pos}")
    pos += 1
    if pos < len(tokens) and tokens[pos] == "{":
        children = []
        for _ in range(2**ndim):
            child, pos = _parse_node(tokens, pos, ndim)
            children.append(child)
        if pos >= len(tokens) or tokens[pos] != "}":
            raise BSDFLoadError(
                f"Tensor tree branch must have exactly {2**ndim} children (token {pos})"
            )
        return TreeNode(children=tuple(children)), pos + 1

    values: list[float] = []
    while pos < len(tokens) and tokens[pos] not in "{}":
        try:
            values.append(float(tokens[pos]))
        except ValueError as exc:
            raise BSDFLoadError(f"Bad tensor tree value {tokens[pos]!r}") from exc
        pos += 1
    if pos >= len(tokens) or tokens[pos] != "}":
        raise BSDFLoadError("Unterminated tensor tree leaf")
    if not values:
        raise BSDFLoadError("Empty tensor tree leaf")
    k = round(len(values) ** (1.0 / ndim))
    if k**ndim != len(values) or k & (k - 1):
        raise BSDFLoadError(
            f"Tensor tree leaf has {len(values)} values; expected a power-of-two grid "
            f"in {ndim} dimensions"
        )
    leaf = np.asarray(values, dtype=np.float64).reshape((k,) * ndim)
    return TreeNode(leaf=leaf), pos + 1


def parse_tensor_tree(text: str, ndim: int) -> TensorTree:
    tokens = _TOKEN_RE.findall(text)
    if not tokens:
        raise BSDFLoadError("Empty tensor tree data")
    root, pos = _parse_node(tokens, 0, ndim)
    if pos != len(tokens):
        raise BSDFLoadError(f"Unexpected data after tensor tree at token {pos}")
    return TensorTree(ndim, root)


def tree_extrema(dist: TreeDistribution, samples: int = 8) -> tuple[float, float]:
    """Return ``(max_hemi, min_proj_sa)`` for a tree distribution.

    The hemispherical maximum is estimated from ``samples`` incident positions
    per incident coordinate. Isotropic trees only sample ``u_in < 0.5``, the
    half of the axis reachable by :func:`tree_coordinates`.
    """

    tree = dist.trees[0]
    min_proj_sa = math.pi * tree.min_cell() ** 2
    n_in = tree.ndim - 2
    if n_in < 1:
        return 0.0, min_proj_sa
    span = 0.5 if tree.ndim == 3 else 1.0
    axis = [span * (j + 0.5) / samples for j in range(samples)]
    max_hemi = max(tree.hemispherical(point) for point in itertools.product(axis, repeat=n_in))
    return max_hemi, min_proj_sa


def extract_tree_diffuse(dist: TreeDistribution) -> tuple[SDValue, TreeDistribution]:
    """Move the primary tree minimum into a neutral Lambertian baseline."""

    ymin = dist.trees[0].min_value()
    if ymin <= 0.0:
        return SDValue(0.0), dist
    trees = (dist.trees[0].shifted(-ymin), *dist.trees[1:])
    return SDValue(ymin * math.pi), dataclasses.replace(dist, trees=trees)
