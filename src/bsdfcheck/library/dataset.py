"""In-memory BSDF dataset: four hemisphere slots plus Lambertian baselines."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import numpy as np
from numpy.typing import NDArray

from bsdfcheck.library.matrix import MatrixDistribution, matrix_extrema
from bsdfcheck.library.tree import TreeDistribution, tree_extrema
from bsdfcheck.types import SDValue

__all__ = [
    "BSDFDataset",
    "DistributionComponent",
    "HemisphereComponent",
    "OtherDistribution",
    "SLOT_NAMES",
    "free_dataset",
]

logger = logging.getLogger(__name__)

SLOT_NAMES = ("rf", "rb", "tf", "tb")


@dataclass(eq=False)
class OtherDistribution:
    """Representation without a known table layout.

    ``evaluator`` receives ``(out_vec, in_vec)`` and returns a value, or
    ``None`` when the pair is outside its domain.
    """

    payload: Any = None
    evaluator: Callable[[NDArray[np.float64], NDArray[np.float64]], SDValue | None] | None = None


DistributionComponent = Union[MatrixDistribution, TreeDistribution, OtherDistribution]


@dataclass(frozen=True, eq=False)
class HemisphereComponent:
    """Distribution components registered for one hemisphere pair.

    Checks act on :attr:`first`, the dominant (first registered) component.
    """

    components: tuple[DistributionComponent, ...]
    max_hemi: float = 0.0
    min_proj_sa: float = math.pi

    def __post_init__(self) -> None:
        components = tuple(self.components)
        if not components:
            raise ValueError("A hemisphere component needs at least one distribution")
        object.__setattr__(self, "components", components)

    @property
    def first(self) -> DistributionComponent:
        return self.components[0]

    @classmethod
    def from_distribution(
        cls, dist: DistributionComponent, *, tree_samples: int = 8
    ) -> HemisphereComponent:
        """Wrap one distribution, computing its reporting extrema."""
        if isinstance(dist, MatrixDistribution):
            max_hemi, min_proj_sa = matrix_extrema(dist)
        elif isinstance(dist, TreeDistribution):
            max_hemi, min_proj_sa = tree_extrema(dist, tree_samples)
        else:
            max_hemi, min_proj_sa = 0.0, math.pi
        return cls((dist,), max_hemi=max_hemi, min_proj_sa=min_proj_sa)


@dataclass(frozen=True, eq=False)
class BSDFDataset:
    """A loaded BSDF, read-only for the lifetime of the checks.

    ``rf``/``rb`` are front and back reflection, ``tf`` transmission from front
    to back and ``tb`` from back to front. Absent slots are ``None``; the four
    Lambertian baselines are always present.
    """

    rf: HemisphereComponent | None = None
    rb: HemisphereComponent | None = None
    tf: HemisphereComponent | None = None
    tb: HemisphereComponent | None = None
    r_lamb_front: SDValue = field(default_factory=SDValue)
    r_lamb_back: SDValue = field(default_factory=SDValue)
    t_lamb_front: SDValue = field(default_factory=SDValue)
    t_lamb_back: SDValue = field(default_factory=SDValue)
    mgf: str | None = None
    name: str = ""
    manufacturer: str = ""
    dimensions_m: tuple[float, float, float] = (0.0, 0.0, 0.0)
    source: Path | None = None

    @property
    def has_geometry(self) -> bool:
        return self.mgf is not None

    def slot(self, name: str) -> HemisphereComponent | None:
        if name not in SLOT_NAMES:
            raise KeyError(f"Unknown hemisphere slot: {name!r}")
        return getattr(self, name)


def free_dataset(dataset: BSDFDataset) -> None:
    """Log the end of a dataset's use. Nothing is released.

    Datasets hold plain arrays owned by the garbage collector; callers may
    keep using ``dataset`` after this returns.
    """
    logger.debug("Done with BSDF dataset %s", dataset.source or dataset.name or "<memory>")
