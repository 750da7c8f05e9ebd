"""Helmholtz reciprocity check for matrix-tabulated BSDFs.

Every (incident, outgoing) bin-centre pair of the operative matrix is compared
with the general evaluator at the reversed pair. Pairs whose forward value is
negligible are skipped, as are bins whose centre lies outside the basis.
Tree-tabulated and unknown representations are not checked and report no
data.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from bsdfcheck.library.dataset import BSDFDataset, HemisphereComponent
from bsdfcheck.library.evaluate import evaluate_bsdf
from bsdfcheck.library.matrix import (
    MatrixDistribution,
    lookup_matrix_value,
    reconstruct_direction,
)
from bsdfcheck.types import BSDFFlags, SDValue, Side

__all__ = [
    "ErrorAccumulator",
    "NEGLIGIBLE_VALUE",
    "ReciprocityStats",
    "check_reciprocity",
    "relative_error_pct",
    "select_operative",
]

logger = logging.getLogger(__name__)

NEGLIGIBLE_VALUE = 1e-6
"""Forward values at or below this are not tested."""

Evaluator = Callable[[BSDFDataset, ArrayLike, ArrayLike], SDValue]


@dataclass(frozen=True, slots=True)
class ReciprocityStats:
    """Min/mean/max percentage error; ``tested == 0`` means no data.

    ``error`` holds the evaluation failure message when the check was abandoned.
    """

    label: str
    minimum: float = 0.0
    mean: float = 0.0
    maximum: float = 0.0
    tested: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def has_data(self) -> bool:
        return self.tested > 0 and not self.failed

    def format(self) -> str:
        if not self.has_data:
            return f"{self.label}\t0\t0\t0"
        return f"{self.label}\t{self.minimum:.1f}\t{self.mean:.1f}\t{self.maximum:.1f}"

    def as_dict(self) -> dict[str, object]:
        return {
            "label": self.label,
            "min_pct": self.minimum,
            "mean_pct": self.mean,
            "max_pct": self.maximum,
            "tested": self.tested,
            "error": self.error,
        }


class ErrorAccumulator:
    """Running min, max, sum and count of relative errors."""

    __slots__ = ("minimum", "maximum", "total", "count")

    def __init__(self) -> None:
        self.minimum = math.inf
        self.maximum = 0.0
        self.total = 0.0
        self.count = 0

    def add(self, error: float) -> None:
        if error < self.minimum:
            self.minimum = error
        if error > self.maximum:
            self.maximum = error
        self.total += error
        self.count += 1

    def result(self, label: str) -> ReciprocityStats:
        if not self.count:
            return ReciprocityStats(label)
        return ReciprocityStats(
            label,
            minimum=self.minimum,
            mean=self.total / self.count,
            maximum=self.maximum,
            tested=self.count,
        )


def relative_error_pct(forward: float, reverse: float) -> float:
    return 100.0 * abs(forward - reverse) / forward


def select_operative(
    dataset: BSDFDataset, side1: Side | int, side2: Side | int
) -> HemisphereComponent | None:
    """Slot whose table is tested for a side pair, or ``None`` if not applicable.

    Reflection uses the slot of that side. Transmission tests ``tf`` and needs
    ``tb`` present for the reversed evaluation.
    """

    side1, side2 = Side(side1), Side(side2)
    if side1 == side2:
        return dataset.rf if side1 == Side.FRONT else dataset.rb
    if dataset.tf is None or dataset.tb is None:
        return None
    return dataset.tf


def check_reciprocity(
    label: str,
    side1: Side | int,
    side2: Side | int,
    dataset: BSDFDataset,
    flags: BSDFFlags,
    *,
    threshold: float = NEGLIGIBLE_VALUE,
    evaluator: Evaluator = evaluate_bsdf,
) -> ReciprocityStats:
    """Reciprocity error statistics for one side pair.

    :class:`~bsdfcheck.errors.BSDFEvaluationError` from ``evaluator`` aborts
    the check and propagates; no partial statistic is returned.
    :func:`~bsdfcheck.report.build_report` records it on the stats instead.
    """

    hemi = select_operative(dataset, side1, side2)
    if hemi is None:
        logger.debug("%s: no data for sides (%d, %d)", label, side1, side2)
        return ReciprocityStats(label)
    if not flags & BSDFFlags.MATRIX or not isinstance(hemi.first, MatrixDistribution):
        logger.debug("%s: reciprocity is only checked for matrix data", label)
        return ReciprocityStats(label)

    matrix = hemi.first
    acc = ErrorAccumulator()
    for i in range(matrix.ninc - 1, -1, -1):
        v_in, ok = reconstruct_direction(matrix, i + 0.5, "in")
        if not ok:
            continue
        for o in range(matrix.nout - 1, -1, -1):
            v_out, ok = reconstruct_direction(matrix, o + 0.5, "out")
            if not ok:
                continue
            forward = lookup_matrix_value(matrix, o, i)
            if forward <= threshold:
                continue
            # reversed pair: light arrives along v_out and leaves along v_in
            reverse = evaluator(dataset, np.asarray(v_in), np.asarray(v_out))
            acc.add(relative_error_pct(forward, reverse.cie_y))

    stats = acc.result(label)
    logger.debug("%s: tested %d direction pairs", label, stats.tested)
    return stats
