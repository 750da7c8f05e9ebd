"""General BSDF evaluation for an arbitrary direction pair."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from bsdfcheck.errors import BSDFEvaluationError
from bsdfcheck.library.color import mix_values
from bsdfcheck.library.dataset import (
    BSDFDataset,
    DistributionComponent,
    HemisphereComponent,
    OtherDistribution,
)
from bsdfcheck.library.matrix import MatrixDistribution
from bsdfcheck.library.tree import TreeDistribution
from bsdfcheck.types import SDValue

__all__ = ["component_value", "evaluate_bsdf", "select_hemisphere"]


def _unit(vec: ArrayLike, role: str) -> NDArray[np.float64]:
    arr = np.asarray(vec, dtype=np.float64)
    if arr.shape != (3,):
        raise BSDFEvaluationError(f"{role} vector must have 3 components, got shape {arr.shape}")
    norm = float(np.linalg.norm(arr))
    if norm == 0.0 or not math.isfinite(norm):
        raise BSDFEvaluationError(f"{role} vector must be finite and non-zero")
    return arr / norm


def select_hemisphere(
    dataset: BSDFDataset, out_vec: NDArray[np.float64], in_vec: NDArray[np.float64]
) -> tuple[SDValue, HemisphereComponent | None]:
    """Lambertian baseline and slot serving a direction pair.

    Transmission falls back to the opposite transmission slot when the
    matching one is absent.
    """

    in_front = in_vec[2] > 0.0
    out_front = out_vec[2] > 0.0
    if in_front and out_front:
        return dataset.r_lamb_front, dataset.rf
    if not (in_front or out_front):
        return dataset.r_lamb_back, dataset.rb
    if in_front:
        return dataset.t_lamb_front, dataset.tf if dataset.tf is not None else dataset.tb
    return dataset.t_lamb_back, dataset.tb if dataset.tb is not None else dataset.tf


def component_value(
    component: DistributionComponent, out_vec: NDArray[np.float64], in_vec: NDArray[np.float64]
) -> SDValue:
    """Value of one distribution, trying the swapped pair if needed."""

    if isinstance(component, MatrixDistribution):
        for v_out, v_in in ((out_vec, in_vec), (in_vec, out_vec)):
            o, i = component.outndx(v_out), component.incndx(v_in)
            if o >= 0 and i >= 0:
                return component.color_value(o, i)
        raise BSDFEvaluationError("Direction pair lies outside the matrix angle bases")

    if isinstance(component, TreeDistribution):
        value = component.value_at(out_vec, in_vec)
        if value is None:
            value = component.value_at(in_vec, out_vec)
        if value is None:
            raise BSDFEvaluationError("Direction pair lies outside the tensor tree domain")
        return value

    if isinstance(component, OtherDistribution) and component.evaluator is not None:
        value = component.evaluator(out_vec, in_vec)
        if value is None:
            raise BSDFEvaluationError("Distribution has no value for this direction pair")
        return value

    raise BSDFEvaluationError(f"Cannot evaluate distribution of type {type(component).__name__}")


def evaluate_bsdf(dataset: BSDFDataset, out_vec: ArrayLike, in_vec: ArrayLike) -> SDValue:
    """Evaluate the full BSDF (diffuse plus directional) for a direction pair.

    Both vectors point away from the surface; ``in_vec`` points toward the
    source. Raises :class:`BSDFEvaluationError` for degenerate vectors or when
    a registered component cannot serve the pair.
    """

    v_out = _unit(out_vec, "Outgoing")
    v_in = _unit(in_vec, "Incident")
    lamb, hemi = select_hemisphere(dataset, v_out, v_in)
    parts = [SDValue(lamb.cie_y / math.pi, lamb.cx, lamb.cy)]
    if hemi is not None:
        parts.extend(component_value(comp, v_out, v_in) for comp in hemi.components)
    return mix_values(parts)
