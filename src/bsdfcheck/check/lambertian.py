"""Photometric summary of one hemisphere pair."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from bsdfcheck.library.dataset import HemisphereComponent
from bsdfcheck.types import SDValue

__all__ = [
    "ComponentSummary",
    "HEMISPHERE_ANGLE_DEG",
    "cone_half_angle_deg",
    "lambertian_percentages",
    "summarize_component",
]

logger = logging.getLogger(__name__)

HEMISPHERE_ANGLE_DEG = 180.0
"""Reported resolution when a pair has no directional data."""


@dataclass(frozen=True, slots=True)
class ComponentSummary:
    label: str
    x_pct: float
    y_pct: float
    z_pct: float
    max_dir_pct: float = 0.0
    min_angle_deg: float = HEMISPHERE_ANGLE_DEG
    has_component: bool = False

    def format(self) -> str:
        head = f"{self.label}\t{self.x_pct:4.1f} {self.y_pct:4.1f} {self.z_pct:4.1f}\t\t"
        if not self.has_component:
            return head + "0%\t\t180"
        return head + f"{self.max_dir_pct:5.1f}%\t\t{self.min_angle_deg:.2f} deg"

    def as_dict(self) -> dict[str, object]:
        return {
            "label": self.label,
            "lambertian_xyz_pct": [self.x_pct, self.y_pct, self.z_pct],
            "max_dir_pct": self.max_dir_pct,
            "min_angle_deg": self.min_angle_deg,
            "has_component": self.has_component,
        }


def lambertian_percentages(lamb: SDValue) -> tuple[float, float, float]:
    """Pseudo-tristimulus X, Y, Z percentages of a Lambertian value.

    A zero ``cy`` gives zeros for a zero luminance and NaN for X and Z
    otherwise.
    """

    y_pct = 100.0 * lamb.cie_y
    if lamb.cy == 0.0:
        if lamb.cie_y == 0.0:
            return 0.0, 0.0, 0.0
        logger.warning("Lambertian value with cy=0 and Y=%g has no defined X/Z", lamb.cie_y)
        return math.nan, y_pct, math.nan
    return (
        y_pct * lamb.cx / lamb.cy,
        y_pct,
        y_pct * (1.0 - lamb.cx - lamb.cy) / lamb.cy,
    )


def cone_half_angle_deg(proj_solid_angle: float) -> float:
    return math.sqrt(proj_solid_angle / math.pi) * (360.0 / math.pi)


def summarize_component(
    label: str, lamb: SDValue, component: HemisphereComponent | None = None
) -> ComponentSummary:
    x_pct, y_pct, z_pct = lambertian_percentages(lamb)
    if component is None:
        return ComponentSummary(label, x_pct, y_pct, z_pct)
    return ComponentSummary(
        label,
        x_pct,
        y_pct,
        z_pct,
        max_dir_pct=100.0 * component.max_hemi,
        min_angle_deg=cone_half_angle_deg(component.min_proj_sa),
        has_component=True,
    )
