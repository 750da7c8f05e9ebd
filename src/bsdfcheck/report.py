"""Report driver: classify, summarise, and check one BSDF dataset."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from bsdfcheck.check.classify import classify
from bsdfcheck.check.lambertian import ComponentSummary, summarize_component
from bsdfcheck.check.reciprocity import (
    NEGLIGIBLE_VALUE,
    Evaluator,
    ReciprocityStats,
    check_reciprocity,
)
from bsdfcheck.config import CheckConfig
from bsdfcheck.errors import BSDFEvaluationError
from bsdfcheck.io.window_xml import load_dataset
from bsdfcheck.library.dataset import BSDFDataset, free_dataset
from bsdfcheck.library.evaluate import evaluate_bsdf
from bsdfcheck.types import BSDFFlags, BSDFType, Side
from bsdfcheck.utils.paths import StrPath, resolve_input

__all__ = [
    "BSDFReport",
    "COMPONENT_HEADER",
    "RECIPROCITY_HEADER",
    "SEPARATOR",
    "build_report",
    "check_file",
]

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 53
COMPONENT_HEADER = "Component\tLambertian XYZ %\tMax. Dir\tMin. Angle"
RECIPROCITY_HEADER = "Component\tReciprocity Error (min/avg/max %)"

# (label, Lambertian field, slot)
_COMPONENTS = (
    ("Internal Refl", "r_lamb_front", "rf"),
    ("External Refl", "r_lamb_back", "rb"),
    ("Int->Ext Trans", "t_lamb_front", "tf"),
    ("Ext->Int Trans", "t_lamb_back", "tb"),
)

_CHECKS = (
    ("Front Refl", Side.FRONT, Side.FRONT),
    ("Back Refl", Side.BACK, Side.BACK),
    ("Transmission", Side.BACK, Side.FRONT),
)


@dataclass
class BSDFReport:
    file: str
    name: str
    manufacturer: str
    dimensions_m: tuple[float, float, float]
    bsdf_type: BSDFType
    flags: BSDFFlags
    has_geometry: bool
    components: list[ComponentSummary] = field(default_factory=list)
    reciprocity: list[ReciprocityStats] = field(default_factory=list)

    @property
    def in_color(self) -> bool:
        return bool(self.flags & BSDFFlags.IN_COLOR)

    @property
    def failed(self) -> bool:
        """True when any reciprocity check was abandoned on an evaluation error."""
        return any(stats.failed for stats in self.reciprocity)

    def lines(self) -> list[str]:
        width, height, thickness = (100.0 * d for d in self.dimensions_m)
        out = [
            f"File: '{self.file}'",
            f"Manufacturer: '{self.manufacturer}'",
            f"BSDF Name: '{self.name}'",
            f"Dimensions (W x H x Thickness): {width:g} x {height:g} x {thickness:g} cm",
            f"Type: {self.bsdf_type.value}",
            f"Color: {int(self.in_color)}",
            f"Has Geometry: {int(self.has_geometry)}",
            COMPONENT_HEADER,
        ]
        out.extend(summary.format() for summary in self.components)
        out.append(RECIPROCITY_HEADER)
        out.extend(stats.format() for stats in self.reciprocity if not stats.failed)
        return out

    def as_dict(self) -> dict[str, object]:
        return {
            "file": self.file,
            "name": self.name,
            "manufacturer": self.manufacturer,
            "dimensions_cm": [100.0 * d for d in self.dimensions_m],
            "type": self.bsdf_type.value,
            "color": self.in_color,
            "has_geometry": self.has_geometry,
            "components": [summary.as_dict() for summary in self.components],
            "reciprocity": [stats.as_dict() for stats in self.reciprocity],
        }


def build_report(
    dataset: BSDFDataset,
    *,
    file: str | None = None,
    threshold: float = NEGLIGIBLE_VALUE,
    evaluator: Evaluator = evaluate_bsdf,
) -> BSDFReport:
    """Classify ``dataset`` and run the component summaries and reciprocity checks.

    ``file`` is the name shown on the report's ``File:`` line and defaults to
    the dataset's source path. A check that fails to evaluate is logged and
    kept as a failed statistic; its line is left out of :meth:`BSDFReport.lines`.
    """

    if file is None:
        file = str(dataset.source) if dataset.source is not None else dataset.name
    bsdf_type, flags = classify(dataset)
    components = [
        summarize_component(label, getattr(dataset, lamb), dataset.slot(slot))
        for label, lamb, slot in _COMPONENTS
    ]
    reciprocity: list[ReciprocityStats] = []
    for label, side1, side2 in _CHECKS:
        try:
            stats = check_reciprocity(
                label, side1, side2, dataset, flags, threshold=threshold, evaluator=evaluator
            )
        except BSDFEvaluationError as exc:
            logger.error("%s: %s", label, exc)
            stats = ReciprocityStats(label, error=str(exc))
        reciprocity.append(stats)
    return BSDFReport(
        file=file,
        name=dataset.name,
        manufacturer=dataset.manufacturer,
        dimensions_m=dataset.dimensions_m,
        bsdf_type=bsdf_type,
        flags=flags,
        has_geometry=dataset.has_geometry,
        components=components,
        reciprocity=reciprocity,
    )


def check_file(name: StrPath, config: CheckConfig | None = None) -> BSDFReport:
    """Locate, load, and report on one BSDF file.

    Load errors propagate to the caller; the dataset is released either way.
    """

    config = config or CheckConfig()
    path = resolve_input(name, config.search_path)
    dataset = load_dataset(path, config)
    try:
        return build_report(dataset, file=os.fspath(name), threshold=config.threshold)
    finally:
        free_dataset(dataset)
