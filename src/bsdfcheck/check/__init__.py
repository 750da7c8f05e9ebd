"""Classification, photometric summaries, and reciprocity checks."""

from .classify import classify, dominant_component
from .lambertian import (
    HEMISPHERE_ANGLE_DEG,
    ComponentSummary,
    cone_half_angle_deg,
    lambertian_percentages,
    summarize_component,
)
from .reciprocity import (
    NEGLIGIBLE_VALUE,
    ErrorAccumulator,
    ReciprocityStats,
    check_reciprocity,
    relative_error_pct,
    select_operative,
)

__all__ = [
    "ComponentSummary",
    "ErrorAccumulator",
    "HEMISPHERE_ANGLE_DEG",
    "NEGLIGIBLE_VALUE",
    "ReciprocityStats",
    "check_reciprocity",
    "classify",
    "cone_half_angle_deg",
    "dominant_component",
    "lambertian_percentages",
    "relative_error_pct",
    "select_operative",
    "summarize_component",
]
