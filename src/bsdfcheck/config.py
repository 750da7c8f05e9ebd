"""Runtime configuration for BSDF checks.

Settings can come from a YAML file, either at the top level or under a
``bsdfcheck:`` key::

    bsdfcheck:
      search_path: [data/bsdf, /usr/local/lib/ray]
      threshold: 1.0e-6
      extract_diffuse: true
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from bsdfcheck.utils.paths import StrPath

__all__ = ["CheckConfig", "load_config"]


class CheckConfig(BaseModel):
    """Options shared by the loader, the checks, and the report driver."""

    model_config = ConfigDict(extra="forbid")

    search_path: list[Path] = Field(
        default_factory=lambda: [Path(".")],
        description="Directories searched, in order, for relative BSDF file names",
    )
    threshold: float = Field(
        1e-6,
        ge=0.0,
        description="Forward BSDF values at or below this are skipped by reciprocity checks",
    )
    extract_diffuse: bool = Field(
        True,
        description="Move the minimum of each distribution into its Lambertian baseline",
    )
    min_directional_hemi: float = Field(
        1e-3,
        ge=0.0,
        description="Drop directional slots whose hemispherical maximum falls below this "
        "after diffuse extraction",
    )
    tree_hemi_samples: int = Field(
        8,
        ge=1,
        description="Incident samples per coordinate when estimating tensor tree maxima",
    )

    @field_validator("search_path", mode="before")
    @classmethod
    def _coerce_search_path(cls, value: Sequence[StrPath] | StrPath) -> list[Path]:
        if isinstance(value, str):
            return [Path(part) for part in value.split(os.pathsep) if part]
        if isinstance(value, Path):
            return [value]
        return [Path(part) for part in value]

    def with_overrides(self, **updates: Any) -> CheckConfig:
        """Return a validated copy with ``None``-valued updates ignored."""
        data = self.model_dump()
        data.update({key: val for key, val in updates.items() if val is not None})
        return CheckConfig.model_validate(data)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Expected mapping in {path}, found {type(data)}")
    return dict(data)


def load_config(path: StrPath | None = None) -> CheckConfig:
    if path is None:
        return CheckConfig()
    raw = _load_yaml(Path(path))
    section = raw.get("bsdfcheck", raw)
    if not isinstance(section, Mapping):
        raise TypeError(f"Expected mapping under 'bsdfcheck' in {path}")
    return CheckConfig.model_validate(dict(section))
