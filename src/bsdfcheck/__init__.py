"""bsdfcheck: sanity checks for tabulated BSDF data.

Loads LBNL WINDOW XML BSDF files, classifies their representation, summarises
the Lambertian and directional content of each hemisphere component, and
measures how far Klems matrices depart from Helmholtz reciprocity.
"""

from __future__ import annotations

import importlib
from typing import Any

from .errors import BSDFError, BSDFEvaluationError, BSDFFileNotFoundError, BSDFLoadError
from .types import BSDFFlags, BSDFType, SDValue, Side
from .version import __version__

__all__ = [
    "__version__",
    "BSDFError",
    "BSDFEvaluationError",
    "BSDFFileNotFoundError",
    "BSDFFlags",
    "BSDFLoadError",
    "BSDFType",
    "SDValue",
    "Side",
    "check",
    "config",
    "io",
    "library",
    "report",
    "utils",
]

_SUBMODULES = {"check", "config", "io", "library", "report", "utils"}


def __getattr__(name: str) -> Any:
    if name in _SUBMODULES:
        module = importlib.import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
