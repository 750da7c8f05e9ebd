"""Exception types raised while loading and evaluating BSDF data.

Reconstruction misses (a bin coordinate outside a matrix basis) and
negligible forward values are routine skips inside the reciprocity check and
never surface as exceptions.
"""

from __future__ import annotations

__all__ = [
    "BSDFError",
    "BSDFEvaluationError",
    "BSDFFileNotFoundError",
    "BSDFLoadError",
]


class BSDFError(Exception):
    """Base class for all BSDF data errors."""


class BSDFLoadError(BSDFError, ValueError):
    """A BSDF file could not be located, parsed, or converted."""


class BSDFFileNotFoundError(BSDFLoadError, FileNotFoundError):
    """The requested BSDF file is not on the search path."""


class BSDFEvaluationError(BSDFError, ValueError):
    """The general evaluator could not produce a value for a direction pair."""
