"""Helpers for locating BSDF files and project resources.

Input files are resolved against an explicit search path (see
:class:`bsdfcheck.config.CheckConfig`); nothing here reads process-wide state
except :func:`search_path_from_env`, which the CLI calls once.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

from bsdfcheck.errors import BSDFFileNotFoundError

SEARCH_PATH_ENV = ("BSDFCHECK_PATH", "RAYPATH")


class _SupportsPath(Protocol):
    """Protocol for path-like objects accepted by Path."""

    def __fspath__(self) -> str:  # pragma: no cover - runtime protocol hook
        ...


StrPath = str | Path | _SupportsPath


def find_project_root(
    start: StrPath | None = None, markers: Iterable[str] = ("pyproject.toml", ".git")
) -> Path:
    """Locate the project root by searching for a marker file.

    Parameters
    ----------
    start:
        Optional starting path. Defaults to the directory containing this file.
    markers:
        Filenames that signal the repository root.
    """

    start_path = Path(start or __file__).resolve()
    for candidate in (start_path, *start_path.parents):
        if any((candidate / marker).exists() for marker in markers):
            return candidate if candidate.is_dir() else candidate.parent
    raise FileNotFoundError("Could not locate project root; missing marker files")


def _is_explicit(name: str) -> bool:
    return (
        os.path.isabs(name)
        or name.startswith("~")
        or name.startswith(("./", "../", "." + os.sep, ".." + os.sep))
    )


def resolve_input(name: StrPath, search_path: Iterable[StrPath] = (".",)) -> Path:
    """Find a readable file named ``name``.

    Absolute, home-relative and ``./``-relative names are checked as given.
    Other names are tried against each directory of ``search_path`` in order.
    """

    raw = os.fspath(name)
    if _is_explicit(raw):
        candidates = [Path(raw).expanduser()]
    else:
        candidates = [Path(directory).expanduser() / raw for directory in search_path]
    for candidate in candidates:
        if candidate.is_file() and os.access(candidate, os.R_OK):
            return candidate
    raise BSDFFileNotFoundError(f"Cannot find file '{raw}'")


def search_path_from_env(environ: Mapping[str, str] | None = None) -> list[Path]:
    """Directories listed in ``BSDFCHECK_PATH`` (or ``RAYPATH`` as a fallback)."""

    env = os.environ if environ is None else environ
    for key in SEARCH_PATH_ENV:
        value = env.get(key)
        if value:
            return [Path(part) for part in value.split(os.pathsep) if part]
    return []
