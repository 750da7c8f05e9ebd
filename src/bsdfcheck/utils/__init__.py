"""Logging and path helpers shared by the CLI and loaders."""

from .logging import get_logger
from .paths import StrPath, find_project_root, resolve_input, search_path_from_env

__all__ = ["StrPath", "find_project_root", "get_logger", "resolve_input", "search_path_from_env"]
