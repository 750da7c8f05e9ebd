from __future__ import annotations

import json
import os
from collections.abc import Callable
from functools import wraps
from importlib import metadata
from pathlib import Path
from typing import Any

import typer
import yaml
from pydantic import ValidationError

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib  # type: ignore[import-not-found]

from .config import CheckConfig, load_config
from .errors import BSDFError
from .report import SEPARATOR, check_file
from .utils.logging import get_logger
from .utils.paths import find_project_root, search_path_from_env

_SUPPORTED_FORMATS = (
    "LBNL WINDOW XML: Klems matrices (full, half, quarter and custom bases)",
    "LBNL WINDOW XML: tensor trees (isotropic and anisotropic)",
)
_DEBUG_ENV = "BSDFCHECK_DEBUG"

app = typer.Typer(add_completion=False)
_LOG = get_logger(__name__)


def _debug_enabled() -> bool:
    return os.getenv(_DEBUG_ENV, "").lower() in {"1", "true", "yes", "on"}


def _echo_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)


def _log_cli_exception(exc: Exception, context: str) -> None:
    if _debug_enabled():
        _LOG.exception("%s", exc)
    else:
        _LOG.error("%s failed: %s", context, exc)


def handle_cli_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Provide consistent logging and user-friendly errors for CLI commands."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (typer.BadParameter, typer.Exit, KeyboardInterrupt):
            raise
        except (
            FileNotFoundError,
            OSError,
            yaml.YAMLError,
            ValidationError,
            TypeError,
            ValueError,
        ) as exc:
            _log_cli_exception(exc, func.__name__)
            _echo_error(str(exc))
        except Exception as exc:  # pragma: no cover - handled by debug path
            if _debug_enabled():
                raise
            _LOG.exception("Unexpected error while running %s: %s", func.__name__, exc)
            _echo_error(f"Unexpected error. Re-run with {_DEBUG_ENV}=1 for a traceback.")

        raise typer.Exit(code=1)

    return wrapper


def _print_version() -> None:
    try:
        pkg_version = metadata.version("bsdf-check")
    except metadata.PackageNotFoundError:
        pkg_version = _read_local_version()

    typer.echo(f"bsdf-check version: {pkg_version}")
    typer.echo("Supported formats:")
    for fmt in _SUPPORTED_FORMATS:
        typer.echo(f"  - {fmt}")


def _read_local_version() -> str:
    try:
        pyproject = find_project_root(Path(__file__).parent) / "pyproject.toml"
    except FileNotFoundError:
        return "unknown"
    if not pyproject.exists():
        return "unknown"

    try:
        data = tomllib.loads(pyproject.read_text())
    except tomllib.TOMLDecodeError:
        return "unknown"

    return str(data.get("project", {}).get("version", "unknown"))


def _build_config(
    config: Path | None,
    path: list[Path] | None,
    threshold: float | None,
    no_extract_diffuse: bool,
) -> CheckConfig:
    cfg = load_config(config)
    search_path = [*(path or []), *cfg.search_path, *search_path_from_env()]
    return cfg.with_overrides(
        search_path=search_path,
        threshold=threshold,
        extract_diffuse=False if no_extract_diffuse else None,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version information and exit.",
        is_eager=True,
    ),
) -> None:
    if version:
        _print_version()
        raise typer.Exit()


@app.command("version")  # type: ignore[misc]
def version_command() -> None:
    """Print version and supported format details."""

    _print_version()


@app.command()  # type: ignore[misc]
@handle_cli_exceptions
def check(
    files: list[str] = typer.Argument(..., help="BSDF XML files to check."),
    config: Path | None = typer.Option(None, "--config", "-c", help="YAML settings file."),
    path: list[Path] | None = typer.Option(
        None, "--path", "-p", help="Extra directory to search for relative file names."
    ),
    threshold: float | None = typer.Option(
        None, "--threshold", min=0.0, help="Skip reciprocity pairs at or below this value."
    ),
    no_extract_diffuse: bool = typer.Option(
        False, "--no-extract-diffuse", help="Keep matrix minima in the directional data."
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit reports as JSON."),
) -> None:
    """Report type, Lambertian content and reciprocity error for each file."""

    cfg = _build_config(config, path, threshold, no_extract_diffuse)
    reports: list[dict[str, Any]] = []
    failed: list[str] = []
    for name in files:
        if not as_json:
            typer.echo(SEPARATOR)
        try:
            report = check_file(name, cfg)
        except (BSDFError, FileNotFoundError) as exc:
            _log_cli_exception(exc, f"check {name}")
            _echo_error(str(exc))
            failed.append(name)
            continue
        if as_json:
            reports.append(report.as_dict())
        else:
            for line in report.lines():
                typer.echo(line)
        if report.failed:
            for stats in report.reciprocity:
                if stats.failed:
                    _echo_error(f"{name}: {stats.label}: {stats.error}")
            failed.append(name)

    if as_json:
        typer.echo(json.dumps(reports, indent=2))
    if failed:
        _LOG.warning("%d of %d file(s) failed", len(failed), len(files))
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
