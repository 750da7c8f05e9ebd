from __future__ import annotations

import json
import re

import pytest
from typer.testing import CliRunner

from bsdfcheck.cli import app
from bsdfcheck.errors import BSDFEvaluationError
from bsdfcheck.io.window_xml import load_dataset
from bsdfcheck.report import SEPARATOR, build_report
from bsdfcheck.utils.paths import resolve_input

QUARTER = "LBNL/Klems Quarter"


@pytest.fixture(autouse=True)
def _clear_search_env(monkeypatch) -> None:
    monkeypatch.delenv("BSDFCHECK_PATH", raising=False)
    monkeypatch.delenv("RAYPATH", raising=False)


@pytest.fixture
def symmetric_file(write_bsdf, bsdf_block):
    return write_bsdf(
        [
            bsdf_block("Visible", "Transmission Front", QUARTER, [1.0] * 41 * 41),
            bsdf_block("Visible", "Transmission Back", QUARTER, [1.0] * 41 * 41),
        ],
        filename="symmetric.xml",
    )


def test_check_prints_report(symmetric_file) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["check", str(symmetric_file), "--no-extract-diffuse"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == SEPARATOR
    assert lines[1] == f"File: '{symmetric_file}'"
    assert "Type: Klems Quarter" in lines
    assert "Transmission\t0.0\t0.0\t0.0" in lines


def test_diffuse_extraction_is_default(symmetric_file) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["check", str(symmetric_file)])

    assert result.exit_code == 0, result.output
    assert "Type: Pure Lambertian" in result.stdout
    # a constant BSDF of 1.0 is a Lambertian transmittance of pi
    assert "Int->Ext Trans\t314.2 314.2 314.2\t\t0%\t\t180" in result.stdout


def test_search_path_option(symmetric_file) -> None:
    runner = CliRunner()

    result = runner.invoke(
        app, ["check", "symmetric.xml", "--path", str(symmetric_file.parent), "--json"]
    )

    assert result.exit_code == 0, result.output
    reports = json.loads(result.stdout)
    assert len(reports) == 1
    assert reports[0]["file"] == "symmetric.xml"
    assert reports[0]["type"] == "Pure Lambertian"


def test_search_path_from_environment(symmetric_file, monkeypatch) -> None:
    monkeypatch.setenv("RAYPATH", str(symmetric_file.parent))
    runner = CliRunner()

    result = runner.invoke(app, ["check", "symmetric.xml", "--no-extract-diffuse"])

    assert result.exit_code == 0, result.output
    assert "Type: Klems Quarter" in result.stdout


def test_missing_file_does_not_stop_batch(symmetric_file) -> None:
    runner = CliRunner()

    result = runner.invoke(
        app, ["check", "does-not-exist.xml", str(symmetric_file), "--no-extract-diffuse"]
    )

    assert result.exit_code == 1
    assert "Cannot find file 'does-not-exist.xml'" in result.output
    assert "Traceback" not in result.output
    assert result.stdout.count(SEPARATOR) == 2
    assert "Type: Klems Quarter" in result.stdout


def test_config_file(symmetric_file, tmp_path) -> None:
    config = tmp_path / "bsdfcheck.yaml"
    config.write_text(
        f"bsdfcheck:\n  search_path: [{symmetric_file.parent}]\n  extract_diffuse: false\n",
        encoding="utf-8",
    )
    runner = CliRunner()

    result = runner.invoke(app, ["check", "symmetric.xml", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Type: Klems Quarter" in result.stdout


def test_missing_config_file() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["check", "any.xml", "--config", "does-not-exist.yaml"])

    assert result.exit_code == 1
    assert "does-not-exist.yaml" in result.output
    assert "Traceback" not in result.output


def test_invalid_config_value(tmp_path) -> None:
    config = tmp_path / "bad.yaml"
    config.write_text("threshold: -1\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(app, ["check", "any.xml", "--config", str(config)])

    assert result.exit_code == 1
    assert "threshold" in result.output


def test_version_command_reports_details() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert re.search(r"\d+\.\d+\.\d+", result.stdout)
    assert "Supported formats" in result.stdout


def test_check_subcommand_reports_missing_file(tmp_path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["check", str(tmp_path / "x.xml")])

    assert result.exit_code == 1
    assert "Cannot find file" in result.output
    assert "Traceback" not in result.output


def test_evaluation_failure_marks_file_failed(symmetric_file, monkeypatch) -> None:
    def failing(ds, in_vec, out_vec):
        raise BSDFEvaluationError("broken component")

    def check_with_failing_evaluator(name, config):
        dataset = load_dataset(resolve_input(name, config.search_path), config)
        return build_report(dataset, file=name, evaluator=failing)

    monkeypatch.setattr("bsdfcheck.cli.check_file", check_with_failing_evaluator)
    runner = CliRunner()

    result = runner.invoke(app, ["check", str(symmetric_file), "--no-extract-diffuse"])

    assert result.exit_code == 1
    assert "Transmission: broken component" in result.output
    assert "Traceback" not in result.output
    assert "Type: Klems Quarter" in result.stdout
    assert "Int->Ext Trans\t" in result.stdout
    assert "Front Refl\t0\t0\t0" in result.stdout
    assert "Back Refl\t0\t0\t0" in result.stdout
    assert "Transmission\t" not in result.stdout
