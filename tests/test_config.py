from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from bsdfcheck.config import CheckConfig, load_config
from bsdfcheck.utils.paths import find_project_root


def test_defaults() -> None:
    cfg = load_config()
    assert cfg.search_path == [Path(".")]
    assert cfg.threshold == 1e-6
    assert cfg.extract_diffuse is True
    assert cfg.min_directional_hemi == 1e-3
    assert cfg.tree_hemi_samples == 8


def test_search_path_from_string() -> None:
    cfg = CheckConfig(search_path=os.pathsep.join(["data", "", "/opt/ray/lib"]))
    assert cfg.search_path == [Path("data"), Path("/opt/ray/lib")]
    assert CheckConfig(search_path=Path("bsdf")).search_path == [Path("bsdf")]


def test_unknown_and_invalid_fields_rejected() -> None:
    with pytest.raises(ValidationError):
        CheckConfig(tolerance=0.1)
    with pytest.raises(ValidationError):
        CheckConfig(threshold=-1.0)
    with pytest.raises(ValidationError):
        CheckConfig(tree_hemi_samples=0)


def test_with_overrides_ignores_none() -> None:
    cfg = CheckConfig(threshold=0.01)
    updated = cfg.with_overrides(threshold=None, extract_diffuse=False)
    assert updated.threshold == 0.01
    assert updated.extract_diffuse is False
    assert cfg.extract_diffuse is True


def test_load_config_section(tmp_path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        "bsdfcheck:\n  threshold: 1.0e-4\n  search_path: [a, b]\n", encoding="utf-8"
    )
    cfg = load_config(path)
    assert cfg.threshold == pytest.approx(1e-4)
    assert cfg.search_path == [Path("a"), Path("b")]


def test_load_config_top_level(tmp_path) -> None:
    path = tmp_path / "flat.yaml"
    path.write_text("extract_diffuse: false\n", encoding="utf-8")
    assert load_config(path).extract_diffuse is False


def test_load_config_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        load_config(tmp_path / "missing.yaml")

    listing = tmp_path / "list.yaml"
    listing.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(TypeError, match="Expected mapping"):
        load_config(listing)

    nested = tmp_path / "nested.yaml"
    nested.write_text("bsdfcheck: [1, 2]\n", encoding="utf-8")
    with pytest.raises(TypeError, match="under 'bsdfcheck'"):
        load_config(nested)


def test_example_settings_file_loads() -> None:
    example = find_project_root(Path(__file__).parent) / "configs" / "bsdfcheck.yaml"
    cfg = load_config(example)
    assert cfg.search_path == [Path("."), Path("data/bsdf")]
    assert cfg.extract_diffuse is True
    assert cfg == CheckConfig(search_path=[".", "data/bsdf"])
