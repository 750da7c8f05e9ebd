from __future__ import annotations

import logging
import math

import pytest

from bsdfcheck.check.lambertian import (
    HEMISPHERE_ANGLE_DEG,
    ComponentSummary,
    cone_half_angle_deg,
    lambertian_percentages,
    summarize_component,
)
from bsdfcheck.library.basis import KLEMS_QUARTER
from bsdfcheck.library.dataset import HemisphereComponent, OtherDistribution
from bsdfcheck.types import SDValue


def test_neutral_percentages() -> None:
    assert lambertian_percentages(SDValue(0.5)) == pytest.approx((50.0, 50.0, 50.0))


def test_coloured_percentages() -> None:
    x, y, z = lambertian_percentages(SDValue(0.2, 0.4, 0.4))
    assert (x, y, z) == pytest.approx((20.0, 20.0, 10.0))


def test_zero_cy_with_zero_luminance() -> None:
    assert lambertian_percentages(SDValue(0.0, 0.3, 0.0)) == (0.0, 0.0, 0.0)


def test_zero_cy_with_luminance_is_undefined(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="bsdfcheck.check.lambertian"):
        x, y, z = lambertian_percentages(SDValue(0.1, 0.3, 0.0))
    assert math.isnan(x) and math.isnan(z)
    assert y == pytest.approx(10.0)
    assert "cy=0" in caplog.text


def test_cone_half_angle() -> None:
    assert cone_half_angle_deg(math.pi) == pytest.approx(360.0 / math.pi)
    assert cone_half_angle_deg(0.0) == 0.0


def test_absent_component_line() -> None:
    summary = summarize_component("External Refl", SDValue(0.0))
    assert not summary.has_component
    assert summary.format() == "External Refl\t 0.0  0.0  0.0\t\t0%\t\t180"


def test_present_component_line(make_matrix) -> None:
    component = HemisphereComponent.from_distribution(make_matrix(KLEMS_QUARTER, "tf", 0.1))
    summary = summarize_component("Int->Ext Trans", SDValue(0.05), component)
    assert summary.has_component
    assert summary.max_dir_pct == pytest.approx(10.0 * math.pi)
    expected_angle = cone_half_angle_deg(KLEMS_QUARTER.proj_solid_angles().min())
    assert summary.min_angle_deg == pytest.approx(expected_angle)
    assert summary.format() == (
        f"Int->Ext Trans\t 5.0  5.0  5.0\t\t 31.4%\t\t{expected_angle:.2f} deg"
    )


def test_unknown_component_defaults() -> None:
    component = HemisphereComponent((OtherDistribution(),))
    summary = summarize_component("Internal Refl", SDValue(0.0), component)
    assert summary.max_dir_pct == 0.0
    assert summary.min_angle_deg == pytest.approx(cone_half_angle_deg(math.pi))


def test_as_dict() -> None:
    summary = ComponentSummary("Ext->Int Trans", 1.0, 2.0, 3.0)
    assert summary.as_dict() == {
        "label": "Ext->Int Trans",
        "lambertian_xyz_pct": [1.0, 2.0, 3.0],
        "max_dir_pct": 0.0,
        "min_angle_deg": HEMISPHERE_ANGLE_DEG,
        "has_component": False,
    }


def test_warm_tinted_baseline_without_component() -> None:
    summary = summarize_component("Internal Refl", SDValue(0.5, 0.3, 0.3))
    assert (summary.x_pct, summary.y_pct, summary.z_pct) == pytest.approx((50.0, 50.0, 200.0 / 3.0))
    assert summary.format() == "Internal Refl\t50.0 50.0 66.7\t\t0%\t\t180"
