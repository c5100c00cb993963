"""Unit tests for trend analysis."""

from __future__ import annotations

import pytest

from backend.analytics.trend import calculate_trend, determine_trend, linear_regression
from conftest import make_reading


def _series(values: list[float | None], parameter: str = "temperature") -> list[dict]:
    readings = []
    for day, value in enumerate(values):
        reading = make_reading(f"2025-10-{21 + day:02d}T00:00:00Z")
        reading[parameter] = value
        readings.append(reading)
    return readings


def test_increasing_trend() -> None:
    result = calculate_trend(_series([10.0, 11.0, 12.0]), "temperature")

    assert result["trend"] == "increasing"
    assert result["change_percentage"] == 20.0
    assert result["correlation"] == 1.0
    assert result["first_value"] == 10.0
    assert result["last_value"] == 12.0
    assert result["data_points"] == 3
    # one degree per day, expressed per millisecond
    assert result["slope"] == round(1 / 86_400_000, 6)


def test_decreasing_trend() -> None:
    result = calculate_trend(
        _series([100.0, 90.0], "region_avg_quality_index"), "region_avg_quality_index"
    )

    assert result["trend"] == "decreasing"
    assert result["change_percentage"] == -10.0
    assert result["correlation"] == -1.0


@pytest.mark.parametrize("last", [104.0, 100.0, 96.0])
def test_changes_within_five_percent_are_stable(last: float) -> None:
    result = calculate_trend(_series([100.0, last], "turbidity"), "turbidity")

    assert result["trend"] == "stable"


def test_null_values_are_skipped() -> None:
    result = calculate_trend(_series([10.0, None, 12.0], "pH"), "pH")

    assert result["data_points"] == 2
    assert result["trend"] == "increasing"


@pytest.mark.parametrize("values", [[], [10.0], [None, 10.0, None]])
def test_insufficient_data(values: list[float | None]) -> None:
    result = calculate_trend(_series(values), "temperature")

    assert result["trend"] == "insufficient_data"
    assert result["slope"] == 0.0
    assert result["correlation"] == 0.0
    assert result["change_percentage"] == 0.0


def test_zero_first_value_reports_no_percentage_change() -> None:
    result = calculate_trend(_series([0.0, 10.0], "turbidity"), "turbidity")

    assert result["change_percentage"] == 0.0
    assert result["trend"] == "stable"


def test_linear_regression_exact_line() -> None:
    result = linear_regression([0, 1, 2, 3, 4], [1, 3, 5, 7, 9])

    assert result["slope"] == pytest.approx(2.0)
    assert result["intercept"] == pytest.approx(1.0)
    assert result["r2"] == pytest.approx(1.0)


def test_linear_regression_constant_series() -> None:
    result = linear_regression([0, 1, 2, 3], [50.0, 50.0, 50.0, 50.0])

    assert result["slope"] == pytest.approx(0.0)
    assert result["intercept"] == pytest.approx(50.0)
    assert result["r2"] == 1.0


def test_linear_regression_needs_two_points() -> None:
    assert linear_regression([0], [1.0]) == {"slope": 0.0, "intercept": 0.0, "r2": 0.0}


@pytest.mark.parametrize(
    ("slope", "expected"),
    [(0.0, "stable"), (0.49, "stable"), (-0.49, "stable"), (0.5, "improving"), (-0.6, "declining")],
)
def test_determine_trend(slope: float, expected: str) -> None:
    assert determine_trend(slope) == expected
