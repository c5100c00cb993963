"""Unit tests for batch summary generation."""

from __future__ import annotations

import pytest

from backend.analytics.batch_summary import (
    calculate_expected_readings,
    calculate_period_end,
    generate_batch_summaries,
    get_interval_key,
)
from backend.analytics.utils import parse_timestamp
from conftest import make_reading


@pytest.mark.parametrize(
    ("interval", "expected"),
    [
        ("hourly", "2025-10-22T15:00:00.000Z"),
        ("daily", "2025-10-22T00:00:00.000Z"),
        ("weekly", "2025-10-19T00:00:00.000Z"),
        ("monthly", "2025-10-01T00:00:00.000Z"),
    ],
)
def test_get_interval_key(interval: str, expected: str) -> None:
    assert get_interval_key("2025-10-22T15:45:30Z", interval) == expected


def test_weekly_key_for_a_sunday_is_that_sunday() -> None:
    assert get_interval_key("2025-10-26T23:59:59Z", "weekly") == "2025-10-26T00:00:00.000Z"


def test_interval_key_converts_offsets_to_utc() -> None:
    assert get_interval_key("2025-10-22T01:30:00+02:00", "daily") == "2025-10-21T00:00:00.000Z"


@pytest.mark.parametrize(
    ("start", "interval", "expected"),
    [
        ("2025-10-22T15:00:00.000Z", "hourly", "2025-10-22T16:00:00.000Z"),
        ("2025-10-31T00:00:00.000Z", "daily", "2025-11-01T00:00:00.000Z"),
        ("2025-10-26T00:00:00.000Z", "weekly", "2025-11-02T00:00:00.000Z"),
        ("2025-10-01T00:00:00.000Z", "monthly", "2025-11-01T00:00:00.000Z"),
        ("2025-12-01T00:00:00.000Z", "monthly", "2026-01-01T00:00:00.000Z"),
        ("2025-01-31T00:00:00.000Z", "monthly", "2025-02-28T00:00:00.000Z"),
    ],
)
def test_calculate_period_end(start: str, interval: str, expected: str) -> None:
    assert calculate_period_end(start, interval) == expected


@pytest.mark.parametrize(
    ("sensors", "interval", "expected"),
    [(1, "daily", 6), (3, "hourly", 1), (1, "monthly", 180), (2, "weekly", 84), (0, "daily", 0)],
)
def test_calculate_expected_readings(sensors: int, interval: str, expected: int) -> None:
    assert calculate_expected_readings(sensors, interval) == expected


def test_daily_summaries_are_newest_first_and_partition_readings(sample_readings) -> None:
    summaries = generate_batch_summaries(sample_readings, "daily")

    timestamps = [parse_timestamp(s["timestamp"]) for s in summaries]
    assert timestamps == sorted(timestamps, reverse=True)
    assert len(set(timestamps)) == len(timestamps)
    assert sum(s["total_readings"] for s in summaries) == len(sample_readings)
    assert summaries[0]["timestamp"] == "2025-10-28T00:00:00.000Z"
    assert summaries[0]["period_end"] == "2025-10-29T00:00:00.000Z"


def test_single_bucket_summary_fields(sample_readings) -> None:
    latest = generate_batch_summaries(sample_readings, "daily")[0]

    assert latest["interval"] == "daily"
    assert latest["period_start"] == latest["timestamp"]
    assert latest["regions"] == ["Central Valley"]
    assert latest["sensors"] == ["CEN-WQ-001"]
    assert latest["regions_count"] == 1
    assert latest["sensors_count"] == 1
    # 1 reading against 6 expected from one sensor reporting every 4 hours
    assert latest["data_completeness_percentage"] == 16.7
    assert latest["temperature"]["average"] == 25.8
    assert latest["pH"]["average"] == 7.1
    assert latest["region_avg_quality_index"]["median"] == 71.3
    assert latest["overall_quality_rating"] == "good"
    assert latest["generated_at"].endswith("Z")


def test_weekly_buckets_start_on_sunday(sample_readings) -> None:
    summaries = generate_batch_summaries(sample_readings, "weekly")

    assert [s["timestamp"] for s in summaries] == [
        "2025-10-26T00:00:00.000Z",
        "2025-10-19T00:00:00.000Z",
    ]
    assert [s["total_readings"] for s in summaries] == [3, 5]
    # 3 readings against ceil(2 sensors * 0.25 * 168 h) = 84
    assert summaries[0]["data_completeness_percentage"] == 3.6


def test_completeness_is_capped_at_100() -> None:
    readings = [
        make_reading("2025-10-21T10:00:00Z"),
        make_reading("2025-10-21T10:20:00Z"),
        make_reading("2025-10-21T10:40:00Z"),
    ]

    (summary,) = generate_batch_summaries(readings, "hourly")

    assert summary["data_completeness_percentage"] == 100.0


def test_bucket_statistics_are_rounded_per_parameter() -> None:
    readings = [
        make_reading("2025-10-21T01:00:00Z", temperature=20.04, pH=7.123, turbidity=1.111, quality=80.04),
        make_reading("2025-10-21T05:00:00Z", temperature=21.0, pH=7.0, turbidity=1.0, quality=81.0),
    ]

    (summary,) = generate_batch_summaries(readings, "daily")

    assert summary["temperature"]["min"] == 20.0
    assert summary["pH"]["max"] == 7.12
    assert summary["turbidity"]["max"] == 1.11
    assert summary["region_avg_quality_index"]["min"] == 80.0
    assert summary["temperature"]["count"] == 2


def test_bucket_without_quality_values_is_rated_poor() -> None:
    (summary,) = generate_batch_summaries([make_reading("2025-10-21T01:00:00Z", quality=None)], "daily")

    assert summary["region_avg_quality_index"]["count"] == 0
    assert summary["overall_quality_rating"] == "poor"


def test_optional_sections_are_toggled(sample_readings) -> None:
    plain = generate_batch_summaries(sample_readings, "weekly", include_quality_distribution=False)
    full = generate_batch_summaries(
        sample_readings,
        "weekly",
        include_regional_breakdown=True,
        include_sensor_breakdown=True,
        include_anomalies=True,
    )

    for key in ("regional_breakdown", "sensor_breakdown", "quality_distribution", "anomalies"):
        assert key not in plain[0]
        assert key in full[0]


def test_regional_and_sensor_breakdowns(sample_readings) -> None:
    (latest_week, _) = generate_batch_summaries(
        sample_readings, "weekly", include_regional_breakdown=True, include_sensor_breakdown=True
    )

    regional = latest_week["regional_breakdown"]
    assert set(regional) == {"North Coast", "Central Valley"}
    assert regional["North Coast"]["readings_count"] == 2
    assert regional["North Coast"]["sensors_count"] == 1
    assert regional["North Coast"]["quality_index_avg"] == pytest.approx(84.95, abs=0.06)
    assert regional["North Coast"]["quality_rating"] == "excellent"
    assert regional["Central Valley"]["temperature_avg"] == 25.8

    sensors = latest_week["sensor_breakdown"]
    assert sensors["NOR-WQ-001"]["region"] == "North Coast"
    assert sensors["NOR-WQ-001"]["last_reading"] == "2025-10-27T00:00:00.000Z"
    assert sensors["CEN-WQ-001"]["readings_count"] == 1


def test_batch_anomalies_use_aggregator_thresholds() -> None:
    readings = [
        make_reading("2025-10-21T01:00:00Z", sensor_id="S-1", turbidity=12.5),
        make_reading("2025-10-21T02:00:00Z", sensor_id="S-2"),
        make_reading("2025-10-21T03:00:00Z", sensor_id="S-3", pH=6.8),
    ]

    (summary,) = generate_batch_summaries(
        readings, "daily", include_anomalies=True, anomaly_thresholds={"pH": {"min": 7.0}}
    )

    assert [a["sensor_id"] for a in summary["anomalies"]] == ["S-1", "S-3"]
    first = summary["anomalies"][0]
    assert first["issues"] == ["turbidity"]
    assert first["values"]["turbidity"] == 12.5
    assert first["region"] == "North Coast"


def test_empty_input_returns_empty_list() -> None:
    assert generate_batch_summaries([], "hourly") == []


def test_unknown_interval_is_rejected(sample_readings) -> None:
    with pytest.raises(ValueError):
        generate_batch_summaries(sample_readings, "fortnightly")
