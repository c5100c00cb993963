"""
batch_summary.py — Timestamped Batch Summaries
===============================================

Groups readings into fixed time buckets and summarizes each bucket.

Supported intervals (bucket start, UTC):
    hourly   — top of the hour
    daily    — midnight
    weekly   — midnight of the most recent Sunday
    monthly  — midnight of the first day of the month

Summaries are returned newest bucket first. Every reading lands in
exactly one bucket, so total_readings across the result equals the
number of input readings.

Data completeness compares the bucket's reading count with the count
expected if every sensor seen in the bucket reported once every 4 hours.
"""

import logging
import math
from datetime import timedelta

import pandas as pd

from . import config
from .aggregator import (
    calculate_quality_distribution,
    detect_anomalies,
    group_by,
    latest_reading,
    unique_in_order,
)
from .statistics import (
    calculate_statistics,
    mean_or_zero,
    numeric_values,
    quality_rating,
    round_statistics,
)
from .utils import parse_timestamp, to_iso, utc_now, validate_readings

logger = logging.getLogger("analytics.batch_summary")


def _check_interval(interval: str) -> None:
    if interval not in config.HOURS_PER_INTERVAL:
        raise ValueError(
            f"Unsupported interval '{interval}'. "
            f"Expected one of: {', '.join(config.INTERVALS)}"
        )


def get_interval_key(timestamp, interval: str) -> str:
    """
    Bucket key (ISO-8601 start of the bucket) for a timestamp.

    Args:
        timestamp: ISO-8601 string or datetime.
        interval: hourly | daily | weekly | monthly.

    Returns:
        ISO-8601 UTC string of the bucket start.
    """
    _check_interval(interval)
    ts = parse_timestamp(timestamp)

    if interval == "hourly":
        start = ts.replace(minute=0, second=0, microsecond=0)
    elif interval == "daily":
        start = ts.replace(hour=0, minute=0, second=0, microsecond=0)
    elif interval == "weekly":
        midnight = ts.replace(hour=0, minute=0, second=0, microsecond=0)
        # weekday(): Monday=0 … Sunday=6
        start = midnight - timedelta(days=(midnight.weekday() + 1) % 7)
    else:
        start = ts.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    return to_iso(start)


def calculate_period_end(start, interval: str) -> str:
    """
    End of the bucket that starts at `start`.

    Hourly, daily and weekly buckets add a fixed duration; monthly buckets
    end on the same day of the following month (clamped to month length).
    """
    _check_interval(interval)
    start_ts = pd.Timestamp(parse_timestamp(start))

    if interval == "hourly":
        end = start_ts + pd.Timedelta(hours=1)
    elif interval == "daily":
        end = start_ts + pd.Timedelta(days=1)
    elif interval == "weekly":
        end = start_ts + pd.Timedelta(days=7)
    else:
        end = start_ts + pd.DateOffset(months=1)

    return to_iso(end.to_pydatetime())


def calculate_expected_readings(sensor_count: int, interval: str) -> int:
    """Readings expected in one bucket from `sensor_count` sensors."""
    _check_interval(interval)
    hours = config.HOURS_PER_INTERVAL[interval]
    return math.ceil(sensor_count * config.READINGS_PER_SENSOR_PER_HOUR * hours)


def group_by_interval(readings, interval: str) -> dict:
    """Partition readings by bucket key."""
    groups = {}
    for reading in readings:
        key = get_interval_key(reading["timestamp"], interval)
        groups.setdefault(key, []).append(reading)
    return groups


def generate_single_batch_summary(batch_readings, timestamp: str, interval: str) -> dict:
    """
    Summarize the readings of one bucket.

    Args:
        batch_readings: Readings that fall into the bucket.
        timestamp: Bucket key (bucket start).
        interval: Bucket interval.

    Returns:
        Batch summary dict (without the optional breakdowns).
    """
    regions = unique_in_order(r.get("region") for r in batch_readings)
    sensors = unique_in_order(r.get("sensor_id") for r in batch_readings)

    expected = calculate_expected_readings(len(sensors), interval)
    actual = len(batch_readings)
    completeness = min(100.0, actual / expected * 100) if expected > 0 else 100.0

    summary = {
        "timestamp": timestamp,
        "interval": interval,
        "period_start": timestamp,
        "period_end": calculate_period_end(timestamp, interval),
        "total_readings": actual,
        "regions_count": len(regions),
        "sensors_count": len(sensors),
        "data_completeness_percentage": round(completeness, 1),
    }

    quality_average = 0.0
    for field in config.PARAMETER_FIELDS:
        stats = calculate_statistics(numeric_values(batch_readings, field))
        digits, std_digits = config.BATCH_ROUNDING[field]
        summary[field] = round_statistics(stats, digits, std_digits)
        if field == "region_avg_quality_index":
            quality_average = stats["average"]

    summary["overall_quality_rating"] = quality_rating(quality_average)
    summary["regions"] = regions
    summary["sensors"] = sensors
    summary["generated_at"] = to_iso(utc_now())
    return summary


def _parameter_averages(readings) -> tuple[dict, float]:
    """Rounded per-parameter averages plus the unrounded quality mean."""
    quality_mean = mean_or_zero(numeric_values(readings, "region_avg_quality_index"))
    averages = {
        "temperature_avg": round(mean_or_zero(numeric_values(readings, "temperature")), 1),
        "pH_avg": round(mean_or_zero(numeric_values(readings, "pH")), 2),
        "turbidity_avg": round(mean_or_zero(numeric_values(readings, "turbidity")), 2),
        "quality_index_avg": round(quality_mean, 1),
    }
    return averages, quality_mean


def generate_regional_breakdown(batch_readings) -> dict:
    """Per-region counts and parameter averages within one bucket."""
    breakdown = {}
    for region, region_readings in group_by(batch_readings, "region").items():
        averages, quality_mean = _parameter_averages(region_readings)
        breakdown[region] = {
            "readings_count": len(region_readings),
            "sensors_count": len(unique_in_order(r.get("sensor_id") for r in region_readings)),
            **averages,
            "quality_rating": quality_rating(quality_mean),
        }
    return breakdown


def generate_sensor_breakdown(batch_readings) -> dict:
    """Per-sensor counts, parameter averages and last report within one bucket."""
    breakdown = {}
    for sensor_id, sensor_readings in group_by(batch_readings, "sensor_id").items():
        averages, _ = _parameter_averages(sensor_readings)
        breakdown[sensor_id] = {
            "region": sensor_readings[0].get("region"),
            "readings_count": len(sensor_readings),
            **averages,
            "last_reading": latest_reading(sensor_readings)["timestamp"],
        }
    return breakdown


def generate_quality_distribution(batch_readings) -> dict:
    return calculate_quality_distribution(
        numeric_values(batch_readings, "region_avg_quality_index")
    )


def detect_batch_anomalies(batch_readings, thresholds: dict = None) -> list:
    """
    Threshold violations within one bucket, in a compact report form.

    Each entry: timestamp, sensor_id, region, issues (violated parameters)
    and the reading's parameter values.
    """
    return [
        {
            "timestamp": flagged["timestamp"],
            "sensor_id": flagged.get("sensor_id"),
            "region": flagged.get("region"),
            "issues": flagged["anomalies"],
            "values": {
                "temperature": flagged.get("temperature"),
                "pH": flagged.get("pH"),
                "turbidity": flagged.get("turbidity"),
                "quality_index": flagged.get("region_avg_quality_index"),
            },
        }
        for flagged in detect_anomalies(batch_readings, thresholds)
    ]


def generate_batch_summaries(
    readings,
    interval: str = "daily",
    include_regional_breakdown: bool = False,
    include_sensor_breakdown: bool = False,
    include_quality_distribution: bool = True,
    include_anomalies: bool = False,
    anomaly_thresholds: dict = None,
) -> list[dict]:
    """
    Generate one summary per time bucket, newest bucket first.

    Args:
        readings: List of reading dicts.
        interval: hourly | daily | weekly | monthly.
        include_regional_breakdown: Add per-region figures to each bucket.
        include_sensor_breakdown: Add per-sensor figures to each bucket.
        include_quality_distribution: Add the rating distribution.
        include_anomalies: Add threshold violations found in the bucket.
        anomaly_thresholds: Threshold overrides for include_anomalies.

    Returns:
        List of batch summary dicts. Empty input gives an empty list.

    Raises:
        ValueError: For an unsupported interval.
        TypeError: If readings is not a list of dicts.
    """
    _check_interval(interval)
    readings = validate_readings(readings)
    if not readings:
        return []

    grouped = group_by_interval(readings, interval)
    keys = sorted(grouped, key=parse_timestamp, reverse=True)

    summaries = []
    for key in keys:
        batch = grouped[key]
        summary = generate_single_batch_summary(batch, key, interval)

        if include_regional_breakdown:
            summary["regional_breakdown"] = generate_regional_breakdown(batch)
        if include_sensor_breakdown:
            summary["sensor_breakdown"] = generate_sensor_breakdown(batch)
        if include_quality_distribution:
            summary["quality_distribution"] = generate_quality_distribution(batch)
        if include_anomalies:
            summary["anomalies"] = detect_batch_anomalies(batch, anomaly_thresholds)

        summaries.append(summary)

    logger.info(f"Generated {len(summaries)} {interval} batch summaries "
                f"from {len(readings)} readings")
    return summaries
