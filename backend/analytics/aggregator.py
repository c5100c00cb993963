"""
aggregator.py — Sensor Data Aggregation
========================================

Aggregates water quality readings across sensors and regions:

    aggregate_sensor_data          — statistics for one slice of readings
    aggregate_by_region            — one aggregate per region
    aggregate_by_sensor            — one aggregate per sensor, with cadence
    calculate_quality_distribution — excellent / good / fair / poor counts
    calculate_reading_frequency    — average reporting interval of a sensor
    detect_anomalies               — readings outside operating thresholds

Readings are plain dicts:
    timestamp                 — ISO-8601 string
    region                    — region name
    sensor_id                 — sensor identifier
    temperature               — °C (may be None)
    pH                        — pH (may be None)
    turbidity                 — NTU (may be None)
    region_avg_quality_index  — 0–100 (may be None)

A None value is left out of that parameter's statistics only; the reading
still counts towards totals and region/sensor membership.
"""

import copy
import logging
import pandas as pd

from . import config
from .statistics import calculate_statistics, numeric_values, quality_rating
from .utils import parse_timestamp, to_iso, validate_readings

logger = logging.getLogger("analytics.aggregator")


def unique_in_order(values) -> list:
    """Distinct values in first-seen order."""
    return list(dict.fromkeys(values))


def group_by(readings, key: str) -> dict:
    """Partition readings by a field, keeping first-seen group order."""
    groups = {}
    for reading in readings:
        groups.setdefault(reading.get(key), []).append(reading)
    return groups


def latest_reading(readings) -> dict | None:
    """Reading with the greatest timestamp (the earliest one wins ties)."""
    latest = None
    latest_ts = None
    for reading in readings:
        ts = parse_timestamp(reading["timestamp"])
        if latest_ts is None or ts > latest_ts:
            latest, latest_ts = reading, ts
    return dict(latest) if latest is not None else None


def aggregate_sensor_data(readings) -> dict:
    """
    Aggregate one slice of readings.

    Args:
        readings: List of reading dicts.

    Returns:
        Dict with temperature / pH / turbidity statistics, the average
        quality index, total_readings, unique regions and sensors, the
        date range covered and the quality distribution.
    """
    readings = validate_readings(readings)

    quality_indices = numeric_values(readings, "region_avg_quality_index")
    quality_stats = calculate_statistics(quality_indices)

    timestamps = sorted(parse_timestamp(r["timestamp"]) for r in readings)
    date_range = {
        "start": to_iso(timestamps[0]) if timestamps else None,
        "end": to_iso(timestamps[-1]) if timestamps else None,
    }

    aggregate = {
        "temperature": calculate_statistics(numeric_values(readings, "temperature")),
        "pH": calculate_statistics(numeric_values(readings, "pH")),
        "turbidity": calculate_statistics(numeric_values(readings, "turbidity")),
        "region_avg_quality_index": quality_stats["average"],
        "total_readings": len(readings),
        "regions": unique_in_order(r.get("region") for r in readings),
        "sensors": unique_in_order(r.get("sensor_id") for r in readings),
        "date_range": date_range,
        "quality_distribution": calculate_quality_distribution(quality_indices),
    }

    logger.debug(f"Aggregated {len(readings)} readings across "
                 f"{len(aggregate['regions'])} regions")
    return aggregate


def aggregate_by_region(readings) -> dict:
    """
    Aggregate readings per region.

    Each entry carries the full slice aggregate plus sensor_count and the
    region's latest_reading. Regions appear in first-seen order.
    """
    readings = validate_readings(readings)
    if not readings:
        return {}

    regional = {}
    for region, region_readings in group_by(readings, "region").items():
        regional[region] = {
            **aggregate_sensor_data(region_readings),
            "sensor_count": len(unique_in_order(r.get("sensor_id") for r in region_readings)),
            "latest_reading": latest_reading(region_readings),
        }

    logger.info(f"Aggregated {len(readings)} readings into {len(regional)} regions")
    return regional


def aggregate_by_sensor(readings) -> dict:
    """
    Aggregate readings per sensor.

    Each entry carries the full slice aggregate plus the sensor's region
    (taken from its first reading), latest_reading and reading_frequency.
    """
    readings = validate_readings(readings)
    if not readings:
        return {}

    per_sensor = {}
    for sensor_id, sensor_readings in group_by(readings, "sensor_id").items():
        per_sensor[sensor_id] = {
            **aggregate_sensor_data(sensor_readings),
            "region": sensor_readings[0].get("region"),
            "latest_reading": latest_reading(sensor_readings),
            "reading_frequency": calculate_reading_frequency(sensor_readings),
        }

    logger.info(f"Aggregated {len(readings)} readings into {len(per_sensor)} sensors")
    return per_sensor


def calculate_quality_distribution(quality_indices) -> dict:
    """
    Count quality indices per rating.

    Args:
        quality_indices: Non-null quality index values.

    Returns:
        Dict with excellent / good / fair / poor counts, total and
        percentages (rounded to one decimal place).
    """
    counts = {rating: 0 for rating in config.QUALITY_RATINGS}
    for index in quality_indices:
        counts[quality_rating(index)] += 1

    total = len(quality_indices)
    percentages = {
        rating: round(count / total * 100, 1) if total else 0.0
        for rating, count in counts.items()
    }

    return {**counts, "total": total, "percentages": percentages}


def calculate_reading_frequency(sensor_readings) -> dict:
    """
    Measure how often a sensor reports.

    Readings are ordered by timestamp and the gaps between consecutive
    readings averaged.

    Args:
        sensor_readings: Readings of a single sensor, in any order.

    Returns:
        Dict with average_interval_hours, total_readings, first_reading,
        last_reading and expected_readings_per_day (24 / average interval).
        Fewer than two readings yields zero intervals.
    """
    sensor_readings = sensor_readings or []

    if len(sensor_readings) < 2:
        only = sensor_readings[0]["timestamp"] if sensor_readings else None
        return {
            "average_interval_hours": 0.0,
            "total_readings": len(sensor_readings),
            "first_reading": only,
            "last_reading": only,
            "expected_readings_per_day": 0.0,
        }

    timestamps = pd.Series(
        sorted(parse_timestamp(r["timestamp"]) for r in sensor_readings)
    )
    gaps_hours = timestamps.diff().dropna().dt.total_seconds() / 3600.0
    average_interval = float(gaps_hours.mean())

    per_day = 24.0 / average_interval if average_interval > 0 else 0.0

    return {
        "average_interval_hours": round(average_interval, 2),
        "total_readings": len(sensor_readings),
        "first_reading": to_iso(timestamps.iloc[0]),
        "last_reading": to_iso(timestamps.iloc[-1]),
        "expected_readings_per_day": round(per_day, 1),
    }


def merge_thresholds(thresholds: dict = None) -> dict:
    """Overlay caller thresholds on the defaults, bound by bound."""
    merged = copy.deepcopy(config.DEFAULT_ANOMALY_THRESHOLDS)
    for parameter, bounds in (thresholds or {}).items():
        merged.setdefault(parameter, {}).update(bounds or {})
    return merged


def find_violations(reading: dict, thresholds: dict) -> list:
    """Names of the threshold parameters a single reading violates."""
    violations = []
    for parameter, bounds in thresholds.items():
        field = config.ANOMALY_FIELDS.get(parameter, parameter)
        value = reading.get(field)
        if value is None:
            continue
        low = bounds.get("min")
        high = bounds.get("max")
        if (low is not None and value < low) or (high is not None and value > high):
            violations.append(parameter)
    return violations


def detect_anomalies(readings, thresholds: dict = None) -> list:
    """
    Find readings that fall outside the operating thresholds.

    Default thresholds:
        temperature   10–35 °C
        pH            6.0–9.0
        turbidity     max 10.0 NTU
        quality_index min 20

    Args:
        readings: List of reading dicts.
        thresholds: Optional overrides, e.g. {"pH": {"max": 8.5}}.

    Returns:
        Copies of the anomalous readings, each with an added "anomalies"
        list naming the violated parameters. The inputs are not modified.
    """
    readings = validate_readings(readings)
    final_thresholds = merge_thresholds(thresholds)

    flagged = []
    for reading in readings:
        violations = find_violations(reading, final_thresholds)
        if violations:
            flagged.append({**reading, "anomalies": violations})

    if flagged:
        logger.info(f"Detected {len(flagged)} anomalous readings "
                    f"out of {len(readings)}")
    return flagged
