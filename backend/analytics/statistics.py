"""
statistics.py — Descriptive Statistics Core
============================================

Pure numeric helpers shared by the aggregator, the batch summary
generator and the forecaster:

    calculate_statistics — min / max / average / median / std_dev / count
    quality_rating       — excellent / good / fair / poor classification
    numeric_values       — non-null values of one reading field

Standard deviation is the population form (divide by N), matching the
figures reported on existing dashboards.
"""

import logging
import numpy as np

from . import config

logger = logging.getLogger("analytics.statistics")


def empty_statistics() -> dict:
    """The summary reported for an empty value list."""
    return {
        "min": 0.0,
        "max": 0.0,
        "average": 0.0,
        "median": 0.0,
        "std_dev": 0.0,
        "count": 0,
    }


def calculate_statistics(values) -> dict:
    """
    Calculate basic statistics for a list of numbers.

    Nulls must be removed by the caller (see numeric_values). The input
    list is never modified.

    Args:
        values: Sequence of numeric values.

    Returns:
        Dict with min, max, average, median, std_dev and count.
        An empty input yields all zeros.
    """
    if values is None or len(values) == 0:
        return empty_statistics()

    arr = np.asarray(values, dtype=np.float64)
    sorted_values = np.sort(arr)

    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "average": float(arr.mean()),
        "median": float(np.median(sorted_values)),
        "std_dev": float(arr.std(ddof=0)),
        "count": int(arr.size),
    }


def round_statistics(stats: dict, digits: int, std_digits: int) -> dict:
    """Round a statistics summary for display (count is left untouched)."""
    return {
        "average": round(stats["average"], digits),
        "min": round(stats["min"], digits),
        "max": round(stats["max"], digits),
        "median": round(stats["median"], digits),
        "std_dev": round(stats["std_dev"], std_digits),
        "count": stats["count"],
    }


def quality_rating(quality_index: float) -> str:
    """
    Classify a quality index.

    Returns:
        "excellent" (>= 80), "good" (>= 60), "fair" (>= 40) or "poor".
    """
    for rating, lower_bound in config.QUALITY_BREAKPOINTS:
        if quality_index >= lower_bound:
            return rating
    return config.QUALITY_FLOOR_RATING


def numeric_values(readings, field: str) -> list:
    """
    Collect the non-null values of a numeric field across readings.

    Readings missing the field, or carrying None, are skipped.
    """
    values = []
    for reading in readings:
        value = reading.get(field)
        if value is None:
            continue
        values.append(float(value))
    return values


def mean_or_zero(values) -> float:
    return float(np.mean(values)) if len(values) else 0.0
