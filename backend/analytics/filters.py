"""
filters.py — Reading Selection
===============================

Selects the slice of readings a report or forecast is computed over:
region, date range, sensors, quality index range and per-parameter
ranges. All bounds are inclusive.

A filter that is left at its default does not exclude anything. When a
range filter on a parameter is active, readings with no value for that
parameter are excluded.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from .aggregator import unique_in_order
from .utils import parse_timestamp, validate_readings

logger = logging.getLogger("analytics.filters")

ALL_REGIONS = "all"
RANGE_PARAMETERS = ("temperature", "pH", "turbidity")


@dataclass
class ReadingFilter:
    """Selection criteria for a set of readings."""

    region: str = ALL_REGIONS
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    sensors: list = field(default_factory=list)
    quality_min: float = 0.0
    quality_max: float = 100.0
    # parameter → (min, max); None leaves that side open
    parameters: dict = field(default_factory=dict)

    def _active_parameters(self) -> dict:
        return {
            name: bounds for name, bounds in self.parameters.items()
            if bounds is not None and any(b is not None for b in bounds)
        }

    def validate(self) -> list[str]:
        """Human-readable problems with the filter; empty when valid."""
        errors = []

        if self.start_date and self.end_date:
            if parse_timestamp(self.start_date) > parse_timestamp(self.end_date):
                errors.append("Start date cannot be after end date")

        if self.quality_min > self.quality_max:
            errors.append("Minimum quality cannot be greater than maximum quality")

        for name, (low, high) in self._active_parameters().items():
            if name not in RANGE_PARAMETERS:
                errors.append(f"Unknown parameter '{name}'")
            elif low is not None and high is not None and low > high:
                errors.append(
                    f"Minimum {name} cannot be greater than maximum {name}"
                )

        return errors

    def is_active(self) -> bool:
        return self.active_count() > 0

    def active_count(self) -> int:
        """Number of criteria that currently restrict the selection."""
        count = 0
        if self.region and self.region != ALL_REGIONS:
            count += 1
        if self.start_date or self.end_date:
            count += 1
        if self.sensors:
            count += 1
        if self.quality_min > 0 or self.quality_max < 100:
            count += 1
        count += len(self._active_parameters())
        return count

    def describe(self) -> list[str]:
        """Short descriptions of the active criteria, for report headers."""
        summary = []
        if self.region and self.region != ALL_REGIONS:
            summary.append(f"Region: {self.region}")
        if self.start_date or self.end_date:
            start = parse_timestamp(self.start_date).date().isoformat() if self.start_date else "Any"
            end = parse_timestamp(self.end_date).date().isoformat() if self.end_date else "Any"
            summary.append(f"Date: {start} - {end}")
        if self.sensors:
            summary.append(f"Sensors: {len(self.sensors)} selected")
        if self.quality_min > 0 or self.quality_max < 100:
            summary.append(f"Quality: {self.quality_min:g} - {self.quality_max:g}")
        for name, (low, high) in self._active_parameters().items():
            low_text = "Any" if low is None else f"{low:g}"
            high_text = "Any" if high is None else f"{high:g}"
            summary.append(f"{name}: {low_text} - {high_text}")
        return summary

    def selection_params(self) -> dict:
        """
        Every criterion except region, in a canonical form.

        Two filters that select the same readings within a region produce
        equal dicts, so the result can key cached forecasts.
        """
        params = asdict(self)
        del params["region"]
        params["sensors"] = sorted(self.sensors, key=str)
        params["quality_min"] = float(self.quality_min)
        params["quality_max"] = float(self.quality_max)
        params["parameters"] = {
            name: list(bounds) for name, bounds in self._active_parameters().items()
        }
        return params

    def matches(self, reading: dict) -> bool:
        """Whether a single reading passes every active criterion."""
        if self.region and self.region != ALL_REGIONS and reading.get("region") != self.region:
            return False

        if self.start_date or self.end_date:
            ts = parse_timestamp(reading["timestamp"])
            if self.start_date and ts < parse_timestamp(self.start_date):
                return False
            if self.end_date and ts > parse_timestamp(self.end_date):
                return False

        if self.sensors and reading.get("sensor_id") not in self.sensors:
            return False

        if self.quality_min > 0 or self.quality_max < 100:
            if not _in_range(reading.get("region_avg_quality_index"),
                             self.quality_min, self.quality_max):
                return False

        for name, (low, high) in self._active_parameters().items():
            if not _in_range(reading.get(name), low, high):
                return False

        return True


def _in_range(value, low, high) -> bool:
    if value is None:
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def apply_filters(readings, reading_filter: ReadingFilter = None) -> list:
    """
    Select the readings that satisfy a filter.

    Args:
        readings: List of reading dicts.
        reading_filter: Criteria; None returns every reading.

    Returns:
        New list of the matching readings (the reading dicts themselves
        are not copied or modified).

    Raises:
        ValueError: If the filter is invalid (see ReadingFilter.validate).
    """
    readings = validate_readings(readings)
    if reading_filter is None or not reading_filter.is_active():
        return list(readings)

    errors = reading_filter.validate()
    if errors:
        raise ValueError("; ".join(errors))

    selected = [r for r in readings if reading_filter.matches(r)]
    logger.debug(f"Filter kept {len(selected)}/{len(readings)} readings "
                 f"({', '.join(reading_filter.describe())})")
    return selected


def available_regions(readings) -> list:
    """Distinct regions in first-seen order."""
    return unique_in_order(r.get("region") for r in readings if r.get("region") is not None)


def available_sensors(readings) -> list:
    """Distinct sensor ids in first-seen order."""
    return unique_in_order(r.get("sensor_id") for r in readings if r.get("sensor_id") is not None)
