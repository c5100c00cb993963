"""Shared fixtures for the analytics test suite."""

from __future__ import annotations

import numpy as np
import pytest


def make_reading(
    timestamp: str,
    region: str = "North Coast",
    sensor_id: str = "NOR-WQ-001",
    temperature: float | None = 22.5,
    pH: float | None = 7.8,
    turbidity: float | None = 1.2,
    quality: float | None = 85.0,
) -> dict:
    """Helper to build a reading dict."""

    return {
        "timestamp": timestamp,
        "region": region,
        "sensor_id": sensor_id,
        "temperature": temperature,
        "pH": pH,
        "turbidity": turbidity,
        "region_avg_quality_index": quality,
    }


@pytest.fixture
def sample_readings() -> list[dict]:
    """Eight daily readings across two regions (2025-10-21 … 2025-10-28)."""

    return [
        make_reading("2025-10-21T00:00:00.000Z", temperature=22.5, pH=7.8, turbidity=1.2, quality=85.3),
        make_reading("2025-10-22T00:00:00.000Z", temperature=23.1, pH=7.7, turbidity=1.4, quality=84.8),
        make_reading("2025-10-23T00:00:00.000Z", temperature=22.8, pH=7.9, turbidity=1.1, quality=86.1),
        make_reading("2025-10-24T00:00:00.000Z", region="Central Valley", sensor_id="CEN-WQ-001",
                     temperature=25.2, pH=7.2, turbidity=2.8, quality=72.5),
        make_reading("2025-10-25T00:00:00.000Z", region="Central Valley", sensor_id="CEN-WQ-001",
                     temperature=24.9, pH=7.3, turbidity=2.6, quality=73.8),
        make_reading("2025-10-26T00:00:00.000Z", temperature=22.3, pH=7.8, turbidity=1.3, quality=85.7),
        make_reading("2025-10-27T00:00:00.000Z", temperature=22.6, pH=7.6, turbidity=1.5, quality=84.2),
        make_reading("2025-10-28T00:00:00.000Z", region="Central Valley", sensor_id="CEN-WQ-001",
                     temperature=25.8, pH=7.1, turbidity=3.2, quality=71.3),
    ]


@pytest.fixture
def north_coast_readings() -> list[dict]:
    """Seven consecutive daily North Coast readings plus one Central Valley reading."""

    qualities = [85.3, 84.8, 86.1, 85.0, 84.5, 85.7, 84.2]
    readings = [
        make_reading(f"2025-10-{21 + day:02d}T00:00:00.000Z", quality=quality)
        for day, quality in enumerate(qualities)
    ]
    readings.append(
        make_reading("2025-10-25T12:00:00.000Z", region="Central Valley",
                     sensor_id="CEN-WQ-001", quality=72.5)
    )
    return readings


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)
