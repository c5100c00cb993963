"""
forecasting.py — 7-Day Water Quality Forecast
==============================================

Forecasts the regional quality index for the next 7 days from recent
history.

How it works:
    1. Readings are filtered to the requested region and ordered by time.
    2. The most recent 30 points form the working window.
    3. A least-squares line is fitted to quality index vs. sequence index.
    4. Day-of-week factors capture weekly variation (weekday mean divided
       by the mean of all weekday means).
    5. Each forecast day blends the extrapolated trend (60 %) with the
       smoothed recent level scaled by that weekday's factor (40 %), plus
       a small random perturbation, clamped to 0–100.
    6. Confidence intervals come from the spread of historical day-to-day
       changes and widen (while confidence_level drops) with distance.

The perturbation is drawn from an injectable numpy Generator so callers
and tests can make forecasts reproducible; config.FORECAST_NOISE_AMPLITUDE
set to 0 removes it.

Forecast failures (e.g. too little history) never raise: they come back
as {"success": False, "error": ..., "forecast_quality_index": [],
"trend": "unknown"}.
"""

import logging
import math
from datetime import timedelta

import numpy as np

from . import config
from .aggregator import unique_in_order
from .trend import determine_trend, linear_regression
from .utils import parse_timestamp, to_iso, utc_now, validate_readings

logger = logging.getLogger("analytics.forecasting")

QUALITY_FIELD = "region_avg_quality_index"


class InsufficientDataError(ValueError):
    """Raised internally when there is too little history to forecast."""


def default_rng() -> np.random.Generator:
    """Noise generator seeded from config.FORECAST_RANDOM_SEED (None = entropy)."""
    return np.random.default_rng(config.FORECAST_RANDOM_SEED)


def calculate_moving_average(values, window: int = None) -> list:
    """
    Smooth a series with a short moving average.

    Each point averages up to `window` values starting one position before
    it, so the final point averages the last two values. Series shorter
    than the window are returned unchanged.
    """
    window = window or config.MOVING_AVERAGE_WINDOW
    values = list(values)
    if len(values) < window:
        return values

    smoothed = []
    for i in range(len(values)):
        start = max(0, i - window // 2)
        end = min(len(values), start + window)
        smoothed.append(float(np.mean(values[start:end])))
    return smoothed


def detect_seasonal_patterns(readings) -> dict:
    """
    Day-of-week quality pattern of a set of readings.

    Weekdays without readings count as 0 in the overall average, so sparse
    histories push the populated weekdays' factors above 1.

    Returns:
        Dict with:
            weekly_pattern   — mean quality index per weekday (Mon=0 … Sun=6),
                               0.0 where the weekday has no data
            seasonal_factors — weekday mean / overall mean (1.0 when the
                               overall mean is not positive)
            overall_average  — sum of the 7 weekday means / 7
    """
    sums = [0.0] * 7
    counts = [0] * 7
    for reading in readings:
        weekday = parse_timestamp(reading["timestamp"]).weekday()
        sums[weekday] += float(reading[QUALITY_FIELD])
        counts[weekday] += 1

    weekly_pattern = [
        sums[day] / counts[day] if counts[day] else 0.0 for day in range(7)
    ]
    overall_average = sum(weekly_pattern) / 7

    seasonal_factors = [
        avg / overall_average if overall_average > 0 else 1.0
        for avg in weekly_pattern
    ]

    return {
        "weekly_pattern": weekly_pattern,
        "seasonal_factors": seasonal_factors,
        "overall_average": overall_average,
    }


def calculate_error_spread(values) -> tuple[float, float]:
    """
    Mean and sample standard deviation of one-step changes |y[i] - y[i-1]|.

    Only the first config.FORECAST_WINDOW points are used. Falls back to
    config defaults when there are too few changes to measure.
    """
    limited = list(values)[: config.FORECAST_WINDOW]
    errors = [abs(limited[i] - limited[i - 1]) for i in range(1, len(limited))]

    mean_error = float(np.mean(errors)) if errors else config.DEFAULT_ERROR_MEAN
    std_error = float(np.std(errors, ddof=1)) if len(errors) > 1 else config.DEFAULT_ERROR_STD
    return mean_error, std_error


def add_confidence_intervals(history_values, forecasts: list) -> list:
    """
    Attach confidence intervals to forecast points.

    For the i-th forecast (0-based):
        decay            = exp(-0.1 * i)
        margin           = std_error * 1.96 * (1 + 0.2 * i) * decay
        confidence_level = max(0.5, 0.95 * decay)

    Returns:
        New forecast dicts with a confidence_interval entry.
    """
    _, std_error = calculate_error_spread(history_values)

    with_intervals = []
    for index, forecast in enumerate(forecasts):
        decay = math.exp(-index * config.CONFIDENCE_DECAY_RATE)
        margin = (std_error * config.CONFIDENCE_Z
                  * (1 + index * config.MARGIN_GROWTH_RATE) * decay)
        with_intervals.append({
            **forecast,
            "confidence_interval": {
                "lower": max(0.0, forecast["quality_index"] - margin),
                "upper": min(100.0, forecast["quality_index"] + margin),
                "confidence_level": max(config.MIN_CONFIDENCE_LEVEL,
                                        config.BASE_CONFIDENCE_LEVEL * decay),
            },
        })
    return with_intervals


def _prepare_history(readings, region: str = None) -> list:
    data = [r for r in readings if r.get(QUALITY_FIELD) is not None]
    if region:
        data = [r for r in data if r.get("region") == region]
    data.sort(key=lambda r: parse_timestamp(r["timestamp"]))

    if len(data) < config.FORECAST_MIN_POINTS:
        raise InsufficientDataError(
            "Insufficient historical data for forecasting "
            f"(minimum {config.FORECAST_MIN_POINTS} data points required)"
        )
    return data


def _failure(message: str) -> dict:
    return {
        "success": False,
        "error": message,
        "forecast_quality_index": [],
        "trend": "unknown",
    }


def generate_water_quality_forecast(readings, region: str = None,
                                    rng: np.random.Generator = None) -> dict:
    """
    Forecast the quality index for the 7 days after the latest reading.

    Args:
        readings: Historical reading dicts, in any order.
        region: Only use readings of this region (None = all regions).
        rng: numpy Generator for the forecast perturbation.
             Defaults to default_rng().

    Returns:
        Forecast result dict. On success: success, forecast_quality_index
        (7 points), trend, summary and metadata. On failure: success=False
        with an error message.
    """
    try:
        readings = validate_readings(readings)
        data = _prepare_history(readings, region)
        rng = rng if rng is not None else default_rng()

        recent = data[-config.FORECAST_WINDOW:]
        values = [float(r[QUALITY_FIELD]) for r in recent]
        n = len(values)

        regression = linear_regression(list(range(n)), values)
        seasonal = detect_seasonal_patterns(recent)

        smoothed = calculate_moving_average(values[-config.FORECAST_BASE_POINTS:])
        base_component = smoothed[-1]

        base_date = parse_timestamp(recent[-1]["timestamp"])
        amplitude = config.FORECAST_NOISE_AMPLITUDE

        forecasts = []
        for day in range(1, config.FORECAST_HORIZON_DAYS + 1):
            forecast_date = base_date + timedelta(days=day)
            trend_component = regression["slope"] * (n - 1 + day) + regression["intercept"]
            # a zero factor (weekday with no readings) is treated as neutral
            seasonal_factor = seasonal["seasonal_factors"][forecast_date.weekday()] or 1.0

            quality_index = (trend_component * config.TREND_WEIGHT
                             + base_component * seasonal_factor * config.BASE_WEIGHT)
            if amplitude:
                quality_index += (rng.random() - 0.5) * 2 * amplitude
            quality_index = min(100.0, max(0.0, quality_index))

            forecasts.append({
                "date": forecast_date.date().isoformat(),
                "timestamp": to_iso(forecast_date),
                "quality_index": round(quality_index, 1),
                "day_offset": day,
                "seasonal_factor": seasonal_factor,
                "trend_component": trend_component,
                "base_component": base_component,
            })

        forecasts = add_confidence_intervals(values, forecasts)
        trend = determine_trend(regression["slope"])

        average_forecast = float(np.mean([f["quality_index"] for f in forecasts]))
        current = values[-1]

        logger.info(f"Forecast for {region or 'all regions'}: trend={trend} "
                    f"slope={regression['slope']:.3f} points={n}")

        return {
            "success": True,
            "forecast_quality_index": forecasts,
            "trend": trend,
            "summary": {
                "current_quality_index": current,
                "average_forecast": round(average_forecast, 1),
                "expected_change": round(average_forecast - current, 1),
                "trend_strength": abs(regression["slope"]),
                "confidence": min(1.0, max(0.0, regression["r2"])),
                "data_points_used": n,
                "forecast_period": f"{config.FORECAST_HORIZON_DAYS} days",
            },
            "metadata": {
                "region": region or "all_regions",
                "generated_at": to_iso(utc_now()),
                "model_version": config.MODEL_VERSION,
                "algorithm": config.FORECAST_ALGORITHM,
            },
        }

    except InsufficientDataError as e:
        logger.warning(f"Forecast skipped for {region or 'all regions'}: {e}")
        return _failure(str(e))
    except Exception as e:
        logger.error(f"Forecast failed for {region or 'all regions'}: {e}",
                     exc_info=True)
        return _failure(str(e))


def generate_regional_forecasts(readings, rng: np.random.Generator = None) -> dict:
    """
    Forecast every region present in the readings plus an overall forecast.

    Returns:
        Dict with success, regional_forecasts ({region: result, ...,
        "overall": result}), regions and generated_at.
    """
    readings = validate_readings(readings)
    rng = rng if rng is not None else default_rng()

    regions = unique_in_order(
        r.get("region") for r in readings if r.get("region") is not None
    )

    regional_forecasts = {
        region: generate_water_quality_forecast(readings, region, rng=rng)
        for region in regions
    }
    regional_forecasts["overall"] = generate_water_quality_forecast(readings, rng=rng)

    return {
        "success": True,
        "regional_forecasts": regional_forecasts,
        "regions": regions,
        "generated_at": to_iso(utc_now()),
    }
