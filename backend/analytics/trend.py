"""
trend.py — Trend Analysis
==========================

Linear trend helpers used for historical reporting and forecasting:

    calculate_trend    — direction of a parameter over time (epoch ms axis)
    linear_regression  — least-squares fit of y on x with R²
    determine_trend    — improving / stable / declining from a slope

calculate_trend classifies by the first-to-last percentage change:
    |change| <= 5 %  → "stable"
    change  >  5 %   → "increasing"
    change  < -5 %   → "decreasing"
"""

import logging
import numpy as np
from sklearn.linear_model import LinearRegression
from sklearn.metrics import r2_score

from . import config
from .utils import to_epoch_ms

logger = logging.getLogger("analytics.trend")

INSUFFICIENT_DATA = "insufficient_data"


def _insufficient(data_points: int) -> dict:
    return {
        "trend": INSUFFICIENT_DATA,
        "slope": 0.0,
        "correlation": 0.0,
        "change_percentage": 0.0,
        "first_value": None,
        "last_value": None,
        "data_points": data_points,
    }


def calculate_trend(readings, parameter: str) -> dict:
    """
    Analyse the trend of one parameter across time-ordered readings.

    Slope and Pearson correlation are computed from the closed-form
    least-squares sums over (timestamp in epoch ms, value) pairs.

    Args:
        readings: Reading dicts sorted by timestamp ascending.
        parameter: Field to analyse, e.g. "temperature" or
                   "region_avg_quality_index".

    Returns:
        Dict with trend, slope (per ms), correlation, change_percentage,
        first_value, last_value and data_points. Fewer than two non-null
        values gives trend "insufficient_data".
    """
    pairs = [
        (to_epoch_ms(r["timestamp"]), float(r[parameter]))
        for r in (readings or [])
        if r.get(parameter) is not None
    ]
    n = len(pairs)
    if n < 2:
        logger.debug(f"Not enough '{parameter}' values for a trend (got {n})")
        return _insufficient(n)

    xs = [x for x, _ in pairs]
    ys = [y for _, y in pairs]

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in pairs)
    sum_xx = sum(x * x for x in xs)
    sum_yy = sum(y * y for y in ys)

    numerator = n * sum_xy - sum_x * sum_y
    x_spread = n * sum_xx - sum_x * sum_x
    y_spread = n * sum_yy - sum_y * sum_y

    slope = numerator / x_spread if x_spread != 0 else 0.0
    spread_product = x_spread * y_spread
    correlation = numerator / np.sqrt(spread_product) if spread_product > 0 else 0.0

    first_value, last_value = ys[0], ys[-1]
    if first_value != 0:
        change_percentage = (last_value - first_value) / first_value * 100
    else:
        change_percentage = 0.0

    trend = "stable"
    if abs(change_percentage) > config.TREND_STABLE_CHANGE_PCT:
        trend = "increasing" if change_percentage > 0 else "decreasing"

    return {
        "trend": trend,
        "slope": round(float(slope), 6),
        "correlation": round(float(correlation), 3),
        "change_percentage": round(float(change_percentage), 2),
        "first_value": first_value,
        "last_value": last_value,
        "data_points": n,
    }


def linear_regression(xs, ys) -> dict:
    """
    Fit y = slope * x + intercept by ordinary least squares.

    Args:
        xs: Independent values.
        ys: Dependent values, same length as xs.

    Returns:
        Dict with slope, intercept and r2. R² is 1 for a constant series;
        fewer than two points gives all zeros.
    """
    if len(xs) < 2:
        return {"slope": 0.0, "intercept": 0.0, "r2": 0.0}

    X = np.asarray(xs, dtype=np.float64).reshape(-1, 1)
    y = np.asarray(ys, dtype=np.float64)

    model = LinearRegression().fit(X, y)
    slope = float(model.coef_[0])
    intercept = float(model.intercept_)

    if np.allclose(y, y[0]):
        r2 = 1.0
    else:
        r2 = float(r2_score(y, model.predict(X)))

    logger.debug(f"Regression: slope={slope:.4f} intercept={intercept:.4f} r2={r2:.4f}")
    return {"slope": slope, "intercept": intercept, "r2": r2}


def determine_trend(slope: float, threshold: float = None) -> str:
    """
    Label a forecast slope (quality index points per day).

    Returns:
        "stable" if |slope| < threshold, else "improving" or "declining".
    """
    threshold = config.FORECAST_STABLE_SLOPE if threshold is None else threshold
    if abs(slope) < threshold:
        return "stable"
    return "improving" if slope > 0 else "declining"
