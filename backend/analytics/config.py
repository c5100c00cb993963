"""
config.py — Analytics Engine Configuration Constants
=====================================================

Centralizes the thresholds, breakpoints and forecasting coefficients used
by the water quality analytics engine. Changing these values changes how
readings are classified, how batch completeness is judged and how the
7-day quality index forecast is shaped.

Readings handled by this engine come from regional monitoring sensors:
- Temperature (°C)
- pH
- Turbidity (NTU)
- Regional average quality index (0–100)
"""

import os

# ═══════════════════════════════════════════════════════════════════
# QUALITY RATING BREAKPOINTS
# ═══════════════════════════════════════════════════════════════════

# Lower bound (inclusive) of each rating, checked from best to worst.
# Anything below the last bound is "poor".
QUALITY_BREAKPOINTS = (
    ("excellent", 80.0),
    ("good", 60.0),
    ("fair", 40.0),
)
QUALITY_FLOOR_RATING = "poor"

QUALITY_RATINGS = ("excellent", "good", "fair", "poor")

# ═══════════════════════════════════════════════════════════════════
# ANOMALY THRESHOLDS
# ═══════════════════════════════════════════════════════════════════

# Acceptable operating ranges per parameter. A reading outside any bound
# is reported as an anomaly. Callers may override individual bounds.
DEFAULT_ANOMALY_THRESHOLDS = {
    "temperature": {"min": 10.0, "max": 35.0},
    "pH": {"min": 6.0, "max": 9.0},
    "turbidity": {"max": 10.0},
    "quality_index": {"min": 20.0},
}

# Reading field checked for each threshold parameter.
ANOMALY_FIELDS = {
    "temperature": "temperature",
    "pH": "pH",
    "turbidity": "turbidity",
    "quality_index": "region_avg_quality_index",
}

# Numeric fields summarized for every slice and batch.
PARAMETER_FIELDS = ("temperature", "pH", "turbidity", "region_avg_quality_index")

# ═══════════════════════════════════════════════════════════════════
# TREND ANALYSIS
# ═══════════════════════════════════════════════════════════════════

# Absolute first-to-last change (%) up to which a series is "stable".
TREND_STABLE_CHANGE_PCT = 5.0

# Regression slope (quality index points per day) below which the
# forecast trend is labelled "stable".
FORECAST_STABLE_SLOPE = 0.5

# ═══════════════════════════════════════════════════════════════════
# BATCH SUMMARIES
# ═══════════════════════════════════════════════════════════════════

# Sensors are expected to report once every 4 hours.
READINGS_PER_SENSOR_PER_HOUR = 0.25

# Hours covered by each bucket when estimating expected readings.
# Months are approximated as 30 days for completeness only; bucket
# boundaries themselves are calendar-aware.
HOURS_PER_INTERVAL = {
    "hourly": 1,
    "daily": 24,
    "weekly": 24 * 7,
    "monthly": 24 * 30,
}

INTERVALS = tuple(HOURS_PER_INTERVAL)

# (value digits, std_dev digits) used when rounding bucket statistics.
BATCH_ROUNDING = {
    "temperature": (1, 2),
    "pH": (2, 3),
    "turbidity": (2, 3),
    "region_avg_quality_index": (1, 2),
}

# ═══════════════════════════════════════════════════════════════════
# FORECASTING
# ═══════════════════════════════════════════════════════════════════

FORECAST_HORIZON_DAYS = 7

# Minimum number of historical points before a forecast is attempted.
FORECAST_MIN_POINTS = 7

# Most recent points used for regression and seasonal factors.
FORECAST_WINDOW = 30

# Points fed to the moving average that produces the base component.
FORECAST_BASE_POINTS = 7
MOVING_AVERAGE_WINDOW = 3

# Blend of the linear trend and the seasonally adjusted recent level.
TREND_WEIGHT = 0.6
BASE_WEIGHT = 0.4

# Random perturbation (± points) added to each forecast value.
# Set to 0 for fully reproducible output.
FORECAST_NOISE_AMPLITUDE = float(os.environ.get("FORECAST_NOISE_AMPLITUDE", "1.0"))

# Seed for the forecast noise generator. Unset = fresh entropy per run.
_seed = os.environ.get("FORECAST_RANDOM_SEED")
FORECAST_RANDOM_SEED = int(_seed) if _seed not in (None, "") else None

# Confidence interval shaping.
CONFIDENCE_Z = 1.96
CONFIDENCE_DECAY_RATE = 0.1
MARGIN_GROWTH_RATE = 0.2
BASE_CONFIDENCE_LEVEL = 0.95
MIN_CONFIDENCE_LEVEL = 0.5

# Fallbacks when there are too few one-step errors to measure.
DEFAULT_ERROR_MEAN = 5.0
DEFAULT_ERROR_STD = 3.0

MODEL_VERSION = "1.0.0"
FORECAST_ALGORITHM = "linear_regression_with_seasonal_adjustment"

# ═══════════════════════════════════════════════════════════════════
# FORECAST CACHE
# ═══════════════════════════════════════════════════════════════════

CACHE_TTL_MINUTES = float(os.environ.get("FORECAST_CACHE_TTL_MINUTES", "60"))

# ═══════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════

# Log level for the analytics engine (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.environ.get("ANALYTICS_LOG_LEVEL", "INFO")
