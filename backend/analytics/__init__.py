"""
backend.analytics — Water Quality Analytics Engine
===================================================

Statistics, batch reporting and forecasting over water quality sensor
readings supplied by the host application.

Architecture:
    Regional sensors → host application (API / dashboard backend)
                                ↓
                        list of reading dicts
                                ↓
                        Reading filters
                         ↓            ↓
        Aggregation + Batch summaries    7-day Forecast (TTL cache)
                         ↓            ↓
                 JSON-ready dicts → dashboards / reports

Modules:
    config         — Thresholds, breakpoints and forecast coefficients
    statistics     — Descriptive statistics and quality rating
    aggregator     — Per-slice, per-region and per-sensor aggregation, anomalies
    trend          — Linear trend analysis
    batch_summary  — Hourly / daily / weekly / monthly bucket summaries
    forecasting    — 7-day quality index forecast with confidence intervals
    cache          — TTL cache for forecast results
    filters        — Reading selection by region, dates, sensors and ranges
    service        — Façade composing the above for request handlers
    utils          — Logging setup, timestamp helpers, input validation
"""

__version__ = "1.0.0"
__author__ = "Water Monitoring IoT Team"
