"""
utils.py — Shared Utility Functions and Logging Setup
======================================================

Common helpers used across the analytics modules: logging configuration,
timestamp parsing/formatting and input validation at the public entry
points.
"""

import logging
from datetime import datetime, timezone

from . import config


def setup_logging(level: str = None) -> None:
    """
    Configure console logging for the analytics engine.

    Sets up a console handler with timestamp, logger name, level,
    and message. All analytics.* loggers inherit this configuration.

    Args:
        level: Log level string (DEBUG/INFO/WARNING/ERROR/CRITICAL).
               Defaults to config.LOG_LEVEL.
    """
    level = level or config.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    analytics_logger = logging.getLogger("analytics")
    analytics_logger.setLevel(numeric_level)

    # Avoid duplicate handlers on repeated calls
    if not analytics_logger.handlers:
        analytics_logger.addHandler(handler)


def parse_timestamp(value) -> datetime:
    """
    Parse a reading timestamp into a timezone-aware UTC datetime.

    Accepts ISO-8601 strings (with a trailing 'Z', an explicit offset, or
    no zone at all) and datetime objects. Naive values are taken as UTC.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def to_iso(ts: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC string, e.g. 2025-10-21T00:00:00.000Z."""
    ts = parse_timestamp(ts)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def to_epoch_ms(value) -> float:
    """Milliseconds since the Unix epoch for a timestamp string or datetime."""
    return parse_timestamp(value).timestamp() * 1000.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_readings(readings) -> list:
    """
    Check the shape of a reading collection at a public entry point.

    Args:
        readings: Sequence of reading dicts (None is treated as empty).

    Returns:
        The readings as a list.

    Raises:
        TypeError: If the collection or any item is not the expected type.
    """
    if readings is None:
        return []
    if isinstance(readings, (str, bytes, dict)) or not hasattr(readings, "__iter__"):
        raise TypeError(
            f"readings must be a list of dicts, got {type(readings).__name__}"
        )
    readings = list(readings)
    for index, reading in enumerate(readings):
        if not isinstance(reading, dict):
            raise TypeError(
                f"reading #{index} must be a dict, got {type(reading).__name__}"
            )
    return readings
