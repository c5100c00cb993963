"""
cache.py — TTL Cache for Forecast Results
==========================================

Memoizes forecast results per region and request parameters so repeated
dashboard refreshes do not recompute the same 7-day forecast.

Entries expire `ttl_minutes` after they were stored; an expired entry is
evicted the next time it is read. There is no capacity limit. Values are
deep-copied on the way in and out, so callers may modify what they get.

Keys are canonical JSON (sorted keys) of {"region": ..., **params}, so two
requests with the same parameters in a different order share an entry.

Instances are owned by the caller (e.g. one per service); there is no
module-level cache.
"""

import copy
import json
import logging
import time
from threading import Lock
from typing import Any, Callable, Optional

from . import config

logger = logging.getLogger("analytics.cache")


class ForecastCache:
    """
    In-memory key → value store with time-based expiry.

    Attributes:
        ttl (float): Time-to-live in milliseconds.
        _entries (dict): key → {"data": value, "timestamp": epoch ms}.
    """

    def __init__(self, ttl_minutes: float = None,
                 clock: Callable[[], float] = time.time):
        """
        Args:
            ttl_minutes: Entry lifetime in minutes.
                Defaults to config.CACHE_TTL_MINUTES (60).
            clock: Returns the current time in seconds. Injectable for tests.
        """
        ttl_minutes = config.CACHE_TTL_MINUTES if ttl_minutes is None else ttl_minutes
        self.ttl = ttl_minutes * 60 * 1000
        self._clock = clock
        self._entries: dict[str, dict] = {}
        self._lock = Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000

    @staticmethod
    def generate_key(region: Optional[str], params: dict = None) -> str:
        """Canonical cache key for a region and parameter set."""
        key_data = {"region": region, **(params or {})}
        return json.dumps(key_data, sort_keys=True, default=str)

    def get(self, region: Optional[str], params: dict = None) -> Any:
        """
        Look up a cached value.

        Returns:
            A copy of the stored value, or None if absent or expired.
        """
        key = self.generate_key(region, params)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._now_ms() - entry["timestamp"] > self.ttl:
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None

            return copy.deepcopy(entry["data"])

    def set(self, region: Optional[str], data: Any, params: dict = None) -> None:
        """Store (or replace) a copy of a value."""
        key = self.generate_key(region, params)
        with self._lock:
            self._entries[key] = {"data": copy.deepcopy(data), "timestamp": self._now_ms()}
        logger.debug(f"Cached entry: {key}")

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
        logger.info("Forecast cache cleared")

    def size(self) -> int:
        """Number of stored entries (expired ones included until read)."""
        with self._lock:
            return len(self._entries)
