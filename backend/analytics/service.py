"""
service.py — Analytics Service Façade
======================================

Single entry point for hosts (API handlers, report jobs) that hold a list
of readings and want the standard water quality payload:

    readings -> filter -> aggregate + batch summaries
                       -> forecast (through the TTL cache)

The returned dict mirrors the water quality endpoint contract, e.g. for
GET /water-quality?forecast=true&region=North%20Coast the host returns

    {data, aggregated, batch_summaries,
     forecast_quality_index, trend, forecast_summary, forecast_metadata}

Usage:
    service = WaterQualityService()
    payload = service.query(readings, region="North Coast", forecast=True)
"""

import logging

import numpy as np

from . import config
from .aggregator import aggregate_sensor_data
from .batch_summary import generate_batch_summaries
from .cache import ForecastCache
from .filters import ALL_REGIONS, ReadingFilter, apply_filters
from .forecasting import (
    default_rng,
    generate_regional_forecasts,
    generate_water_quality_forecast,
)
from .utils import validate_readings

logger = logging.getLogger("analytics.service")


class WaterQualityService:
    """
    Composes filtering, aggregation, batch summaries and forecasting.

    Attributes:
        cache (ForecastCache): Cache for successful forecast results.
        rng (np.random.Generator): Noise source handed to the forecaster.
    """

    def __init__(self, cache: ForecastCache = None, rng: np.random.Generator = None):
        """
        Args:
            cache: Forecast cache. Defaults to a new ForecastCache with
                config.CACHE_TTL_MINUTES.
            rng: Noise generator. Defaults to forecasting.default_rng().
        """
        self.cache = cache if cache is not None else ForecastCache()
        self.rng = rng if rng is not None else default_rng()

    def forecast(self, readings, region: str = None, params: dict = None) -> dict:
        """
        Forecast for a region, served from the cache when fresh.

        Only successful results are cached, so a region that gains enough
        history is forecast on the next call.

        Args:
            readings: Historical reading dicts.
            region: Region to forecast (None = all regions).
            params: Extra request parameters that distinguish cache entries
                (e.g. the date range the readings were selected with).
        """
        cached = self.cache.get(region, params)
        if cached is not None:
            logger.debug(f"Forecast cache hit for {region or 'all regions'}")
            return cached

        result = generate_water_quality_forecast(readings, region, rng=self.rng)
        if result["success"]:
            self.cache.set(region, result, params)
        return result

    def regional_forecasts(self, readings) -> dict:
        """Forecasts for every region plus the overall forecast."""
        return generate_regional_forecasts(readings, rng=self.rng)

    def query(
        self,
        readings,
        region: str = None,
        start_date: str = None,
        end_date: str = None,
        forecast: bool = False,
        interval: str = "daily",
        reading_filter: ReadingFilter = None,
    ) -> dict:
        """
        Build the water quality payload for a request.

        Args:
            readings: All available reading dicts.
            region: Region name (None or "all" = every region).
            start_date: Inclusive lower timestamp bound (ISO-8601).
            end_date: Inclusive upper timestamp bound (ISO-8601).
            forecast: Include the 7-day forecast fields.
            interval: Batch summary interval.
            reading_filter: Full filter; overrides region/start/end when given.

        Returns:
            Dict with data, aggregated and batch_summaries, plus
            forecast_quality_index, trend, forecast_summary and
            forecast_metadata when forecast=True.

        Raises:
            ValueError: For an invalid filter or interval.
            TypeError: If readings is not a list of dicts.
        """
        readings = validate_readings(readings)
        if interval not in config.HOURS_PER_INTERVAL:
            raise ValueError(f"Unsupported interval '{interval}'")

        if reading_filter is None:
            reading_filter = ReadingFilter(
                region=region or ALL_REGIONS,
                start_date=start_date,
                end_date=end_date,
            )

        selected = apply_filters(readings, reading_filter)
        logger.info(f"Query selected {len(selected)}/{len(readings)} readings")

        payload = {
            "data": selected,
            "aggregated": aggregate_sensor_data(selected),
            "batch_summaries": generate_batch_summaries(selected, interval),
        }

        if forecast:
            forecast_region = (reading_filter.region
                               if reading_filter.region != ALL_REGIONS else None)
            result = self.forecast(selected, forecast_region,
                                   reading_filter.selection_params())
            payload.update({
                "forecast_quality_index": result["forecast_quality_index"],
                "trend": result["trend"],
                "forecast_summary": result.get("summary"),
                "forecast_metadata": result.get("metadata"),
            })
            if not result["success"]:
                payload["forecast_error"] = result["error"]

        return payload
