"""Postal code to station id resolution with a TTL cache in front."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable

from roomclimate.common.cache import KeyValueCache
from roomclimate.common.constants import STATION_CACHE_KEY_PREFIX
from roomclimate.common.logging import log_event
from roomclimate.weather.geocoder import Geocoder
from roomclimate.weather.stations import StationLocator

DEFAULT_TTL = timedelta(hours=24)


class StationResolver:
    """Geocode a postal code, then pick the nearest station to that point."""

    def __init__(self, geocoder: Geocoder, locator: StationLocator, logger: logging.Logger | None = None) -> None:
        self.geocoder = geocoder
        self.locator = locator
        self.logger = logger or logging.getLogger(__name__)

    def __call__(self, postal_code: str) -> str:
        coordinate = self.geocoder.resolve(postal_code)
        station = self.locator.find_nearest(coordinate)
        log_event(
            self.logger,
            f"postal code {postal_code} resolved to station {station.id} ({station.name})",
            stage="resolve-station",
            station=station.id,
            event="STATION_RESOLVED",
            status="ok",
        )
        return station.id


class StationResolutionCache:
    def __init__(self, cache: KeyValueCache, ttl: timedelta = DEFAULT_TTL) -> None:
        self.cache = cache
        self.ttl = ttl

    def _key(self, postal_code: str) -> str:
        return f"{STATION_CACHE_KEY_PREFIX}{postal_code}"

    def get_or_resolve(self, postal_code: str, resolver: Callable[[str], str]) -> str:
        cached = self.cache.get(self._key(postal_code))
        if cached:
            return str(cached)
        station_id = resolver(postal_code)
        self.cache.set(self._key(postal_code), station_id, self.ttl.total_seconds())
        return station_id
