"""Outdoor temperature enrichment backed by the persistent reading store."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Sequence

from roomclimate.common.errors import UpstreamError
from roomclimate.common.logging import log_event
from roomclimate.common.models import EnrichedReading, TemperatureReading
from roomclimate.common.pacing import TokenBucket, fixed_interval_bucket, paced
from roomclimate.common.time_utils import normalize_hour, utc_now
from roomclimate.weather.observations import TemperatureFetcher
from roomclimate.weather.store import TemperatureReadingStore

DEFAULT_RECENT_WINDOW = timedelta(days=2)
DEFAULT_FETCH_INTERVAL_SECONDS = 0.1


class OutdoorTemperatureEnricher:
    """Serve hourly outdoor temperatures from the store, fetching recent gaps.

    A requested instant is looked up by its normalised hour. Misses inside the
    recent window (the trailing period ending at the current instant) are
    fetched one by one through the pacer and persisted. Misses older than the
    window or later than now stay absent and are never fetched.
    """

    def __init__(
        self,
        store: TemperatureReadingStore,
        fetcher: TemperatureFetcher,
        *,
        recent_window: timedelta = DEFAULT_RECENT_WINDOW,
        pacer: TokenBucket | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.recent_window = recent_window
        self.pacer = pacer or fixed_interval_bucket(DEFAULT_FETCH_INTERVAL_SECONDS)
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.fetch_count = 0

    def enrich(self, station_id: str, timestamps: Sequence[datetime]) -> list[EnrichedReading]:
        if not timestamps:
            return []

        start = normalize_hour(min(timestamps))
        end = max(timestamps)
        known = self.store.query(station_id, start, end)

        now = self.clock()
        window_start = now - self.recent_window
        values: dict[datetime, float | None] = {}
        gaps: list[datetime] = []
        for ts in timestamps:
            hour = normalize_hour(ts)
            if hour in known:
                values[ts] = known[hour]
            elif window_start <= ts <= now:
                gaps.append(ts)
            else:
                values[ts] = None

        fetched = self._fetch_gaps(station_id, gaps, values)
        if fetched:
            self.store.append(station_id, fetched)

        return [EnrichedReading(timestamp=ts, temperature=values.get(ts)) for ts in timestamps]

    def _fetch_gaps(
        self,
        station_id: str,
        gaps: list[datetime],
        values: dict[datetime, float | None],
    ) -> list[TemperatureReading]:
        fetched: list[TemperatureReading] = []
        for ts in paced(gaps, self.pacer):
            hour = normalize_hour(ts)
            self.fetch_count += 1
            try:
                temperature = self.fetcher.fetch_hour(station_id, hour)
            except UpstreamError as exc:
                log_event(
                    self.logger,
                    f"outdoor temperature fetch failed for {hour.isoformat()}: {exc}",
                    level=logging.WARNING,
                    stage="enrich",
                    station=station_id,
                    event="FETCH_FAIL",
                    status="error",
                    error_code=exc.error_code,
                )
                temperature = None
            values[ts] = temperature
            if temperature is not None:
                fetched.append(TemperatureReading(timestamp=hour, station_id=station_id, temperature=temperature))
        return fetched
