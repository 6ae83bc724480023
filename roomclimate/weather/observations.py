"""Hourly AMeDAS temperature lookup for a single station."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any

from roomclimate.common.constants import JMA_TIMEZONE
from roomclimate.common.errors import UpstreamError
from roomclimate.common.http import HttpClient, HttpStatusError, TimeoutConfig
from roomclimate.common.time_utils import load_timezone

DEFAULT_HOURLY_MAP_URL_TEMPLATE = "https://www.jma.go.jp/bosai/amedas/data/map/{stamp}0000.json"


def extract_station_temperature(payload: Any, station_id: str) -> float | None:
    if not isinstance(payload, dict):
        raise UpstreamError("Hourly observation payload is not an object")
    entry = payload.get(station_id)
    if entry is None:
        return None
    if not isinstance(entry, dict):
        raise UpstreamError(f"Observation entry for station {station_id} is not an object")
    temp = entry.get("temp")
    if temp is None:
        return None
    if not isinstance(temp, list):
        raise UpstreamError(f"Observation temp for station {station_id} is not a list")
    if not temp or temp[0] is None:
        return None
    try:
        return float(temp[0])
    except (TypeError, ValueError) as exc:
        raise UpstreamError(f"Non-numeric temperature for station {station_id}: {temp[0]!r}") from exc


class TemperatureFetcher:
    def __init__(
        self,
        client: HttpClient,
        url_template: str = DEFAULT_HOURLY_MAP_URL_TEMPLATE,
        source_tz: tzinfo | None = None,
    ) -> None:
        self.client = client
        self.url_template = url_template
        self.source_tz = source_tz or load_timezone(JMA_TIMEZONE)

    def url_for_hour(self, hour: datetime) -> str:
        stamp = hour.astimezone(self.source_tz).strftime("%Y%m%d%H")
        return self.url_template.format(stamp=stamp)

    def fetch_hour(self, station_id: str, hour: datetime) -> float | None:
        """Return the station temperature for ``hour`` or None when unpublished.

        ``hour`` must already be normalised to the top of the hour. A non-success
        status is a soft miss; transport failures and malformed payloads raise
        ``UpstreamError``.
        """
        try:
            payload = self.client.get_json(
                self.url_for_hour(hour),
                source_type="jma",
                timeout=TimeoutConfig(connect=10, read=30),
                attempts=1,
            )
        except HttpStatusError:
            return None
        return extract_station_temperature(payload, station_id)
