"""Nearest AMeDAS station lookup over the JMA station directory."""

from __future__ import annotations

from typing import Any

from roomclimate.common.errors import NotFoundError, UpstreamError
from roomclimate.common.geometry import degree_minute_to_decimal, haversine_km
from roomclimate.common.http import HttpClient, TimeoutConfig
from roomclimate.common.models import GeoCoordinate, WeatherStation

DEFAULT_STATION_TABLE_URL = "https://www.jma.go.jp/bosai/amedas/const/amedastable.json"


def _degree_minute(entry: dict, key: str, station_id: str) -> float:
    value = entry.get(key)
    if not isinstance(value, list) or len(value) != 2:
        raise UpstreamError(f"Station {station_id} has malformed {key}: {value!r}")
    try:
        return degree_minute_to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise UpstreamError(f"Station {station_id} has non-numeric {key}") from exc


def parse_station_table(payload: Any) -> list[WeatherStation]:
    if not isinstance(payload, dict):
        raise UpstreamError("Station directory payload is not an object")

    stations: list[WeatherStation] = []
    for station_id, entry in payload.items():
        if not isinstance(entry, dict):
            raise UpstreamError(f"Station {station_id} entry is not an object")
        altitude = entry.get("alt", 0)
        try:
            altitude = float(altitude)
        except (TypeError, ValueError) as exc:
            raise UpstreamError(f"Station {station_id} has non-numeric altitude") from exc
        stations.append(
            WeatherStation(
                id=str(station_id),
                name=str(entry.get("kjName") or entry.get("enName") or station_id),
                latitude=_degree_minute(entry, "lat", station_id),
                longitude=_degree_minute(entry, "lon", station_id),
                altitude=altitude,
            )
        )
    return stations


def nearest_station(stations: list[WeatherStation], coordinate: GeoCoordinate) -> WeatherStation:
    if not stations:
        raise NotFoundError("Station directory is empty")

    best = stations[0]
    best_distance = haversine_km(coordinate.latitude, coordinate.longitude, best.latitude, best.longitude)
    for station in stations[1:]:
        distance = haversine_km(coordinate.latitude, coordinate.longitude, station.latitude, station.longitude)
        # Strict comparison keeps the first station in directory order on ties.
        if distance < best_distance:
            best = station
            best_distance = distance
    return best


class StationLocator:
    def __init__(self, client: HttpClient, url: str = DEFAULT_STATION_TABLE_URL) -> None:
        self.client = client
        self.url = url

    def fetch_directory(self) -> list[WeatherStation]:
        payload = self.client.get_json(
            self.url,
            source_type="jma",
            timeout=TimeoutConfig(connect=10, read=60),
        )
        return parse_station_table(payload)

    def find_nearest(self, coordinate: GeoCoordinate) -> WeatherStation:
        return nearest_station(self.fetch_directory(), coordinate)
