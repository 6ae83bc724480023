"""Data models used across the update run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class GeoCoordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class WeatherStation:
    id: str
    name: str
    latitude: float
    longitude: float
    altitude: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TemperatureReading:
    timestamp: datetime
    station_id: str
    temperature: float | None


@dataclass(frozen=True)
class EnrichedReading:
    timestamp: datetime
    temperature: float | None


@dataclass(frozen=True)
class SensorRow:
    timestamp: datetime
    indoor_temperature: float | None
    humidity: float | None


@dataclass(frozen=True)
class DailyAggregate:
    date: date
    indoor_temp_max: float | None
    indoor_temp_min: float | None
    humidity_max: float | None
    humidity_min: float | None
    outdoor_temp_max: float | None = None
    outdoor_temp_min: float | None = None


@dataclass(frozen=True)
class ChartTable:
    kind: str
    headers: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)
