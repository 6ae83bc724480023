"""Append-only CSV cache of hourly outdoor temperatures per station."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Iterable

from roomclimate.common.constants import STORE_HEADERS
from roomclimate.common.fs import append_csv
from roomclimate.common.models import EnrichedReading, TemperatureReading
from roomclimate.common.time_utils import normalize_hour


class TemperatureReadingStore:
    """Grow-only table of (timestamp, station_id, temperature) rows.

    Rows are never updated or deleted. Duplicate (station, hour) rows may
    accumulate; lookups keep the first row in file order.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def append(self, station_id: str, readings: Iterable[EnrichedReading | TemperatureReading]) -> int:
        rows = [
            {
                "timestamp": normalize_hour(reading.timestamp).isoformat(),
                "station_id": station_id,
                "temperature": repr(float(reading.temperature)),
            }
            for reading in readings
            if reading.temperature is not None
        ]
        if not rows:
            return 0
        return append_csv(self.path, STORE_HEADERS, rows)

    def query(self, station_id: str, start: datetime, end: datetime) -> dict[datetime, float]:
        if not self.path.exists():
            return {}

        out: dict[datetime, float] = {}
        with self.path.open("r", encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                if row.get("station_id") != station_id:
                    continue
                raw_ts = row.get("timestamp")
                raw_temp = row.get("temperature")
                if not raw_ts or not raw_temp:
                    continue
                hour = normalize_hour(datetime.fromisoformat(raw_ts))
                if hour < start or hour > end:
                    continue
                out.setdefault(hour, float(raw_temp))
        return out
