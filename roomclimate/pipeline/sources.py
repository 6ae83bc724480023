"""Sensor sheet export reader."""

from __future__ import annotations

from datetime import tzinfo
from pathlib import Path
from typing import Sequence

from roomclimate.common.constants import HUMIDITY_COLUMN_KEYWORDS, TEMPERATURE_COLUMN_KEYWORDS
from roomclimate.common.errors import NotFoundError
from roomclimate.common.fs import read_csv_rows
from roomclimate.common.models import SensorRow
from roomclimate.common.time_utils import parse_sensor_timestamp

TIMESTAMP_COLUMN_INDEX = 0


def find_column_index(headers: Sequence[str], keywords: Sequence[str]) -> int:
    """Return the first header containing any keyword, or -1."""
    lowered = [keyword.lower() for keyword in keywords]
    for idx, header in enumerate(headers):
        text = str(header).lower()
        if any(keyword in text for keyword in lowered):
            return idx
    return -1


def _safe_float(value: str | None) -> float | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _cell(row: list[str], idx: int) -> str | None:
    return row[idx] if idx < len(row) else None


def parse_sensor_rows(table: list[list[str]], tz: tzinfo, *, source_name: str = "source") -> list[SensorRow]:
    if not table:
        raise NotFoundError(f"Data source {source_name} has no header row")

    headers = table[0]
    temp_idx = find_column_index(headers, TEMPERATURE_COLUMN_KEYWORDS)
    humidity_idx = find_column_index(headers, HUMIDITY_COLUMN_KEYWORDS)
    if temp_idx == -1:
        raise NotFoundError(f"Data source {source_name} has no temperature column")
    if humidity_idx == -1:
        raise NotFoundError(f"Data source {source_name} has no humidity column")

    rows: list[SensorRow] = []
    for raw in table[1:]:
        raw_ts = _cell(raw, TIMESTAMP_COLUMN_INDEX)
        if raw_ts is None:
            continue
        timestamp = parse_sensor_timestamp(raw_ts, tz)
        if timestamp is None:
            continue
        rows.append(
            SensorRow(
                timestamp=timestamp,
                indoor_temperature=_safe_float(_cell(raw, temp_idx)),
                humidity=_safe_float(_cell(raw, humidity_idx)),
            )
        )
    return rows


def read_sensor_rows(path: Path, tz: tzinfo, *, source_name: str = "source") -> list[SensorRow]:
    if not path.exists():
        raise NotFoundError(f"Data file for {source_name} not found: {path}")
    return parse_sensor_rows(read_csv_rows(path), tz, source_name=source_name)
