"""Chart table assembly and CSV export for the rendering host."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Sequence

from roomclimate.common.fs import write_csv
from roomclimate.common.models import ChartTable, EnrichedReading, SensorRow
from roomclimate.pipeline.aggregate import OutdoorLookup, aggregate_daily

RECENT_HEADERS = [
    "timestamp",
    "indoor_temperature_c",
    "humidity_pct",
    "outdoor_temperature_c",
]
DAILY_HEADERS = [
    "date",
    "indoor_temp_max_c",
    "indoor_temp_min_c",
    "humidity_max_pct",
    "humidity_min_pct",
    "outdoor_temp_max_c",
    "outdoor_temp_min_c",
]

Enrich = Callable[[Sequence[datetime]], list[EnrichedReading]]


def _temperatures_only(enrich: Enrich) -> OutdoorLookup:
    def _lookup(instants: Sequence[datetime]) -> list[float | None]:
        return [reading.temperature for reading in enrich(instants)]

    return _lookup


def select_range(rows: Sequence[SensorRow], *, now: datetime, range_days: float) -> list[SensorRow]:
    since = now - timedelta(days=range_days)
    return [row for row in rows if since <= row.timestamp <= now]


def build_recent_table(rows: Sequence[SensorRow], enrich: Enrich | None = None) -> ChartTable:
    ordered = sorted(rows, key=lambda row: row.timestamp)
    outdoor: list[float | None] = [None] * len(ordered)
    if enrich is not None and ordered:
        outdoor = [reading.temperature for reading in enrich([row.timestamp for row in ordered])]

    table_rows = [
        {
            "timestamp": row.timestamp.isoformat(),
            "indoor_temperature_c": row.indoor_temperature,
            "humidity_pct": row.humidity,
            "outdoor_temperature_c": temperature,
        }
        for row, temperature in zip(ordered, outdoor)
    ]
    return ChartTable(kind="recent", headers=RECENT_HEADERS, rows=table_rows)


def build_daily_table(rows: Sequence[SensorRow], outdoor_lookup: OutdoorLookup | None = None) -> ChartTable:
    table_rows = [
        {
            "date": aggregate.date.isoformat(),
            "indoor_temp_max_c": aggregate.indoor_temp_max,
            "indoor_temp_min_c": aggregate.indoor_temp_min,
            "humidity_max_pct": aggregate.humidity_max,
            "humidity_min_pct": aggregate.humidity_min,
            "outdoor_temp_max_c": aggregate.outdoor_temp_max,
            "outdoor_temp_min_c": aggregate.outdoor_temp_min,
        }
        for aggregate in aggregate_daily(rows, outdoor_lookup)
    ]
    return ChartTable(kind="daily", headers=DAILY_HEADERS, rows=table_rows)


def build_chart(
    rows: Sequence[SensorRow],
    *,
    now: datetime,
    range_days: float,
    daily_threshold_days: float,
    enrich: Enrich | None = None,
) -> ChartTable:
    """Raw rows for short ranges, daily max/min once the range exceeds the threshold."""
    selected = select_range(rows, now=now, range_days=range_days)
    if range_days > daily_threshold_days:
        lookup = _temperatures_only(enrich) if enrich is not None else None
        return build_daily_table(selected, lookup)
    return build_recent_table(selected, enrich)


def _serialize_row(row: dict, headers: list[str]) -> dict:
    out = {}
    for key in headers:
        value = row.get(key)
        out[key] = "" if value is None else value
    return out


def write_chart_csv(table: ChartTable, out_dir: Path, slug: str) -> Path:
    out_path = out_dir / f"{slug}_{table.kind}.csv"
    write_csv(out_path, table.headers, (_serialize_row(row, table.headers) for row in table.rows))
    return out_path
