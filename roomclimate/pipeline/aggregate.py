"""Per-day max/min rollups for long-range charts."""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Callable, Iterable, Sequence

from roomclimate.common.models import DailyAggregate, SensorRow
from roomclimate.common.time_utils import hours_of_day

OutdoorLookup = Callable[[Sequence[datetime]], list]


def _max_min(values: Iterable[float | None]) -> tuple[float | None, float | None]:
    present = [value for value in values if value is not None]
    if not present:
        return None, None
    return max(present), min(present)


def aggregate_daily(
    rows: Iterable[SensorRow],
    outdoor_lookup: OutdoorLookup | None = None,
) -> list[DailyAggregate]:
    by_day: dict[date, list[SensorRow]] = {}
    tz_by_day: dict[date, tzinfo | None] = {}
    for row in rows:
        day = row.timestamp.date()
        by_day.setdefault(day, []).append(row)
        tz_by_day.setdefault(day, row.timestamp.tzinfo)

    out: list[DailyAggregate] = []
    for day in sorted(by_day):
        day_rows = by_day[day]
        indoor_max, indoor_min = _max_min(row.indoor_temperature for row in day_rows)
        humidity_max, humidity_min = _max_min(row.humidity for row in day_rows)

        outdoor_max = outdoor_min = None
        if outdoor_lookup is not None:
            instants = hours_of_day(day, tz_by_day[day])
            outdoor_max, outdoor_min = _max_min(outdoor_lookup(instants))

        out.append(
            DailyAggregate(
                date=day,
                indoor_temp_max=indoor_max,
                indoor_temp_min=indoor_min,
                humidity_max=humidity_max,
                humidity_min=humidity_min,
                outdoor_temp_max=outdoor_max,
                outdoor_temp_min=outdoor_min,
            )
        )
    return out
