"""Detect data sources whose newest reading is too old."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Mapping


@dataclass(frozen=True)
class StaleSource:
    name: str
    latest: datetime | None
    age: timedelta | None


def evaluate_freshness(
    latest_by_source: Mapping[str, datetime | None],
    *,
    now: datetime,
    stale_after: timedelta,
) -> list[StaleSource]:
    stale: list[StaleSource] = []
    for name, latest in latest_by_source.items():
        if latest is None:
            stale.append(StaleSource(name=name, latest=None, age=None))
            continue
        age = now - latest
        if age > stale_after:
            stale.append(StaleSource(name=name, latest=latest, age=age))
    return stale


def _format_age(age: timedelta) -> str:
    total_minutes = int(age.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h{minutes:02d}m"
    return f"{minutes}m"


def format_stale_message(stale: list[StaleSource], now: datetime) -> str:
    lines = [f"Sensor data has stopped arriving (checked {now.isoformat(timespec='minutes')}):"]
    for item in stale:
        if item.latest is None or item.age is None:
            lines.append(f"- {item.name}: no readings found")
        else:
            lines.append(
                f"- {item.name}: last reading {item.latest.isoformat(timespec='minutes')} ({_format_age(item.age)} ago)"
            )
    return "\n".join(lines)
