"""Timezone-aware helpers for hour addressing and run metadata."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from roomclimate.common.errors import ConfigError

SENSOR_TIMESTAMP_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def load_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {name}") from exc


def normalize_hour(value: datetime) -> datetime:
    """Truncate to the top of the UTC hour, keeping the value's own zone.

    Zones with a fractional-hour offset would otherwise land on :30 or :45
    marks that match no JMA hourly map.
    """
    if value.tzinfo is None:
        return value.replace(minute=0, second=0, microsecond=0)
    top = value.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)
    return top.astimezone(value.tzinfo)


def ensure_aware(value: datetime, tz: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def parse_sensor_timestamp(raw: str, tz: tzinfo) -> datetime | None:
    cleaned = raw.strip()
    if not cleaned:
        return None
    for fmt in SENSOR_TIMESTAMP_FORMATS:
        try:
            return ensure_aware(datetime.strptime(cleaned, fmt), tz)
        except ValueError:
            continue
    try:
        return ensure_aware(datetime.fromisoformat(cleaned), tz)
    except ValueError:
        return None


def hours_of_day(day: date, tz: tzinfo | None) -> list[datetime]:
    start = datetime(day.year, day.month, day.day, tzinfo=tz)
    return [start + timedelta(hours=offset) for offset in range(24)]
