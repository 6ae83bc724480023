from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

from roomclimate.common.models import EnrichedReading
from roomclimate.weather.store import TemperatureReadingStore

JST = timezone(timedelta(hours=9))


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 18, hour, minute, tzinfo=JST)


def test_append_then_query_returns_value_keyed_by_hour(tmp_path: Path):
    store = TemperatureReadingStore(tmp_path / "state" / "outdoor.csv")

    store.append("44132", [EnrichedReading(timestamp=_at(9, 42), temperature=17.25)])
    result = store.query("44132", _at(0), _at(23))

    assert result == {_at(9): 17.25}


def test_append_drops_absent_temperatures_and_writes_header_once(tmp_path: Path):
    path = tmp_path / "outdoor.csv"
    store = TemperatureReadingStore(path)

    assert store.append("44132", [EnrichedReading(_at(1), None)]) == 0
    assert not path.exists()

    store.append("44132", [EnrichedReading(_at(1), 10.0), EnrichedReading(_at(2), None)])
    store.append("44132", [EnrichedReading(_at(3), 11.0)])

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "timestamp,station_id,temperature"
    assert len(lines) == 3


def test_query_bounds_are_inclusive_and_filter_station(tmp_path: Path):
    store = TemperatureReadingStore(tmp_path / "outdoor.csv")
    store.append("44132", [EnrichedReading(_at(h), float(h)) for h in (8, 9, 10, 11)])
    store.append("11001", [EnrichedReading(_at(9), -3.0)])

    result = store.query("44132", _at(9), _at(10))

    assert result == {_at(9): 9.0, _at(10): 10.0}


def test_query_keeps_first_duplicate_in_file_order(tmp_path: Path):
    store = TemperatureReadingStore(tmp_path / "outdoor.csv")
    store.append("44132", [EnrichedReading(_at(9), 15.0)])
    store.append("44132", [EnrichedReading(_at(9), 16.0)])

    assert store.query("44132", _at(9), _at(9)) == {_at(9): 15.0}


def test_query_matches_equivalent_instants_across_offsets(tmp_path: Path):
    store = TemperatureReadingStore(tmp_path / "outdoor.csv")
    store.append("44132", [EnrichedReading(_at(9), 15.0)])

    utc_hour = datetime(2026, 10, 18, 0, tzinfo=timezone.utc)
    assert store.query("44132", utc_hour, utc_hour) == {utc_hour: 15.0}


def test_query_missing_file_is_empty(tmp_path: Path):
    assert TemperatureReadingStore(tmp_path / "missing.csv").query("44132", _at(0), _at(1)) == {}
