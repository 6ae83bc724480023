from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from roomclimate.common.http import HttpRequestError
from roomclimate.common.models import EnrichedReading, SensorRow
from roomclimate.common.pacing import fixed_interval_bucket
from roomclimate.pipeline.aggregate import aggregate_daily
from roomclimate.weather.enricher import OutdoorTemperatureEnricher
from roomclimate.weather.store import TemperatureReadingStore

JST = timezone(timedelta(hours=9))
NOW = datetime(2026, 10, 18, 12, 30, tzinfo=JST)


class FakeFetcher:
    def __init__(self, values: dict[datetime, float | None] | None = None, failing: set[datetime] | None = None):
        self.values = values or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, datetime]] = []

    def fetch_hour(self, station_id: str, hour: datetime) -> float | None:
        self.calls.append((station_id, hour))
        if hour in self.failing:
            raise HttpRequestError("connection reset")
        return self.values.get(hour)


class RecordingSleep:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _enricher(tmp_path: Path, fetcher: FakeFetcher, pacing: RecordingSleep | None = None) -> OutdoorTemperatureEnricher:
    pacing = pacing or RecordingSleep()
    return OutdoorTemperatureEnricher(
        TemperatureReadingStore(tmp_path / "outdoor.csv"),
        fetcher,
        recent_window=timedelta(days=2),
        pacer=fixed_interval_bucket(0.1, clock=pacing.clock, sleep=pacing.sleep),
        clock=lambda: NOW,
    )


def _hour(day: int, hour: int) -> datetime:
    return datetime(2026, 10, day, hour, tzinfo=JST)


def test_result_mirrors_input_order_and_cardinality(tmp_path: Path):
    inputs = [
        datetime(2026, 10, 18, 11, 40, tzinfo=JST),
        datetime(2026, 10, 18, 9, 5, tzinfo=JST),
        datetime(2026, 10, 18, 11, 10, tzinfo=JST),
        datetime(2026, 10, 18, 9, 5, tzinfo=JST),
    ]
    fetcher = FakeFetcher({_hour(18, 9): 14.0, _hour(18, 11): 16.5})

    result = _enricher(tmp_path, fetcher).enrich("44132", inputs)

    assert [item.timestamp for item in result] == inputs
    assert [item.temperature for item in result] == [16.5, 14.0, 16.5, 14.0]


def test_empty_input_returns_empty_without_fetching(tmp_path: Path):
    fetcher = FakeFetcher()
    assert _enricher(tmp_path, fetcher).enrich("44132", []) == []
    assert fetcher.calls == []


def test_second_call_is_served_from_store(tmp_path: Path):
    inputs = [_hour(18, 8), _hour(18, 9), _hour(18, 10)]
    fetcher = FakeFetcher({_hour(18, 8): 12.0, _hour(18, 9): 13.0, _hour(18, 10): 14.0})
    enricher = _enricher(tmp_path, fetcher)

    first = enricher.enrich("44132", inputs)
    calls_after_first = len(fetcher.calls)
    second = enricher.enrich("44132", inputs)

    assert first == second
    assert calls_after_first == 3
    assert len(fetcher.calls) == calls_after_first


def test_stored_hour_is_used_even_when_request_is_mid_hour(tmp_path: Path):
    store = TemperatureReadingStore(tmp_path / "outdoor.csv")
    store.append("44132", [EnrichedReading(_hour(18, 9), 13.5)])
    fetcher = FakeFetcher()

    result = _enricher(tmp_path, fetcher).enrich("44132", [datetime(2026, 10, 18, 9, 45, tzinfo=JST)])

    assert result[0].temperature == 13.5
    assert fetcher.calls == []


def test_recent_window_boundary_is_inclusive(tmp_path: Path):
    boundary = NOW - timedelta(days=2)
    just_outside = boundary - timedelta(seconds=1)
    fetcher = FakeFetcher({_hour(16, 12): 20.0, _hour(16, 11): 19.0})

    result = _enricher(tmp_path, fetcher).enrich("44132", [boundary, just_outside])

    assert [item.temperature for item in result] == [20.0, None]
    assert fetcher.calls == [("44132", _hour(16, 12))]


def test_old_gap_is_never_fetched(tmp_path: Path):
    fetcher = FakeFetcher({_hour(10, 9): 5.0})

    result = _enricher(tmp_path, fetcher).enrich("44132", [_hour(10, 9)])

    assert result == [EnrichedReading(timestamp=_hour(10, 9), temperature=None)]
    assert fetcher.calls == []


def test_fetched_values_are_persisted_in_one_batch(tmp_path: Path, monkeypatch):
    fetcher = FakeFetcher({_hour(18, 9): 13.0, _hour(18, 10): None, _hour(18, 11): 15.0})
    enricher = _enricher(tmp_path, fetcher)
    appends = []
    original_append = enricher.store.append

    def recording_append(station_id, readings):
        readings = list(readings)
        appends.append(readings)
        return original_append(station_id, readings)

    monkeypatch.setattr(enricher.store, "append", recording_append)

    enricher.enrich("44132", [_hour(18, 9), _hour(18, 10), _hour(18, 11)])

    assert len(appends) == 1
    assert [reading.temperature for reading in appends[0]] == [13.0, 15.0]
    assert enricher.store.query("44132", _hour(18, 0), _hour(18, 23)) == {_hour(18, 9): 13.0, _hour(18, 11): 15.0}


def test_absent_hour_is_refetched_on_next_run(tmp_path: Path):
    fetcher = FakeFetcher({})
    enricher = _enricher(tmp_path, fetcher)

    enricher.enrich("44132", [_hour(18, 11)])
    fetcher.values[_hour(18, 11)] = 16.0
    result = enricher.enrich("44132", [_hour(18, 11)])

    assert result[0].temperature == 16.0
    assert len(fetcher.calls) == 2


def test_hard_failure_for_one_hour_does_not_abort_batch(tmp_path: Path):
    fetcher = FakeFetcher({_hour(18, 9): 13.0, _hour(18, 11): 15.0}, failing={_hour(18, 10)})
    enricher = _enricher(tmp_path, fetcher)

    result = enricher.enrich("44132", [_hour(18, 9), _hour(18, 10), _hour(18, 11)])

    assert [item.temperature for item in result] == [13.0, None, 15.0]
    assert enricher.store.query("44132", _hour(18, 0), _hour(18, 23)) == {_hour(18, 9): 13.0, _hour(18, 11): 15.0}


def test_duplicate_hours_are_fetched_per_request(tmp_path: Path):
    fetcher = FakeFetcher({_hour(18, 9): 13.0})
    enricher = _enricher(tmp_path, fetcher)

    result = enricher.enrich(
        "44132",
        [datetime(2026, 10, 18, 9, 10, tzinfo=JST), datetime(2026, 10, 18, 9, 50, tzinfo=JST)],
    )

    assert [item.temperature for item in result] == [13.0, 13.0]
    assert fetcher.calls == [("44132", _hour(18, 9)), ("44132", _hour(18, 9))]
    assert enricher.fetch_count == 2


def test_gap_fetches_are_paced(tmp_path: Path):
    pacing = RecordingSleep()
    fetcher = FakeFetcher({})
    enricher = _enricher(tmp_path, fetcher, pacing)

    enricher.enrich("44132", [_hour(18, 8), _hour(18, 9), _hour(18, 10)])

    assert sum(pacing.sleeps) == pytest.approx(0.2)


def test_hours_after_now_are_absent_and_not_fetched(tmp_path: Path):
    fetcher = FakeFetcher({_hour(18, 17): 21.0})

    result = _enricher(tmp_path, fetcher).enrich("44132", [NOW + timedelta(hours=5)])

    assert result == [EnrichedReading(timestamp=NOW + timedelta(hours=5), temperature=None)]
    assert fetcher.calls == []


def test_daily_outdoor_lookup_only_fetches_elapsed_hours_of_today(tmp_path: Path):
    fetcher = FakeFetcher({_hour(18, hour): 10.0 + hour for hour in range(24)})
    enricher = _enricher(tmp_path, fetcher)

    aggregates = aggregate_daily(
        [SensorRow(timestamp=NOW, indoor_temperature=22.0, humidity=50.0)],
        lambda instants: [reading.temperature for reading in enricher.enrich("44132", instants)],
    )

    assert [hour for _, hour in fetcher.calls] == [_hour(18, hour) for hour in range(13)]
    assert aggregates[0].outdoor_temp_max == 22.0
    assert aggregates[0].outdoor_temp_min == 10.0
