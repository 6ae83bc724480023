"""Per-source update orchestration and the freshness alert step."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial
from pathlib import Path
from typing import Callable, Mapping

from roomclimate.common.cache import JsonFileTtlCache, KeyValueCache
from roomclimate.common.config_loader import AppConfig, SourceConfig
from roomclimate.common.http import HttpClient
from roomclimate.common.logging import log_event
from roomclimate.common.pacing import fixed_interval_bucket
from roomclimate.common.time_utils import utc_now
from roomclimate.pipeline.alerts import DEFAULT_ICON_EMOJI, DEFAULT_USERNAME, WebhookAlertSink
from roomclimate.pipeline.charts import build_chart, write_chart_csv
from roomclimate.pipeline.freshness import StaleSource, evaluate_freshness, format_stale_message
from roomclimate.pipeline.sources import read_sensor_rows
from roomclimate.weather.enricher import OutdoorTemperatureEnricher
from roomclimate.weather.geocoder import Geocoder
from roomclimate.weather.observations import TemperatureFetcher
from roomclimate.weather.station_cache import StationResolutionCache, StationResolver
from roomclimate.weather.stations import StationLocator
from roomclimate.weather.store import TemperatureReadingStore


@dataclass(frozen=True)
class WeatherServices:
    resolution_cache: StationResolutionCache
    resolver: StationResolver
    enricher: OutdoorTemperatureEnricher


def store_path(data_dir: Path) -> Path:
    return data_dir / "state" / "outdoor_temperatures.csv"


def station_cache_path(data_dir: Path) -> Path:
    return data_dir / "state" / "station_cache.json"


def build_weather_services(
    config: AppConfig,
    *,
    data_dir: Path,
    client: HttpClient,
    clock: Callable[[], datetime] = utc_now,
    cache: KeyValueCache | None = None,
    logger: logging.Logger | None = None,
) -> WeatherServices:
    services = config.services
    enrichment = config.enrichment
    resolver = StationResolver(
        Geocoder(client, services["geocoder_url"]),
        StationLocator(client, services["station_table_url"]),
        logger=logger,
    )
    resolution_cache = StationResolutionCache(
        cache if cache is not None else JsonFileTtlCache(station_cache_path(data_dir), logger=logger),
        ttl=timedelta(hours=enrichment["station_cache_ttl_hours"]),
    )
    enricher = OutdoorTemperatureEnricher(
        TemperatureReadingStore(store_path(data_dir)),
        TemperatureFetcher(client, services["hourly_map_url_template"]),
        recent_window=timedelta(days=enrichment["recent_window_days"]),
        pacer=fixed_interval_bucket(enrichment["fetch_interval_seconds"]),
        clock=clock,
        logger=logger,
    )
    return WeatherServices(resolution_cache=resolution_cache, resolver=resolver, enricher=enricher)


def run_update_for_source(
    source: SourceConfig,
    config: AppConfig,
    services: WeatherServices,
    *,
    data_dir: Path,
    now: datetime,
    logger: logging.Logger,
    run_id: str | None = None,
) -> dict:
    started = time.monotonic()
    # Column lookup happens before any network call.
    rows = read_sensor_rows(source.data_file, config.timezone, source_name=source.name)

    station_id = services.resolution_cache.get_or_resolve(source.postal_code, services.resolver)
    fetched_before = services.enricher.fetch_count
    enrich = partial(services.enricher.enrich, station_id)

    charts_cfg = config.charts
    charts_dir = data_dir / "out" / "charts"
    chart_paths: dict[str, str] = {}
    for range_days in (charts_cfg["recent_days"], charts_cfg["daily_days"]):
        table = build_chart(
            rows,
            now=now,
            range_days=range_days,
            daily_threshold_days=charts_cfg["daily_threshold_days"],
            enrich=enrich,
        )
        if not table.rows:
            log_event(
                logger,
                f"no rows in the last {range_days} days for {source.name}",
                run_id=run_id,
                stage="chart",
                source=source.name,
                event="CHART_EMPTY",
                status="ok",
            )
        chart_paths[table.kind] = str(write_chart_csv(table, charts_dir, source.slug))

    latest = max((row.timestamp for row in rows), default=None)
    fetched = services.enricher.fetch_count - fetched_before
    log_event(
        logger,
        f"source {source.name} updated",
        run_id=run_id,
        stage="update",
        source=source.name,
        station=station_id,
        event="SOURCE_DONE",
        status="ok",
        duration_ms=int((time.monotonic() - started) * 1000),
        rows_in=len(rows),
        fetched=fetched,
    )
    return {
        "source": source.name,
        "status": "ok",
        "station_id": station_id,
        "rows_in": len(rows),
        "fetched": fetched,
        "latest_timestamp": latest.isoformat() if latest else None,
        "latest": latest,
        "charts": chart_paths,
    }


def run_freshness_check(
    latest_by_source: Mapping[str, datetime | None],
    config: AppConfig,
    *,
    client: HttpClient,
    now: datetime,
    logger: logging.Logger,
    run_id: str | None = None,
) -> list[StaleSource]:
    stale = evaluate_freshness(
        latest_by_source,
        now=now,
        stale_after=timedelta(hours=config.freshness["stale_after_hours"]),
    )
    if not stale:
        return stale

    message = format_stale_message(stale, now)
    log_event(
        logger,
        message,
        level=logging.WARNING,
        run_id=run_id,
        stage="freshness",
        event="DATA_STALE",
        status="stale",
    )

    alerts = config.alerts
    if not alerts.get("webhook_url"):
        return stale

    sink = WebhookAlertSink(
        client,
        alerts["webhook_url"],
        username=alerts.get("username") or DEFAULT_USERNAME,
        icon_emoji=alerts.get("icon_emoji") or DEFAULT_ICON_EMOJI,
    )
    sink.send(message)
    log_event(logger, "stale data alert sent", run_id=run_id, stage="freshness", event="ALERT_SENT", status="ok")
    return stale
