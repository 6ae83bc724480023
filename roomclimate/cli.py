"""CLI entrypoint for the hourly room climate chart update."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from roomclimate.common.config_loader import (
    AppConfig,
    load_app_config,
    masked_settings,
    resolve_sources,
)
from roomclimate.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from roomclimate.common.errors import ConfigError, PipelineError
from roomclimate.common.http import HttpClient
from roomclimate.common.ids import generate_run_id
from roomclimate.common.logging import build_logger, close_logger, log_event
from roomclimate.common.postal_code import normalise_postal_code
from roomclimate.common.time_utils import ensure_aware, utc_now
from roomclimate.pipeline.reports import write_run_summary
from roomclimate.pipeline.runner import build_weather_services, run_freshness_check, run_update_for_source
from roomclimate.pipeline.sources import read_sensor_rows
from roomclimate.weather.geocoder import Geocoder
from roomclimate.weather.stations import StationLocator


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--source", default="all")
    parser.add_argument("--postal-code", default=None)
    parser.add_argument("--now", default=None, help="ISO 8601 instant to run as (defaults to the current time)")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def _resolve_now(raw: str | None, config: AppConfig) -> datetime:
    if not raw:
        return utc_now().astimezone(config.timezone)
    try:
        return ensure_aware(datetime.fromisoformat(raw), config.timezone)
    except ValueError as exc:
        raise ConfigError(f"--now is not an ISO 8601 instant: {raw}") from exc


def _load_config(args: argparse.Namespace) -> AppConfig:
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    return load_app_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)


def run_update(args: argparse.Namespace, config: AppConfig, logger, run_id: str, data_dir: Path) -> int:
    now = _resolve_now(args.now, config)
    sources = resolve_sources(config, args.source)
    results: list[dict] = []
    had_partial_failure = False

    with HttpClient() as client:
        services = build_weather_services(config, data_dir=data_dir, client=client, clock=lambda: now, logger=logger)

        for source in sources:
            try:
                results.append(
                    run_update_for_source(source, config, services, data_dir=data_dir, now=now, logger=logger, run_id=run_id)
                )
            except PipelineError as exc:
                had_partial_failure = True
                results.append({"source": source.name, "status": "error", "error_code": exc.error_code, "error": str(exc)})
                log_event(
                    logger,
                    f"update failed for source {source.name}: {exc}",
                    run_id=run_id,
                    stage="update",
                    source=source.name,
                    event="SOURCE_FAIL",
                    status="error",
                    error_code=exc.error_code,
                )
            except Exception as exc:
                had_partial_failure = True
                results.append({"source": source.name, "status": "error", "error_code": "UNEXPECTED_ERROR", "error": str(exc)})
                logger.exception(
                    f"unexpected failure for source {source.name}",
                    extra={
                        "run_id": run_id,
                        "stage": "update",
                        "source": source.name,
                        "event": "SOURCE_FAIL",
                        "status": "error",
                        "error_code": "UNEXPECTED_ERROR",
                    },
                )
            if had_partial_failure and args.strict:
                return EXIT_HARD_FAIL

        latest_by_source = {result["source"]: result.get("latest") for result in results if result["status"] == "ok"}
        alert_error = None
        try:
            stale = run_freshness_check(latest_by_source, config, client=client, now=now, logger=logger, run_id=run_id)
        except PipelineError as exc:
            stale = []
            alert_error = str(exc)
            had_partial_failure = True
            log_event(
                logger,
                f"freshness alert failed: {exc}",
                run_id=run_id,
                stage="freshness",
                event="ALERT_FAIL",
                status="error",
                error_code=exc.error_code,
            )

    write_run_summary(
        data_dir,
        run_id=run_id,
        run_at=now.isoformat(),
        results=results,
        stale=stale,
        alert_error=alert_error,
    )
    if had_partial_failure:
        return EXIT_HARD_FAIL if args.strict else EXIT_PARTIAL
    return EXIT_SUCCESS


def run_check_freshness(args: argparse.Namespace, config: AppConfig, logger, run_id: str) -> int:
    now = _resolve_now(args.now, config)
    latest_by_source = {}
    had_source_failure = False
    for source in resolve_sources(config, args.source):
        try:
            rows = read_sensor_rows(source.data_file, config.timezone, source_name=source.name)
        except PipelineError as exc:
            had_source_failure = True
            log_event(
                logger,
                f"source {source.name} failed: {exc}",
                run_id=run_id,
                stage="freshness",
                source=source.name,
                event="SOURCE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            continue
        latest_by_source[source.name] = max((row.timestamp for row in rows), default=None)

    with HttpClient() as client:
        stale = run_freshness_check(latest_by_source, config, client=client, now=now, logger=logger, run_id=run_id)
    for item in stale:
        print(item.name)
    if had_source_failure and args.strict:
        return EXIT_HARD_FAIL
    return EXIT_PARTIAL if stale or had_source_failure else EXIT_SUCCESS


def run_resolve_station(args: argparse.Namespace, config: AppConfig) -> int:
    if args.postal_code:
        postal_code = normalise_postal_code(args.postal_code)
        if postal_code is None:
            raise ConfigError(f"--postal-code is not a 7-digit postal code: {args.postal_code}")
        postal_codes = [postal_code]
    else:
        postal_codes = [source.postal_code for source in resolve_sources(config, args.source)]

    with HttpClient() as client:
        geocoder = Geocoder(client, config.services["geocoder_url"])
        locator = StationLocator(client, config.services["station_table_url"])
        for postal_code in postal_codes:
            coordinate = geocoder.resolve(postal_code)
            station = locator.find_nearest(coordinate)
            print(json.dumps({"postal_code": postal_code, **station.to_dict()}, ensure_ascii=False))
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id(args.command)
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    try:
        config = _load_config(args)
        log_event(logger, f"{args.command} start", run_id=run_id, stage=args.command, event="RUN_START", status="ok")
        if args.command == "update":
            code = run_update(args, config, logger, run_id, data_dir)
        elif args.command == "check-freshness":
            code = run_check_freshness(args, config, logger, run_id)
        elif args.command == "resolve-station":
            code = run_resolve_station(args, config)
        elif args.command == "show-config":
            print(json.dumps(masked_settings(config), ensure_ascii=False, indent=2, default=str))
            code = EXIT_SUCCESS
        else:
            raise ValueError(f"Unknown command: {args.command}")
        log_event(logger, f"{args.command} end", run_id=run_id, stage=args.command, event="RUN_END", status="ok")
        return code
    except PipelineError as exc:
        log_event(
            logger,
            f"{args.command} failed: {exc}",
            run_id=run_id,
            stage=args.command,
            event="RUN_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    finally:
        close_logger(logger)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
