"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from roomclimate.common.errors import ConfigError
from roomclimate.common.postal_code import normalise_postal_code

TOP_LEVEL_KEYS = {
    "timezone",
    "services",
    "enrichment",
    "charts",
    "freshness",
    "alerts",
    "sources",
}
SERVICE_KEYS = {"geocoder_url", "station_table_url", "hourly_map_url_template"}
ENRICHMENT_KEYS = {"recent_window_days", "fetch_interval_seconds", "station_cache_ttl_hours"}
CHART_KEYS = {"recent_days", "daily_days", "daily_threshold_days"}
FRESHNESS_KEYS = {"stale_after_hours"}
ALERT_KEYS = {"webhook_url", "username", "icon_emoji"}
SOURCE_REQUIRED_KEYS = {"name", "data_file", "postal_code"}
SOURCE_KNOWN_KEYS = SOURCE_REQUIRED_KEYS | {"title"}


def _assert_mapping(obj: object, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive(obj: dict, keys: set[str], ctx: str) -> None:
    for key in sorted(keys):
        value = obj[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{ctx}.{key} must be a positive number")


def _validate_section(cfg: dict, name: str, keys: set[str], allow_unknown: bool) -> None:
    _assert_mapping(cfg[name], name)
    _assert_required_keys(cfg[name], keys, name)
    _assert_no_unknown_keys(cfg[name], keys, name, allow_unknown)


def validate_source_config(source: object, idx: int, *, allow_unknown: bool = False) -> dict:
    ctx = f"sources[{idx}]"
    _assert_mapping(source, ctx)
    _assert_required_keys(source, SOURCE_REQUIRED_KEYS, ctx)
    _assert_no_unknown_keys(source, SOURCE_KNOWN_KEYS, ctx, allow_unknown)

    postal_code = normalise_postal_code(source["postal_code"])
    if postal_code is None:
        raise ConfigError(f"{ctx}.postal_code is not a 7-digit postal code: {source['postal_code']!r}")
    name = str(source["name"]).strip()
    if not name:
        raise ConfigError(f"{ctx}.name must not be empty")

    return {**source, "name": name, "postal_code": postal_code}


def validate_app_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "app config")
    _assert_required_keys(cfg, TOP_LEVEL_KEYS, "app config")
    _assert_no_unknown_keys(cfg, TOP_LEVEL_KEYS, "app config", allow_unknown)

    _validate_section(cfg, "services", SERVICE_KEYS, allow_unknown)
    if "{stamp}" not in str(cfg["services"]["hourly_map_url_template"]):
        raise ConfigError("services.hourly_map_url_template must contain {stamp}")

    _validate_section(cfg, "enrichment", ENRICHMENT_KEYS, allow_unknown)
    _assert_positive(cfg["enrichment"], ENRICHMENT_KEYS, "enrichment")
    _validate_section(cfg, "charts", CHART_KEYS, allow_unknown)
    _assert_positive(cfg["charts"], CHART_KEYS, "charts")
    charts = cfg["charts"]
    if not charts["recent_days"] <= charts["daily_threshold_days"] < charts["daily_days"]:
        raise ConfigError("charts must satisfy recent_days <= daily_threshold_days < daily_days")
    _validate_section(cfg, "freshness", FRESHNESS_KEYS, allow_unknown)
    _assert_positive(cfg["freshness"], FRESHNESS_KEYS, "freshness")
    _validate_section(cfg, "alerts", ALERT_KEYS, allow_unknown)

    if not isinstance(cfg["sources"], list) or not cfg["sources"]:
        raise ConfigError("sources must be a non-empty list")
    sources = [
        validate_source_config(source, idx, allow_unknown=allow_unknown)
        for idx, source in enumerate(cfg["sources"])
    ]
    names = [source["name"] for source in sources]
    dupes = {name for name in names if names.count(name) > 1}
    if dupes:
        raise ConfigError(f"Duplicate source names: {', '.join(sorted(dupes))}")

    return {**cfg, "sources": sources}
