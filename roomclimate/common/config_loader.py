"""Configuration loading, overlays and environment overrides."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Any, Mapping

from roomclimate.common.errors import ConfigError
from roomclimate.common.fs import read_yaml
from roomclimate.common.schema import validate_app_config
from roomclimate.common.time_utils import load_timezone

APP_CONFIG_FILENAME = "app.yml"
ENV_SOURCES = "ROOMCLIMATE_SOURCES"
ENV_WEBHOOK_URL = "ROOMCLIMATE_WEBHOOK_URL"


@dataclass(frozen=True)
class SourceConfig:
    name: str
    data_file: Path
    postal_code: str
    title: str

    @property
    def slug(self) -> str:
        return "".join(ch if ch.isalnum() else "_" for ch in self.name.lower()).strip("_") or "source"


@dataclass(frozen=True)
class AppConfig:
    timezone: tzinfo
    settings: dict
    sources: list[SourceConfig]

    @property
    def services(self) -> dict:
        return self.settings["services"]

    @property
    def enrichment(self) -> dict:
        return self.settings["enrichment"]

    @property
    def charts(self) -> dict:
        return self.settings["charts"]

    @property
    def freshness(self) -> dict:
        return self.settings["freshness"]

    @property
    def alerts(self) -> dict:
        return self.settings["alerts"]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    return _deep_merge(base, overlay)


def apply_env_overrides(cfg: dict, environ: Mapping[str, str]) -> dict:
    out = dict(cfg) if isinstance(cfg, dict) else cfg
    if not isinstance(out, dict):
        return out

    raw_sources = environ.get(ENV_SOURCES, "").strip()
    if raw_sources:
        try:
            out["sources"] = json.loads(raw_sources)
        except ValueError as exc:
            raise ConfigError(f"{ENV_SOURCES} is not valid JSON") from exc

    webhook_url = environ.get(ENV_WEBHOOK_URL, "").strip()
    if webhook_url:
        alerts = out.get("alerts")
        out["alerts"] = {**(alerts if isinstance(alerts, dict) else {}), "webhook_url": webhook_url}
    return out


def _build_sources(sources: list[dict]) -> list[SourceConfig]:
    return [
        SourceConfig(
            name=source["name"],
            data_file=Path(source["data_file"]),
            postal_code=source["postal_code"],
            title=str(source.get("title") or source["name"]),
        )
        for source in sources
    ]


def load_app_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    overlay_path = overlay_config_dir / APP_CONFIG_FILENAME if overlay_config_dir is not None else None
    raw = _load_yaml_with_overlay(config_dir / APP_CONFIG_FILENAME, overlay_path)
    raw = apply_env_overrides(raw, os.environ if environ is None else environ)
    settings = validate_app_config(raw, allow_unknown=allow_unknown)
    return AppConfig(
        timezone=load_timezone(str(settings["timezone"])),
        settings=settings,
        sources=_build_sources(settings["sources"]),
    )


def resolve_sources(config: AppConfig, target: str) -> list[SourceConfig]:
    if target == "all":
        return list(config.sources)
    selected = [source for source in config.sources if source.name == target]
    if not selected:
        raise ConfigError(f"Unknown source: {target}")
    return selected


def masked_settings(config: AppConfig) -> dict:
    alerts = dict(config.alerts)
    url = str(alerts.get("webhook_url") or "")
    if url:
        alerts["webhook_url"] = f"{url[:24]}***"
    return {**config.settings, "alerts": alerts}
