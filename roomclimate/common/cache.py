"""TTL key-value caches used for short-lived lookups such as station resolution."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Protocol

from roomclimate.common.fs import read_json, write_json
from roomclimate.common.logging import log_event


class KeyValueCache(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...


class TtlCache:
    """In-process TTL cache; entries expire lazily on read."""

    def __init__(self, time_func: Callable[[], float] = time.monotonic) -> None:
        self._time_func = time_func
        self._storage: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any:
        item = self._storage.get(key)
        if not item:
            return None
        expires_at, value = item
        if expires_at < self._time_func():
            self._storage.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._storage[key] = (self._time_func() + ttl, value)

    def clear(self) -> None:
        self._storage.clear()


class JsonFileTtlCache:
    """TTL cache persisted to a JSON file so separate scheduled runs share entries.

    Expiry uses wall-clock epoch seconds because entries outlive the process.
    An unreadable file is treated as an empty cache and replaced on the next write.
    """

    def __init__(
        self,
        path: Path,
        time_func: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        self.path = path
        self._time_func = time_func
        self.logger = logger or logging.getLogger(__name__)

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            payload = read_json(self.path)
        except (OSError, ValueError) as exc:
            log_event(
                self.logger,
                f"ignoring unreadable cache file {self.path}: {exc}",
                level=logging.WARNING,
                stage="cache",
                event="CACHE_CORRUPT",
                status="error",
            )
            return {}
        return payload.get("entries", {}) if isinstance(payload, dict) else {}

    def get(self, key: str) -> Any:
        entry = self._load().get(key)
        if not entry:
            return None
        if float(entry.get("expires_at", 0)) < self._time_func():
            return None
        return entry.get("value")

    def set(self, key: str, value: Any, ttl: float) -> None:
        entries = self._load()
        now = self._time_func()
        # Expired entries are dropped whenever the file is rewritten.
        entries = {k: v for k, v in entries.items() if float(v.get("expires_at", 0)) >= now}
        entries[key] = {"value": value, "expires_at": now + ttl}
        write_json(self.path, {"entries": entries})
