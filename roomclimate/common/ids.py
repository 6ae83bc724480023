"""Run identifier helpers."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone


def generate_run_id(command: str = "update") -> str:
    """Return ``<command>-<UTC stamp>-<hex>``, sortable by start time."""
    stamp = datetime.now(tz=timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{command}-{stamp}-{secrets.token_hex(3)}"
