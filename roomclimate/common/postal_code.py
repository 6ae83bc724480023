"""Japanese postal code normalisation and validation."""

from __future__ import annotations

import re
import unicodedata

JP_POSTAL_CODE_RE = re.compile(r"^\d{7}$")

_SEPARATOR_RE = re.compile(r"[\s\-ー－‐〒]")


def is_valid_postal_code(value: str) -> bool:
    return bool(JP_POSTAL_CODE_RE.match(value))


def normalise_postal_code(raw: str | int | None) -> str | None:
    if raw is None:
        return None

    cleaned = str(raw).strip()
    if not cleaned:
        return None

    # Full-width digits and hyphens are common in hand-entered config.
    cleaned = unicodedata.normalize("NFKC", cleaned)
    cleaned = _SEPARATOR_RE.sub("", cleaned)

    if not is_valid_postal_code(cleaned):
        return None

    return cleaned
