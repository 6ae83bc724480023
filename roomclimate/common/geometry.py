"""Geometry helpers."""

from __future__ import annotations

import math
from typing import Any

EARTH_RADIUS_KM = 6371.0


def extract_point_from_geometry(geometry: dict[str, Any] | None) -> tuple[float | None, float | None]:
    if not geometry:
        return None, None
    x = geometry.get("x")
    y = geometry.get("y")
    if x is None or y is None:
        return None, None
    return float(y), float(x)


def degree_minute_to_decimal(pair: list[float] | tuple[float, float]) -> float:
    degrees, minutes = pair
    return float(degrees) + float(minutes) / 60.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))
