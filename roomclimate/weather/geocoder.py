"""Postal code to coordinate resolution via the HeartRails Geo API."""

from __future__ import annotations

from typing import Any

from roomclimate.common.errors import NotFoundError, UpstreamError
from roomclimate.common.geometry import extract_point_from_geometry
from roomclimate.common.http import HttpClient, TimeoutConfig
from roomclimate.common.models import GeoCoordinate

DEFAULT_GEOCODER_URL = "https://geoapi.heartrails.com/api/json"


def parse_geocoder_payload(payload: Any, postal_code: str) -> GeoCoordinate:
    if not isinstance(payload, dict) or not isinstance(payload.get("response"), dict):
        raise UpstreamError(f"Unexpected geocoder payload for postal code {postal_code}")
    response = payload["response"]

    locations = response.get("location")
    if locations is None:
        if "error" in response:
            raise NotFoundError(f"No location for postal code {postal_code}: {response['error']}")
        raise UpstreamError(f"Geocoder payload has no location list for postal code {postal_code}")
    if not isinstance(locations, list):
        raise UpstreamError(f"Geocoder location field is not a list for postal code {postal_code}")
    if not locations:
        raise NotFoundError(f"No location for postal code {postal_code}")

    first = locations[0]
    if not isinstance(first, dict):
        raise UpstreamError(f"Geocoder location entry is not an object for postal code {postal_code}")
    try:
        latitude, longitude = extract_point_from_geometry(first)
    except (TypeError, ValueError) as exc:
        raise UpstreamError(f"Non-numeric coordinates for postal code {postal_code}") from exc
    if latitude is None or longitude is None:
        raise UpstreamError(f"Geocoder location lacks x/y for postal code {postal_code}")
    return GeoCoordinate(latitude=latitude, longitude=longitude)


class Geocoder:
    def __init__(self, client: HttpClient, url: str = DEFAULT_GEOCODER_URL) -> None:
        self.client = client
        self.url = url

    def resolve(self, postal_code: str) -> GeoCoordinate:
        payload = self.client.get_json(
            self.url,
            source_type="geocoder",
            params={"method": "searchByPostal", "postal": postal_code},
            timeout=TimeoutConfig(connect=10, read=30),
        )
        return parse_geocoder_payload(payload, postal_code)
