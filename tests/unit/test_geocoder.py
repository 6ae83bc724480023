from __future__ import annotations

import pytest

from roomclimate.common.errors import NotFoundError, UpstreamError
from roomclimate.weather.geocoder import Geocoder, parse_geocoder_payload


class FakeHttpClient:
    def __init__(self, payload):
        self.payload = payload
        self.calls: list[tuple[str, dict]] = []

    def get_json(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        return self.payload


def test_geocoder_uses_first_location_x_as_longitude_y_as_latitude():
    client = FakeHttpClient(
        {
            "response": {
                "location": [
                    {"x": "139.7671", "y": "35.6812", "city": "千代田区"},
                    {"x": "0", "y": "0"},
                ]
            }
        }
    )

    coordinate = Geocoder(client, "https://geo.example/api/json").resolve("1000005")

    assert coordinate.latitude == pytest.approx(35.6812)
    assert coordinate.longitude == pytest.approx(139.7671)
    url, kwargs = client.calls[0]
    assert url == "https://geo.example/api/json"
    assert kwargs["params"] == {"method": "searchByPostal", "postal": "1000005"}
    assert kwargs["source_type"] == "geocoder"


def test_geocoder_error_response_is_not_found():
    payload = {"response": {"error": "Cities of postal code '9999999' do not exist."}}
    with pytest.raises(NotFoundError):
        parse_geocoder_payload(payload, "9999999")


def test_geocoder_empty_location_list_is_not_found():
    with pytest.raises(NotFoundError):
        parse_geocoder_payload({"response": {"location": []}}, "9999999")


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"unexpected": True},
        {"response": {}},
        {"response": {"location": "nope"}},
        {"response": {"location": [{"city": "no coords"}]}},
        {"response": {"location": [{"x": "east", "y": "north"}]}},
    ],
)
def test_geocoder_shape_mismatch_is_upstream_error(payload):
    with pytest.raises(UpstreamError):
        parse_geocoder_payload(payload, "1000001")
