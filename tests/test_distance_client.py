import httpx
import pytest

from shipping_engine.config import Settings
from shipping_engine.errors import ProviderError
from shipping_engine.models.domain import Location
from shipping_engine.services.geo.distance_client import (
    DistanceMatrixClient,
    check_health,
    parse_distance_response,
)

ORIGIN = Location(latitude=12.9716, longitude=77.5946)
DESTINATION = Location(latitude=12.9352, longitude=77.6245, postal_code="560034")


def _payload(status="OK", element_status="OK", in_traffic=True) -> dict:
    element = {
        "status": element_status,
        "distance": {"value": 8200, "text": "8.2 km"},
        "duration": {"value": 1500, "text": "25 mins"},
    }
    if in_traffic:
        element["duration_in_traffic"] = {"value": 2100, "text": "35 mins"}
    return {"status": status, "rows": [{"elements": [element]}]}


def _client(handler) -> DistanceMatrixClient:
    return DistanceMatrixClient(
        api_key="test-key",
        base_url="https://maps.example.test/distancematrix/json",
        transport=httpx.MockTransport(handler),
    )


def test_get_distance_sends_coordinates_and_traffic_hint():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json=_payload())

    result = _client(handler).get_distance(ORIGIN, DESTINATION)

    assert captured["params"]["origins"] == "12.9716,77.5946"
    assert captured["params"]["destinations"] == "12.9352,77.6245"
    assert captured["params"]["departure_time"] == "now"
    assert captured["params"]["key"] == "test-key"
    assert result.distance_km == pytest.approx(8.2)
    assert result.delivery_seconds == 2100
    assert result.delivery_text == "35 mins"
    assert result.raw_response["status"] == "OK"
    assert result.from_cache is False


def test_delivery_time_falls_back_to_duration_without_traffic():
    result = parse_distance_response(_payload(in_traffic=False))

    assert result.duration_in_traffic_seconds is None
    assert result.delivery_seconds == 1500
    assert result.delivery_text == "25 mins"


@pytest.mark.parametrize(
    "payload",
    [
        _payload(status="REQUEST_DENIED"),
        _payload(element_status="ZERO_RESULTS"),
        _payload(element_status="NOT_FOUND"),
        {"status": "OK", "rows": []},
        {"status": "OK", "rows": [{"elements": [{"status": "OK"}]}]},
        ["not", "an", "object"],
    ],
)
def test_non_success_responses_raise_provider_error(payload):
    with pytest.raises(ProviderError) as excinfo:
        parse_distance_response(payload)

    assert excinfo.value.message == "Failed to calculate distance. Please try again."
    assert excinfo.value.status_code == 502


def test_http_error_status_raises_provider_error():
    client = _client(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(ProviderError) as excinfo:
        client.get_distance(ORIGIN, DESTINATION)

    assert "503" in excinfo.value.detail


def test_transport_failure_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError):
        _client(handler).get_distance(ORIGIN, DESTINATION)


def test_timeout_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ProviderError) as excinfo:
        _client(handler).get_distance(ORIGIN, DESTINATION)

    assert excinfo.value.detail.startswith("timeout")


def test_invalid_json_raises_provider_error():
    client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ProviderError):
        client.get_distance(ORIGIN, DESTINATION)


def test_missing_api_key_is_rejected_at_construction():
    with pytest.raises(ValueError):
        DistanceMatrixClient(api_key=None, base_url="https://maps.example.test")


def test_from_settings_uses_injected_configuration():
    config = Settings(maps_api_key="abc", distance_matrix_url="https://maps.example.test/json/", provider_timeout_seconds=3)

    client = DistanceMatrixClient.from_settings(config)

    assert client.api_key == "abc"
    assert client.base_url == "https://maps.example.test/json"
    assert client.timeout == 3


def test_check_health_never_raises():
    config = Settings(maps_api_key="abc", distance_matrix_url="https://maps.example.test/json")

    assert check_health(config, transport=httpx.MockTransport(lambda r: httpx.Response(200, json=_payload())))
    assert not check_health(config, transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    assert not check_health(Settings(maps_api_key=None))
