"""HTTP client for the distance matrix service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from ...config import Settings, settings as default_settings
from ...errors import ProviderError
from ...models.domain import DistanceResult, Location

logger = logging.getLogger(__name__)

# Two points in central Bengaluru, used for connectivity probes.
HEALTH_CHECK_ORIGIN = Location(latitude=12.971599, longitude=77.594566)
HEALTH_CHECK_DESTINATION = Location(latitude=12.935223, longitude=77.624481)


class DistanceProvider(Protocol):
    def get_distance(self, origin: Location, destination: Location) -> DistanceResult:
        ...


def _format_coordinates(location: Location) -> str:
    return f"{location.latitude},{location.longitude}"


def _value_and_text(element: dict, key: str) -> tuple[float | None, str | None]:
    block = element.get(key)
    if not isinstance(block, dict) or block.get("value") is None:
        return None, None
    return float(block["value"]), block.get("text")


class DistanceMatrixClient:
    """Single origin/destination lookups against a distance matrix endpoint.

    The client performs exactly one round trip per lookup and never retries;
    retry policy belongs to the caller. Every failure, whether transport or a
    non-``OK`` status in the payload, is raised as :class:`ProviderError`.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        timeout: float = 10.0,
        connect_timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Distance provider API key is not configured.")
        if not base_url:
            raise ValueError("Distance provider URL is not configured.")
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings | None = None, **kwargs: Any) -> "DistanceMatrixClient":
        config = config or default_settings
        return cls(
            api_key=config.maps_api_key,
            base_url=config.distance_matrix_url,
            timeout=config.provider_timeout_seconds,
            connect_timeout=config.provider_connect_timeout_seconds,
            **kwargs,
        )

    def _get_client(self) -> httpx.Client:
        # One client per lookup; lookups run on several estimator threads at once.
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
            transport=self._transport,
        )

    def _request(self, origin: Location, destination: Location) -> dict:
        params = {
            "origins": _format_coordinates(origin),
            "destinations": _format_coordinates(destination),
            "departure_time": "now",
            "traffic_model": "best_guess",
            "key": self.api_key,
        }
        client = self._get_client()
        try:
            response = client.get(self.base_url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            logger.error(f"Distance provider timed out after {self.timeout}s: {exc}")
            raise ProviderError(f"timeout: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(f"Distance provider returned HTTP {exc.response.status_code}")
            raise ProviderError(f"http status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Failed to reach distance provider at {self.base_url}: {exc}")
            raise ProviderError(f"transport: {exc}") from exc
        except ValueError as exc:
            logger.error(f"Distance provider returned a non-JSON body: {exc}")
            raise ProviderError("invalid json") from exc
        finally:
            client.close()

    def get_distance(self, origin: Location, destination: Location) -> DistanceResult:
        data = self._request(origin, destination)
        return parse_distance_response(data)


def parse_distance_response(data: Any) -> DistanceResult:
    """Normalize a distance matrix payload for a single origin/destination pair."""

    if not isinstance(data, dict):
        raise ProviderError("response is not an object")

    status = data.get("status")
    if status != "OK":
        logger.error(f"Distance provider error status: {status} ({data.get('error_message', 'no message')})")
        raise ProviderError(f"status {status}")

    try:
        element = data["rows"][0]["elements"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError("response missing rows/elements") from exc

    element_status = element.get("status")
    if element_status != "OK":
        logger.error(f"Route calculation failed: {element_status}")
        raise ProviderError(f"element status {element_status}")

    distance, distance_text = _value_and_text(element, "distance")
    duration, duration_text = _value_and_text(element, "duration")
    if distance is None or duration is None:
        raise ProviderError("element missing distance/duration")
    in_traffic, in_traffic_text = _value_and_text(element, "duration_in_traffic")

    return DistanceResult(
        distance_meters=distance,
        duration_seconds=duration,
        duration_in_traffic_seconds=in_traffic,
        fetched_at=datetime.now(timezone.utc),
        distance_text=distance_text,
        duration_text=duration_text,
        duration_in_traffic_text=in_traffic_text,
        raw_response=data,
    )


def check_health(config: Settings | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Probe the provider with a fixed pair of coordinates. Never raises."""

    config = config or default_settings
    if not config.maps_api_key:
        return False
    try:
        client = DistanceMatrixClient.from_settings(config, transport=transport)
        client.get_distance(HEALTH_CHECK_ORIGIN, HEALTH_CHECK_DESTINATION)
        return True
    except (ProviderError, ValueError):
        return False
