from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from shipping_engine.api.routes import configs as config_routes
from shipping_engine.api.routes import health as health_routes
from shipping_engine.api.routes import shipping as shipping_routes
from shipping_engine.main import create_app
from shipping_engine.models.domain import DistanceResult, Location, ServiceArea, ShippingConfig
from shipping_engine.persistence.calculations import InMemoryCalculationStore
from shipping_engine.persistence.configs import InMemoryConfigRepository
from shipping_engine.services.geo.cache import DistanceCache
from shipping_engine.services.shipping.engine import CalculationEngine
from shipping_engine.services.shipping.estimator import MultiVendorEstimator

NOW = datetime(2025, 3, 1, 6, 30, tzinfo=timezone.utc)

DESTINATION = {"lat": 12.9352, "lng": 77.6245, "postalCode": "560034"}


class DummyProvider:
    def __init__(self) -> None:
        self.calls = 0

    def get_distance(self, origin, destination):
        self.calls += 1
        return DistanceResult(
            distance_meters=10_000,
            duration_seconds=1500,
            duration_in_traffic_seconds=1800,
            fetched_at=NOW,
            distance_text="10 km",
            duration_text="25 mins",
            duration_in_traffic_text="30 mins",
        )


def _config(vendor_id: str = "V1", **overrides) -> ShippingConfig:
    values = dict(
        vendor_id=vendor_id,
        origin=Location(latitude=12.9716, longitude=77.5946, postal_code="560001", address="MG Road"),
    )
    values.update(overrides)
    return ShippingConfig(**values)


@pytest.fixture
def stack(monkeypatch):
    configs = InMemoryConfigRepository([_config("V1"), _config("V2", base_rate=70.0)])
    store = InMemoryCalculationStore(clock=lambda: NOW)
    provider = DummyProvider()
    engine = CalculationEngine(
        configs,
        DistanceCache(reader=store, provider=provider, clock=lambda: NOW),
        store,
        clock=lambda: NOW,
        local_timezone="Asia/Kolkata",
    )
    estimator = MultiVendorEstimator(engine, max_workers=2)

    monkeypatch.setattr(shipping_routes, "get_engine", lambda: engine)
    monkeypatch.setattr(shipping_routes, "get_estimator", lambda: estimator)
    monkeypatch.setattr(shipping_routes, "get_calculation_store", lambda: store)
    monkeypatch.setattr(config_routes, "get_config_repository", lambda: configs)
    return {"configs": configs, "store": store, "provider": provider}


@pytest.fixture
def client():
    return TestClient(create_app())


def test_calculate_returns_priced_quote(stack, client):
    response = client.post(
        "/api/shipping/calculate",
        json={"vendorId": "V1", "requesterId": "U1", "destination": DESTINATION, "orderValue": 500},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["shippingCost"] == 100.0
    assert data["estimatedDeliveryTime"] == {"value": 1800, "text": "30 mins"}
    assert data["distance"] == {"value": 10000, "text": "10 km"}
    assert data["breakdown"]["baseRate"] == 50.0
    assert data["freeShippingApplied"] is False
    assert data["supplierInfo"] == {"vendorId": "V1", "location": "MG Road"}
    assert len(stack["store"]) == 1


def test_calculate_accepts_snake_case(stack, client):
    response = client.post(
        "/api/shipping/calculate",
        json={
            "vendor_id": "V1",
            "destination": {"latitude": 12.9352, "longitude": 77.6245, "postal_code": "560034"},
            "order_value": 500,
            "is_express": True,
        },
    )

    assert response.status_code == 200
    assert response.json()["data"]["shippingCost"] == 150.0


def test_calculate_missing_postal_code_is_400(stack, client):
    response = client.post(
        "/api/shipping/calculate",
        json={"vendorId": "V1", "destination": {"lat": 12.9, "lng": 77.6}, "orderValue": 500},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "validation_error"
    assert stack["provider"].calls == 0


def test_calculate_unknown_vendor_is_404(stack, client):
    response = client.post(
        "/api/shipping/calculate",
        json={"vendorId": "NOPE", "destination": DESTINATION, "orderValue": 500},
    )

    assert response.status_code == 404
    assert response.json()["detail"] == {
        "success": False,
        "error": "Shipping configuration not found for this supplier",
        "code": "config_not_found",
    }


def test_calculate_out_of_area_is_422(stack, client):
    stack["configs"].replace_service_areas("V1", [ServiceArea("560001")])

    response = client.post(
        "/api/shipping/calculate",
        json={"vendorId": "V1", "destination": DESTINATION, "orderValue": 500},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "out_of_service_area"


def test_calculate_with_line_items(stack, client):
    response = client.post(
        "/api/shipping/calculate",
        json={
            "vendorId": "V1",
            "destination": DESTINATION,
            "orderValue": 200,
            "lineItems": [
                {"itemId": "SKU1", "quantity": 2, "unitPrice": 50, "shipping": {"baseShippingRate": 25}},
                {"itemId": "SKU2", "quantity": 1, "unitPrice": 100},
            ],
        },
    )

    data = response.json()["data"]
    assert data["hasLineItemShipping"] is True
    assert data["shippingCost"] == 150.0
    assert [item["itemId"] for item in data["lineItemShippingDetails"]] == ["SKU1", "SKU2"]


def test_calculate_without_provider_credentials_is_503(monkeypatch, client):
    def unconfigured():
        raise ValueError("Distance provider is not configured. Please check SHIP_MAPS_API_KEY setting.")

    monkeypatch.setattr(shipping_routes, "get_engine", unconfigured)

    response = client.post(
        "/api/shipping/calculate",
        json={"vendorId": "V1", "destination": DESTINATION, "orderValue": 500},
    )

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "provider_not_configured"


def test_estimates_report_each_vendor(stack, client):
    response = client.post(
        "/api/shipping/estimates",
        json={"vendorIds": ["V1", "MISSING", "V2"], "destination": DESTINATION, "orderValue": 500},
    )

    assert response.status_code == 200
    estimates = response.json()["estimates"]
    assert [entry["vendorId"] for entry in estimates] == ["V1", "MISSING", "V2"]
    assert estimates[0]["estimate"]["data"]["shippingCost"] == 100.0
    assert estimates[1]["estimate"]["code"] == "config_not_found"
    assert estimates[2]["estimate"]["data"]["shippingCost"] == 120.0


@pytest.mark.parametrize(
    "payload",
    [
        {"vendorIds": ["V1", "V2"], "destination": DESTINATION},
        {"vendorIds": ["V1", "V2"], "orderValue": 500},
        {"vendorIds": ["V1"], "destination": {"lat": 12.9, "lng": 77.6}, "orderValue": 500},
        {"vendorIds": ["V1"], "destination": DESTINATION, "orderValue": -5},
    ],
)
def test_estimates_reject_incomplete_order_before_any_vendor(stack, client, payload):
    response = client.post("/api/shipping/estimates", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "validation_error"
    assert stack["provider"].calls == 0
    assert len(stack["store"]) == 0


def test_estimates_require_vendor_ids(stack, client):
    response = client.post(
        "/api/shipping/estimates",
        json={"vendorIds": [], "destination": DESTINATION, "orderValue": 500},
    )

    assert response.status_code == 422


def test_estimate_time_only(stack, client):
    response = client.post(
        "/api/shipping/estimate-time",
        json={"vendorId": "V1", "destination": {"lat": 13.1, "lng": 77.7}},
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "estimatedDeliveryTime": {"value": 1800.0, "text": "30 mins"},
        "distance": {"value": 10000.0, "text": "10 km"},
    }
    assert len(stack["store"]) == 0


def test_history_is_paginated(stack, client):
    for _ in range(3):
        client.post(
            "/api/shipping/calculate",
            json={"vendorId": "V1", "requesterId": "U1", "destination": DESTINATION, "orderValue": 500},
        )

    response = client.get("/api/shipping/history/U1", params={"page": 1, "limit": 2})

    body = response.json()
    assert response.status_code == 200
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert len(body["history"]) == 2
    assert body["history"][0]["shippingCost"] == 100.0


def test_get_config(stack, client):
    response = client.get("/api/shipping/config/V2")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["vendorId"] == "V2"
    assert data["baseRate"] == 70.0
    assert data["maxDeliveryDistance"] == 100.0
    assert data["originLocation"]["postalCode"] == "560001"

    assert client.get("/api/shipping/config/NOPE").status_code == 404


def test_save_config_then_calculate(stack, client):
    payload = {
        "vendorId": "V3",
        "baseRate": 30,
        "perKmRate": 2,
        "freeShippingThreshold": 500,
        "maxDeliveryDistance": 25,
        "peakHours": [{"start": "11:00", "end": "13:00"}],
        "peakHourMultiplier": 1.5,
        "weightBasedPricing": {"enabled": True, "baseWeightKg": 2, "additionalRatePerKg": 10},
        "expressDelivery": {"enabled": False, "multiplier": 2},
        "originLocation": {"address": "Indiranagar", "latitude": 12.97, "longitude": 77.64, "postalCode": "560038"},
        "serviceAreas": [{"postalCode": "560034", "customRate": 40}],
    }

    saved = client.put("/api/shipping/config", json=payload)
    assert saved.status_code == 200
    assert saved.json()["message"] == "Shipping configuration updated successfully"

    quote = client.post(
        "/api/shipping/calculate",
        json={"vendorId": "V3", "destination": DESTINATION, "orderValue": 100, "isExpress": True},
    ).json()["data"]
    # (40 + 10 * 2) * 1.5 peak, express disabled
    assert quote["shippingCost"] == 90.0


@pytest.mark.parametrize(
    "override",
    [
        {"baseRate": -1},
        {"maxDeliveryDistance": 0},
        {"peakHourMultiplier": 0.5},
        {"peakHours": [{"start": "7pm", "end": "21:00"}]},
    ],
)
def test_save_config_rejects_invalid_values(stack, client, override):
    payload = {"vendorId": "V3", "originLocation": {"latitude": 12.97, "longitude": 77.64}}
    payload.update(override)

    assert client.put("/api/shipping/config", json=payload).status_code == 422


def test_replace_service_areas(stack, client):
    response = client.put(
        "/api/shipping/service-areas/V1",
        json={"serviceAreas": [{"postalCode": "560034", "area": "Koramangala"}, {"pincode": "560095"}]},
    )

    assert response.status_code == 200
    areas = response.json()["data"]["serviceAreas"]
    assert [area["postalCode"] for area in areas] == ["560034", "560095"]
    assert client.put("/api/shipping/service-areas/NOPE", json={"serviceAreas": []}).status_code == 404


def test_health_endpoints(monkeypatch, client):
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/").json()["status"] == "running"

    monkeypatch.setattr(health_routes.settings, "maps_api_key", "key")
    monkeypatch.setattr(health_routes, "_get_provider_health_check", lambda: lambda config: True)
    assert client.get("/api/health/provider").json() == {"service": "distance_provider", "healthy": True}


def test_database_health_without_supabase(monkeypatch, client):
    import shipping_engine.db.supabase as supabase_module

    monkeypatch.setattr(supabase_module, "get_supabase_client", lambda: None)

    assert client.get("/api/health/database").json()["configured"] is False
