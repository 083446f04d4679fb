"""Vendor shipping configuration persistence."""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import replace
from typing import Any, Optional, Sequence

from ..config import settings
from ..errors import PersistenceError
from ..models.domain import (
    ExpressDelivery,
    Location,
    PeakWindow,
    ServiceArea,
    ShippingConfig,
    WeightPricing,
)

logger = logging.getLogger(__name__)


def location_to_row(location: Location) -> dict[str, Any]:
    return {
        "address": location.address,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "postal_code": location.postal_code,
    }


def location_from_row(row: dict[str, Any]) -> Location:
    return Location(
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        postal_code=row.get("postal_code") or row.get("pincode"),
        address=row.get("address"),
    )


def _service_area_to_row(area: ServiceArea) -> dict[str, Any]:
    return {
        "postal_code": area.postal_code,
        "custom_rate": area.custom_rate,
        "area": area.area,
        "district": area.district,
    }


def _service_area_from_row(row: dict[str, Any]) -> ServiceArea:
    custom_rate = row.get("custom_rate")
    return ServiceArea(
        postal_code=str(row.get("postal_code") or row.get("pincode") or ""),
        custom_rate=float(custom_rate) if custom_rate is not None else None,
        area=row.get("area"),
        district=row.get("district"),
    )


def config_to_row(config: ShippingConfig) -> dict[str, Any]:
    return {
        "vendor_id": config.vendor_id,
        "base_rate": config.base_rate,
        "per_km_rate": config.per_km_rate,
        "free_shipping_threshold": config.free_shipping_threshold,
        "max_delivery_distance_km": config.max_delivery_distance_km,
        "peak_hours": [{"start": w.start, "end": w.end} for w in config.peak_hours],
        "peak_hour_multiplier": config.peak_hour_multiplier,
        "weight_pricing": {
            "enabled": config.weight_pricing.enabled,
            "base_weight_kg": config.weight_pricing.base_weight_kg,
            "additional_rate_per_kg": config.weight_pricing.additional_rate_per_kg,
        },
        "express_delivery": {
            "enabled": config.express_delivery.enabled,
            "multiplier": config.express_delivery.multiplier,
        },
        "origin": location_to_row(config.origin),
        "service_areas": [_service_area_to_row(area) for area in config.service_areas],
        "is_active": config.is_active,
    }


def config_from_row(row: dict[str, Any]) -> ShippingConfig:
    weight = row.get("weight_pricing") or {}
    express = row.get("express_delivery") or {}
    return ShippingConfig(
        vendor_id=str(row["vendor_id"]),
        origin=location_from_row(row["origin"]),
        base_rate=float(row["base_rate"]),
        per_km_rate=float(row["per_km_rate"]),
        free_shipping_threshold=float(row["free_shipping_threshold"]),
        max_delivery_distance_km=float(row["max_delivery_distance_km"]),
        peak_hours=[PeakWindow(start=w["start"], end=w["end"]) for w in (row.get("peak_hours") or [])],
        peak_hour_multiplier=float(row.get("peak_hour_multiplier") or 1.0),
        weight_pricing=WeightPricing(
            enabled=bool(weight.get("enabled", False)),
            base_weight_kg=float(weight.get("base_weight_kg", 1.0)),
            additional_rate_per_kg=float(weight.get("additional_rate_per_kg", 10.0)),
        ),
        express_delivery=ExpressDelivery(
            enabled=bool(express.get("enabled", True)),
            multiplier=float(express.get("multiplier", 1.5)),
        ),
        service_areas=[_service_area_from_row(area) for area in (row.get("service_areas") or [])],
        is_active=bool(row.get("is_active", True)),
    )


class SupabaseConfigRepository:
    """Configs stored one row per vendor in the ``shipping_configs`` table."""

    def __init__(self, client: Any, table: str | None = None) -> None:
        self.client = client
        self.table = table or settings.configs_table

    def _first(self, rows: list[dict] | None) -> Optional[ShippingConfig]:
        if not rows:
            return None
        try:
            return config_from_row(rows[0])
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid shipping config row: {e}")
            return None

    def _select(self, vendor_id: str, active_only: bool) -> list[dict] | None:
        query = self.client.table(self.table).select("*").eq("vendor_id", vendor_id)
        if active_only:
            query = query.eq("is_active", True)
        try:
            return query.limit(1).execute().data
        except Exception as e:
            logger.error(f"Failed to load shipping config for vendor {vendor_id}: {e}")
            raise PersistenceError(
                str(e), message="Unable to load shipping configuration. Please try again."
            ) from e

    def get_active_config(self, vendor_id: str) -> Optional[ShippingConfig]:
        return self._first(self._select(vendor_id, active_only=True))

    def get_config(self, vendor_id: str) -> Optional[ShippingConfig]:
        return self._first(self._select(vendor_id, active_only=False))

    def upsert_config(self, config: ShippingConfig) -> ShippingConfig:
        try:
            response = self.client.table(self.table).upsert(config_to_row(config), on_conflict="vendor_id").execute()
        except Exception as e:
            logger.error(f"Failed to save shipping config for vendor {config.vendor_id}: {e}")
            raise PersistenceError(str(e)) from e
        return self._first(response.data) or config

    def replace_service_areas(self, vendor_id: str, areas: Sequence[ServiceArea]) -> Optional[ShippingConfig]:
        try:
            response = (
                self.client.table(self.table)
                .update({"service_areas": [_service_area_to_row(area) for area in areas]})
                .eq("vendor_id", vendor_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update service areas for vendor {vendor_id}: {e}")
            raise PersistenceError(str(e)) from e
        return self._first(response.data)


class InMemoryConfigRepository:
    """Process-local config store used when Supabase is not configured.

    Configs are copied on the way in and out, like rows read back from a table.
    """

    def __init__(self, configs: Sequence[ShippingConfig] = ()) -> None:
        self._lock = threading.Lock()
        self._configs: dict[str, ShippingConfig] = {config.vendor_id: copy.deepcopy(config) for config in configs}

    def get_active_config(self, vendor_id: str) -> Optional[ShippingConfig]:
        config = self.get_config(vendor_id)
        if config is None or not config.is_active:
            return None
        return config

    def get_config(self, vendor_id: str) -> Optional[ShippingConfig]:
        with self._lock:
            return copy.deepcopy(self._configs.get(vendor_id))

    def upsert_config(self, config: ShippingConfig) -> ShippingConfig:
        with self._lock:
            self._configs[config.vendor_id] = copy.deepcopy(config)
        return copy.deepcopy(config)

    def replace_service_areas(self, vendor_id: str, areas: Sequence[ServiceArea]) -> Optional[ShippingConfig]:
        with self._lock:
            existing = self._configs.get(vendor_id)
            if existing is None:
                return None
            updated = replace(existing, service_areas=copy.deepcopy(list(areas)))
            self._configs[vendor_id] = updated
            return copy.deepcopy(updated)
