"""Vendor shipping configuration endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status

from ...errors import ConfigNotFound, ShippingError
from ...schemas.configs import ConfigResponse, ServiceAreasUpdate, ShippingConfigModel
from ...services.shipping.factory import get_config_repository
from .shipping import shipping_http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipping", tags=["shipping-config"])


@router.get("/config/{vendor_id}", response_model=ConfigResponse, status_code=status.HTTP_200_OK)
def get_shipping_config(vendor_id: str) -> ConfigResponse:
    """Return a vendor's configuration, active or not."""
    try:
        config = get_config_repository().get_config(vendor_id)
        if config is None:
            raise ConfigNotFound(vendor_id)
    except ShippingError as exc:
        raise shipping_http_error(exc) from exc
    return ConfigResponse(data=ShippingConfigModel.from_domain(config))


@router.put("/config", response_model=ConfigResponse, status_code=status.HTTP_200_OK)
def save_shipping_config(payload: ShippingConfigModel) -> ConfigResponse:
    try:
        saved = get_config_repository().upsert_config(payload.to_domain())
    except ShippingError as exc:
        raise shipping_http_error(exc) from exc
    logger.info(f"Saved shipping configuration for vendor {saved.vendor_id}")
    return ConfigResponse(
        data=ShippingConfigModel.from_domain(saved),
        message="Shipping configuration updated successfully",
    )


@router.put("/service-areas/{vendor_id}", response_model=ConfigResponse, status_code=status.HTTP_200_OK)
def replace_service_areas(vendor_id: str, payload: ServiceAreasUpdate) -> ConfigResponse:
    try:
        updated = get_config_repository().replace_service_areas(
            vendor_id, [area.to_domain() for area in payload.service_areas]
        )
        if updated is None:
            raise ConfigNotFound(vendor_id)
    except ShippingError as exc:
        raise shipping_http_error(exc) from exc
    logger.info(f"Replaced service areas for vendor {vendor_id} ({len(payload.service_areas)} postal codes)")
    return ConfigResponse(
        data=ShippingConfigModel.from_domain(updated),
        message="Service areas updated successfully",
    )
