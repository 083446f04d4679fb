"""Vendor shipping configuration schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, Field

from ..models.domain import (
    ExpressDelivery,
    Location,
    PeakWindow,
    ServiceArea,
    ShippingConfig,
    WeightPricing,
)
from .shipping import CamelModel

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class PeakWindowModel(CamelModel):
    start: str = Field(..., pattern=CLOCK_PATTERN, description="Local time, HH:MM")
    end: str = Field(..., pattern=CLOCK_PATTERN, description="Local time, HH:MM")


class WeightPricingModel(CamelModel):
    enabled: bool = False
    base_weight_kg: float = Field(default=1.0, gt=0, validation_alias=AliasChoices("baseWeightKg", "base_weight_kg", "baseWeight"))
    additional_rate_per_kg: float = Field(
        default=10.0,
        ge=0,
        validation_alias=AliasChoices("additionalRatePerKg", "additional_rate_per_kg", "additionalRate"),
    )


class ExpressDeliveryModel(CamelModel):
    enabled: bool = True
    multiplier: float = Field(default=1.5, ge=1.0)


class OriginLocationModel(CamelModel):
    address: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    postal_code: Optional[str] = Field(default=None, validation_alias=AliasChoices("postalCode", "postal_code", "pincode"))


class ServiceAreaModel(CamelModel):
    postal_code: str = Field(..., min_length=1, validation_alias=AliasChoices("postalCode", "postal_code", "pincode"))
    custom_rate: Optional[float] = Field(default=None, ge=0)
    area: Optional[str] = None
    district: Optional[str] = None

    def to_domain(self) -> ServiceArea:
        return ServiceArea(
            postal_code=self.postal_code.strip(),
            custom_rate=self.custom_rate,
            area=self.area,
            district=self.district,
        )


class ShippingConfigModel(CamelModel):
    vendor_id: str = Field(..., min_length=1)
    base_rate: float = Field(default=50.0, ge=0)
    per_km_rate: float = Field(default=5.0, ge=0)
    free_shipping_threshold: float = Field(default=999.0, ge=0)
    max_delivery_distance: float = Field(default=100.0, gt=0, description="Delivery radius in kilometers")
    peak_hours: List[PeakWindowModel] = Field(default_factory=list)
    peak_hour_multiplier: float = Field(default=1.2, ge=1.0)
    weight_based_pricing: WeightPricingModel = Field(default_factory=WeightPricingModel)
    express_delivery: ExpressDeliveryModel = Field(default_factory=ExpressDeliveryModel)
    origin_location: OriginLocationModel
    service_areas: List[ServiceAreaModel] = Field(default_factory=list)
    is_active: bool = True

    def to_domain(self) -> ShippingConfig:
        origin = self.origin_location
        return ShippingConfig(
            vendor_id=self.vendor_id,
            origin=Location(
                latitude=origin.latitude,
                longitude=origin.longitude,
                postal_code=origin.postal_code,
                address=origin.address,
            ),
            base_rate=self.base_rate,
            per_km_rate=self.per_km_rate,
            free_shipping_threshold=self.free_shipping_threshold,
            max_delivery_distance_km=self.max_delivery_distance,
            peak_hours=[PeakWindow(start=w.start, end=w.end) for w in self.peak_hours],
            peak_hour_multiplier=self.peak_hour_multiplier,
            weight_pricing=WeightPricing(
                enabled=self.weight_based_pricing.enabled,
                base_weight_kg=self.weight_based_pricing.base_weight_kg,
                additional_rate_per_kg=self.weight_based_pricing.additional_rate_per_kg,
            ),
            express_delivery=ExpressDelivery(
                enabled=self.express_delivery.enabled,
                multiplier=self.express_delivery.multiplier,
            ),
            service_areas=[area.to_domain() for area in self.service_areas],
            is_active=self.is_active,
        )

    @classmethod
    def from_domain(cls, config: ShippingConfig) -> "ShippingConfigModel":
        return cls(
            vendor_id=config.vendor_id,
            base_rate=config.base_rate,
            per_km_rate=config.per_km_rate,
            free_shipping_threshold=config.free_shipping_threshold,
            max_delivery_distance=config.max_delivery_distance_km,
            peak_hours=[PeakWindowModel(start=w.start, end=w.end) for w in config.peak_hours],
            peak_hour_multiplier=config.peak_hour_multiplier,
            weight_based_pricing=WeightPricingModel(
                enabled=config.weight_pricing.enabled,
                base_weight_kg=config.weight_pricing.base_weight_kg,
                additional_rate_per_kg=config.weight_pricing.additional_rate_per_kg,
            ),
            express_delivery=ExpressDeliveryModel(
                enabled=config.express_delivery.enabled,
                multiplier=config.express_delivery.multiplier,
            ),
            origin_location=OriginLocationModel(
                address=config.origin.address,
                latitude=config.origin.latitude,
                longitude=config.origin.longitude,
                postal_code=config.origin.postal_code,
            ),
            service_areas=[
                ServiceAreaModel(
                    postal_code=area.postal_code,
                    custom_rate=area.custom_rate,
                    area=area.area,
                    district=area.district,
                )
                for area in config.service_areas
            ],
            is_active=config.is_active,
        )


class ServiceAreasUpdate(CamelModel):
    service_areas: List[ServiceAreaModel] = Field(default_factory=list)


class ConfigResponse(CamelModel):
    success: bool = True
    data: ShippingConfigModel
    message: Optional[str] = None
