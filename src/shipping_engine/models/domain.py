"""Domain models for vendor shipping configuration and calculation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class Location:
    """A point on the map with the postal code used for service-area checks."""

    latitude: float
    longitude: float
    postal_code: Optional[str] = None
    address: Optional[str] = None


@dataclass(slots=True)
class PeakWindow:
    start: str  # HH:MM, local time
    end: str


@dataclass(slots=True)
class WeightPricing:
    enabled: bool = False
    base_weight_kg: float = 1.0
    additional_rate_per_kg: float = 10.0  # percent of subtotal per extra kg


@dataclass(slots=True)
class ExpressDelivery:
    enabled: bool = True
    multiplier: float = 1.5


@dataclass(slots=True)
class ServiceArea:
    postal_code: str
    custom_rate: Optional[float] = None
    area: Optional[str] = None
    district: Optional[str] = None


@dataclass(slots=True)
class ShippingConfig:
    """A vendor's pricing rules and dispatch origin."""

    vendor_id: str
    origin: Location
    base_rate: float = 50.0
    per_km_rate: float = 5.0
    free_shipping_threshold: float = 999.0
    max_delivery_distance_km: float = 100.0
    peak_hours: list[PeakWindow] = field(default_factory=list)
    peak_hour_multiplier: float = 1.2
    weight_pricing: WeightPricing = field(default_factory=WeightPricing)
    express_delivery: ExpressDelivery = field(default_factory=ExpressDelivery)
    service_areas: list[ServiceArea] = field(default_factory=list)
    is_active: bool = True


@dataclass(slots=True)
class DistanceResult:
    """Road distance and travel time between a vendor origin and a destination."""

    distance_meters: float
    duration_seconds: float
    duration_in_traffic_seconds: Optional[float]
    fetched_at: datetime
    distance_text: Optional[str] = None
    duration_text: Optional[str] = None
    duration_in_traffic_text: Optional[str] = None
    raw_response: Optional[dict] = None
    from_cache: bool = False

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    @property
    def delivery_seconds(self) -> float:
        if self.duration_in_traffic_seconds is not None:
            return self.duration_in_traffic_seconds
        return self.duration_seconds

    @property
    def delivery_text(self) -> Optional[str]:
        if self.duration_in_traffic_seconds is not None:
            return self.duration_in_traffic_text or self.duration_text
        return self.duration_text


@dataclass(slots=True)
class CostBreakdown:
    base_rate: float
    distance_rate: float
    peak_hour_multiplier: float
    weight_multiplier: float
    express_multiplier: float
    custom_area_rate: float
    subtotal: float
    final_amount: float
    free_shipping_applied: bool
    itemization: dict[str, str] = field(default_factory=dict)
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {
            "baseRate": self.base_rate,
            "distanceRate": self.distance_rate,
            "peakHourMultiplier": self.peak_hour_multiplier,
            "weightMultiplier": self.weight_multiplier,
            "expressMultiplier": self.express_multiplier,
            "customAreaRate": self.custom_area_rate,
            "subtotal": self.subtotal,
            "finalAmount": self.final_amount,
            "freeShippingApplied": self.free_shipping_applied,
            "breakdown": dict(self.itemization),
        }
        if self.reason:
            payload["reason"] = self.reason
        return payload


@dataclass(slots=True)
class CalculationRecord:
    """Append-only audit entry; also the backing data for distance reuse."""

    vendor_id: str
    requester_id: Optional[str]
    order_id: str
    origin: Location
    destination: Location
    distance: DistanceResult
    breakdown: CostBreakdown
    shipping_cost: float
    order_value: float
    total_weight: float
    is_express: bool
    is_peak_hour: bool
    calculated_at: datetime
    expires_at: datetime
    line_items: list[dict] = field(default_factory=list)
    record_id: Optional[str] = None

    @property
    def is_free_shipping(self) -> bool:
        return self.shipping_cost == 0


@dataclass(slots=True)
class LineItemShipping:
    """Per-item shipping override supplied by the catalog."""

    base_shipping_rate: float = 0.0
    free_shipping_threshold: Optional[float] = None
    express_delivery_available: bool = False
    requires_special_handling: bool = False
    special_handling_charge: float = 0.0
    weight_kg: Optional[float] = None
    exclude_postal_codes: list[str] = field(default_factory=list)

    @property
    def has_custom_rate(self) -> bool:
        return self.base_shipping_rate > 0


@dataclass(slots=True)
class LineItem:
    item_id: str
    name: Optional[str] = None
    quantity: int = 1
    unit_price: float = 0.0
    shipping: Optional[LineItemShipping] = None

    @property
    def total_price(self) -> float:
        return self.unit_price * self.quantity


@dataclass(slots=True)
class LineItemDetail:
    item_id: str
    name: Optional[str]
    quantity: int
    unit_price: float
    custom_shipping_rate: float = 0.0
    shipping_cost: float = 0.0
    free_shipping: bool = False
    special_handling: bool = False
    restrictions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "itemId": self.item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "customShippingRate": self.custom_shipping_rate,
            "shippingCost": self.shipping_cost,
            "freeShipping": self.free_shipping,
            "specialHandling": self.special_handling,
            "restrictions": list(self.restrictions),
        }
