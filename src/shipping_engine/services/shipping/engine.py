"""Single-vendor shipping calculation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo

from ...config import settings
from ...errors import (
    ConfigNotFound,
    ExceedsMaxDistance,
    OutOfServiceArea,
    PersistenceError,
    ValidationError,
)
from ...models.domain import (
    CalculationRecord,
    CostBreakdown,
    DistanceResult,
    LineItem,
    Location,
    ShippingConfig,
)
from ...persistence.base import AuditWriter, ConfigRepository
from ..geo.cache import DistanceCache
from .line_items import LineItemPricing, price_line_items
from .rates import compute_breakdown, is_peak_hour, round_currency
from .service_area import is_serviceable, match_service_area

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _measure(value: float, text: Optional[str]) -> dict:
    return {"value": value, "text": text}


@dataclass(slots=True)
class ShippingQuote:
    vendor_id: str
    shipping_cost: float
    breakdown: CostBreakdown
    distance: DistanceResult
    origin: Location
    record: CalculationRecord
    line_items: Optional[LineItemPricing] = None

    @property
    def free_shipping_applied(self) -> bool:
        if self.line_items is not None:
            return self.line_items.free_shipping_applied
        return self.breakdown.free_shipping_applied

    def to_dict(self) -> dict:
        payload = {
            "shippingCost": self.shipping_cost,
            "estimatedDeliveryTime": _measure(self.distance.delivery_seconds, self.distance.delivery_text),
            "distance": _measure(self.distance.distance_meters, self.distance.distance_text),
            "breakdown": self.breakdown.to_dict(),
            "freeShippingApplied": self.free_shipping_applied,
            "supplierInfo": {"vendorId": self.vendor_id, "location": self.origin.address},
            "hasLineItemShipping": self.line_items is not None,
        }
        if self.line_items is not None:
            payload["lineItemShippingDetails"] = [detail.to_dict() for detail in self.line_items.details]
        return payload


@dataclass(slots=True)
class DeliveryEstimate:
    vendor_id: str
    distance: DistanceResult

    def to_dict(self) -> dict:
        return {
            "estimatedDeliveryTime": _measure(self.distance.delivery_seconds, self.distance.delivery_text),
            "distance": _measure(self.distance.distance_meters, self.distance.distance_text),
        }


def _require_coordinates(destination: Optional[Location]) -> Location:
    if destination is None or destination.latitude is None or destination.longitude is None:
        raise ValidationError("Destination latitude and longitude are required")
    if not (-90 <= destination.latitude <= 90 and -180 <= destination.longitude <= 180):
        raise ValidationError("Destination coordinates are out of range")
    return destination


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_request(
    vendor_id: str,
    destination: Optional[Location],
    order_value: Optional[float],
    total_weight: Optional[float],
) -> None:
    """Reject incomplete requests before any store or provider call."""

    if not vendor_id:
        raise ValidationError("vendorId is required")
    validate_order(destination, order_value, total_weight)


def validate_order(
    destination: Optional[Location],
    order_value: Optional[float],
    total_weight: Optional[float],
) -> None:
    """Checks shared by every vendor of a request."""

    _require_coordinates(destination)
    if not destination.postal_code:
        raise ValidationError("Complete destination (latitude, longitude, postal code) is required")
    if not _is_number(order_value):
        raise ValidationError("orderValue is required")
    if order_value < 0:
        raise ValidationError("orderValue must not be negative")
    if total_weight is not None and (not _is_number(total_weight) or total_weight < 0):
        raise ValidationError("totalWeight must not be negative")


def _line_item_breakdown(pricing: LineItemPricing, currency_symbol: str) -> CostBreakdown:
    """Summarize a line-item priced order in the shape of a regular breakdown."""

    base = pricing.default_breakdown
    itemization = dict(base.itemization) if base is not None else {}
    itemization["lineItemCharges"] = f"{currency_symbol}{pricing.final_amount:.2f}"
    return CostBreakdown(
        base_rate=base.base_rate if base is not None else 0.0,
        distance_rate=base.distance_rate if base is not None else 0.0,
        peak_hour_multiplier=base.peak_hour_multiplier if base is not None else 1.0,
        weight_multiplier=base.weight_multiplier if base is not None else 1.0,
        express_multiplier=base.express_multiplier if base is not None else 1.0,
        custom_area_rate=base.custom_area_rate if base is not None else 0.0,
        subtotal=pricing.final_amount,
        final_amount=pricing.final_amount,
        free_shipping_applied=pricing.free_shipping_applied,
        itemization=itemization,
        reason=base.reason if base is not None else None,
    )


class CalculationEngine:
    """Guard, distance lookup, pricing and audit for one vendor.

    Each step may end the calculation early with a typed ``ShippingError``.
    Only calculations that pass every check are recorded.
    """

    def __init__(
        self,
        configs: ConfigRepository,
        distances: DistanceCache,
        audit: AuditWriter,
        *,
        clock: Callable[[], datetime] = _utcnow,
        local_timezone: str | None = None,
        retention: timedelta | None = None,
        default_total_weight: float | None = None,
        currency_symbol: str | None = None,
    ) -> None:
        self.configs = configs
        self.distances = distances
        self.audit = audit
        self.clock = clock
        self.timezone = ZoneInfo(local_timezone or settings.local_timezone)
        self.retention = retention or timedelta(hours=settings.record_retention_hours)
        self.default_total_weight = (
            default_total_weight if default_total_weight is not None else settings.default_total_weight_kg
        )
        self.currency_symbol = currency_symbol or settings.currency_symbol

    def local_time(self, now: datetime) -> time:
        return now.astimezone(self.timezone).time()

    def load_config(self, vendor_id: str) -> ShippingConfig:
        config = self.configs.get_active_config(vendor_id)
        if config is None:
            logger.info(f"No active shipping configuration for vendor {vendor_id}")
            raise ConfigNotFound(vendor_id)
        return config

    def calculate(
        self,
        vendor_id: str,
        *,
        destination: Location,
        order_value: float,
        requester_id: str | None = None,
        order_id: str | None = None,
        total_weight: float | None = None,
        is_express: bool = False,
        line_items: Sequence[LineItem] = (),
    ) -> ShippingQuote:
        validate_request(vendor_id, destination, order_value, total_weight)
        weight = self.default_total_weight if total_weight is None else total_weight

        config = self.load_config(vendor_id)
        if not is_serviceable(config, destination.postal_code):
            logger.info(f"Postal code {destination.postal_code} outside service areas of vendor {vendor_id}")
            raise OutOfServiceArea(destination.postal_code)
        area = match_service_area(config, destination.postal_code)
        custom_area_rate = area.custom_rate if area is not None else None

        distance = self.distances.get_distance(vendor_id, config.origin, destination)
        if distance.distance_km > config.max_delivery_distance_km:
            logger.info(
                f"Destination {distance.distance_km:.2f}km from vendor {vendor_id} "
                f"exceeds {config.max_delivery_distance_km}km radius"
            )
            raise ExceedsMaxDistance(distance.distance_km, config.max_delivery_distance_km)

        now = self.clock()
        now_local = self.local_time(now)
        pricing = None
        if line_items:
            pricing = price_line_items(
                config,
                line_items,
                distance_km=distance.distance_km,
                order_value=order_value,
                is_express=is_express,
                now_local=now_local,
                destination_postal_code=destination.postal_code,
                custom_area_rate=custom_area_rate,
                currency_symbol=self.currency_symbol,
            )
        if pricing is not None:
            breakdown = _line_item_breakdown(pricing, self.currency_symbol)
            shipping_cost = pricing.final_amount
        else:
            breakdown = compute_breakdown(
                config,
                distance.distance_km,
                order_value,
                weight,
                is_express,
                now_local,
                custom_area_rate=custom_area_rate,
                currency_symbol=self.currency_symbol,
            )
            shipping_cost = round_currency(breakdown.final_amount)

        record = CalculationRecord(
            vendor_id=vendor_id,
            requester_id=requester_id,
            order_id=order_id or f"temp_{int(now.timestamp() * 1000)}",
            origin=config.origin,
            destination=destination,
            distance=distance,
            breakdown=breakdown,
            shipping_cost=shipping_cost,
            order_value=order_value,
            total_weight=weight,
            is_express=is_express,
            is_peak_hour=is_peak_hour(config.peak_hours, now_local),
            calculated_at=now,
            expires_at=now + self.retention,
            line_items=[detail.to_dict() for detail in pricing.details] if pricing is not None else [],
        )
        try:
            stored = self.audit.append(record)
        except PersistenceError:
            logger.error(f"Shipping calculation for vendor {vendor_id} could not be recorded")
            raise
        except Exception as exc:
            logger.error(f"Shipping calculation for vendor {vendor_id} could not be recorded: {exc}")
            raise PersistenceError(str(exc)) from exc

        logger.info(
            f"Shipping for vendor {vendor_id}: {shipping_cost:.2f} over {distance.distance_km:.2f}km "
            f"({'cached' if distance.from_cache else 'fresh'} distance)"
        )
        return ShippingQuote(
            vendor_id=vendor_id,
            shipping_cost=shipping_cost,
            breakdown=breakdown,
            distance=distance,
            origin=config.origin,
            record=stored,
            line_items=pricing,
        )

    def estimate_delivery_time(self, vendor_id: str, destination: Location) -> DeliveryEstimate:
        """Distance and travel time only: no pricing, no radius check, no record."""

        if not vendor_id:
            raise ValidationError("vendorId is required")
        _require_coordinates(destination)
        config = self.load_config(vendor_id)
        distance = self.distances.get_distance(vendor_id, config.origin, destination)
        return DeliveryEstimate(vendor_id=vendor_id, distance=distance)
