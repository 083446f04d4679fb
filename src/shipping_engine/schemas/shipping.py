"""Shipping calculation request/response schemas."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.domain import CalculationRecord, LineItem, LineItemShipping, Location


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DestinationModel(CamelModel):
    latitude: float = Field(..., ge=-90, le=90, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(..., ge=-180, le=180, validation_alias=AliasChoices("longitude", "lng", "lon"))
    postal_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("postalCode", "postal_code", "pincode"),
    )
    address: Optional[str] = None

    def to_domain(self) -> Location:
        return Location(
            latitude=self.latitude,
            longitude=self.longitude,
            postal_code=self.postal_code.strip() if self.postal_code else None,
            address=self.address,
        )


class LineItemShippingModel(CamelModel):
    base_shipping_rate: float = Field(default=0.0, ge=0)
    free_shipping_threshold: Optional[float] = Field(default=None, ge=0)
    express_delivery_available: bool = False
    requires_special_handling: bool = False
    special_handling_charge: float = Field(default=0.0, ge=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    exclude_postal_codes: List[str] = Field(default_factory=list)

    def to_domain(self) -> LineItemShipping:
        return LineItemShipping(**self.model_dump())


class LineItemModel(CamelModel):
    item_id: str = Field(..., min_length=1, validation_alias=AliasChoices("itemId", "item_id", "productId", "id"))
    name: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    unit_price: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("unitPrice", "unit_price", "price"))
    shipping: Optional[LineItemShippingModel] = None

    def to_domain(self) -> LineItem:
        return LineItem(
            item_id=self.item_id,
            name=self.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            shipping=self.shipping.to_domain() if self.shipping else None,
        )


class CalculateRequest(CamelModel):
    vendor_id: str = Field(..., min_length=1)
    requester_id: Optional[str] = Field(default=None, description="Person or system requesting the quote.")
    order_id: Optional[str] = None
    destination: Optional[DestinationModel] = None
    order_value: Optional[float] = None
    total_weight: Optional[float] = Field(default=None, description="Defaults to 1 kg when omitted.")
    is_express: bool = False
    line_items: List[LineItemModel] = Field(default_factory=list)


class EstimatesRequest(CamelModel):
    vendor_ids: List[str] = Field(..., min_length=1)
    requester_id: Optional[str] = None
    destination: Optional[DestinationModel] = None
    order_value: Optional[float] = None
    total_weight: Optional[float] = None
    is_express: bool = False


class EstimateTimeRequest(CamelModel):
    vendor_id: str = Field(..., min_length=1)
    destination: DestinationModel


class MeasureModel(CamelModel):
    value: float
    text: Optional[str] = None


class QuoteData(CamelModel):
    shipping_cost: float
    estimated_delivery_time: MeasureModel
    distance: MeasureModel
    breakdown: dict[str, Any]
    free_shipping_applied: bool
    supplier_info: dict[str, Any]
    has_line_item_shipping: bool = False
    line_item_shipping_details: Optional[List[dict[str, Any]]] = None


class CalculateResponse(CamelModel):
    success: bool = True
    data: QuoteData


class VendorEstimateModel(CamelModel):
    vendor_id: str
    estimate: dict[str, Any]


class EstimatesResponse(CamelModel):
    success: bool = True
    estimates: List[VendorEstimateModel]


class DeliveryEstimateResponse(CamelModel):
    success: bool = True
    estimated_delivery_time: MeasureModel
    distance: MeasureModel


class PaginationModel(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class HistoryResponse(CamelModel):
    success: bool = True
    history: List[dict[str, Any]]
    pagination: PaginationModel


def record_summary(record: CalculationRecord) -> dict[str, Any]:
    distance = record.distance
    return {
        "id": record.record_id,
        "orderId": record.order_id,
        "vendorId": record.vendor_id,
        "shippingCost": record.shipping_cost,
        "distance": {"value": distance.distance_meters, "text": distance.distance_text},
        "estimatedDeliveryTime": {"value": distance.delivery_seconds, "text": distance.delivery_text},
        "calculation": record.breakdown.to_dict(),
        "lineItems": list(record.line_items),
        "orderValue": record.order_value,
        "totalWeight": record.total_weight,
        "isExpress": record.is_express,
        "isPeakHour": record.is_peak_hour,
        "isFreeShipping": record.is_free_shipping,
        "calculatedAt": record.calculated_at.isoformat(),
    }
