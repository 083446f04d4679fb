"""Pricing for orders whose line items carry their own shipping rates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional, Sequence

from ...models.domain import CostBreakdown, LineItem, LineItemDetail, ShippingConfig
from .rates import DEFAULT_CURRENCY_SYMBOL, compute_breakdown, round_currency

DEFAULT_ITEM_WEIGHT_KG = 1.0


@dataclass(slots=True)
class LineItemPricing:
    final_amount: float
    free_shipping_applied: bool
    details: list[LineItemDetail]
    default_breakdown: Optional[CostBreakdown]


def has_custom_rates(items: Sequence[LineItem]) -> bool:
    return any(item.shipping is not None and item.shipping.has_custom_rate for item in items)


def _item_weight(item: LineItem) -> float:
    unit_weight = DEFAULT_ITEM_WEIGHT_KG
    if item.shipping is not None and item.shipping.weight_kg:
        unit_weight = item.shipping.weight_kg
    return unit_weight * item.quantity


def price_line_items(
    config: ShippingConfig,
    items: Sequence[LineItem],
    *,
    distance_km: float,
    order_value: float,
    is_express: bool,
    now_local: time,
    destination_postal_code: Optional[str] = None,
    custom_area_rate: Optional[float] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> Optional[LineItemPricing]:
    """Price items with custom rates individually and the rest through the vendor rules.

    Returns None when no item carries a custom rate, in which case the order is
    priced as a whole by :func:`compute_breakdown`.
    """

    if not has_custom_rates(items):
        return None

    total = 0.0
    free_shipping_applied = False
    details: list[LineItemDetail] = []
    default_items: list[tuple[LineItem, LineItemDetail]] = []

    for item in items:
        detail = LineItemDetail(
            item_id=item.item_id,
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
        )
        details.append(detail)
        override = item.shipping
        if override is None or not override.has_custom_rate:
            default_items.append((item, detail))
            continue

        if override.free_shipping_threshold is not None and item.total_price >= override.free_shipping_threshold:
            detail.free_shipping = True
            free_shipping_applied = True
        else:
            cost = override.base_shipping_rate * item.quantity
            detail.custom_shipping_rate = override.base_shipping_rate
            if override.requires_special_handling:
                cost += override.special_handling_charge * item.quantity
                detail.special_handling = True
            if is_express and override.express_delivery_available and config.express_delivery.enabled:
                cost *= config.express_delivery.multiplier
            detail.shipping_cost = round_currency(cost)
            total += cost

        if destination_postal_code and destination_postal_code in override.exclude_postal_codes:
            detail.restrictions.append("Postal code excluded")

    default_breakdown = None
    if default_items:
        default_breakdown = compute_breakdown(
            config,
            distance_km,
            sum(item.total_price for item, _ in default_items),
            sum(_item_weight(item) for item, _ in default_items),
            is_express,
            now_local,
            custom_area_rate=custom_area_rate,
            currency_symbol=currency_symbol,
        )
        total += default_breakdown.final_amount
        share = round_currency(default_breakdown.final_amount / len(default_items))
        for _, detail in default_items:
            detail.shipping_cost = share

    # Vendor-level free shipping covers the whole order.
    if order_value >= config.free_shipping_threshold:
        total = 0.0
        free_shipping_applied = True
        for detail in details:
            detail.free_shipping = True
            detail.shipping_cost = 0.0

    return LineItemPricing(
        final_amount=round_currency(total),
        free_shipping_applied=free_shipping_applied,
        details=details,
        default_breakdown=default_breakdown,
    )
