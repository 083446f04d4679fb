"""Pure shipping-rate computation.

The calculator turns a vendor configuration, a road distance and the order
context into an itemized :class:`CostBreakdown`. It performs no I/O and reads
no clock: the caller passes the local time used for peak-hour matching.

Rules are applied in a fixed order:

1. free shipping when the order value reaches the vendor threshold,
2. base rate (or the matched service area's custom rate) plus distance rate,
3. peak-hour, weight and express multipliers,
4. rounding half-up to two decimals.
"""

from __future__ import annotations

from datetime import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ...models.domain import CostBreakdown, PeakWindow, ShippingConfig

DEFAULT_CURRENCY_SYMBOL = "₹"


def parse_clock(value: str) -> int:
    """Convert an ``HH:MM`` string into minutes since midnight."""

    try:
        hours_text, minutes_text = value.strip().split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM") from exc
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    return hours * 60 + minutes


def is_peak_hour(peak_hours: Iterable[PeakWindow], now_local: time) -> bool:
    """Return True when ``now_local`` falls inside any window, bounds inclusive.

    A window whose end is earlier than its start spans midnight.
    """

    current = now_local.hour * 60 + now_local.minute
    for window in peak_hours:
        start = parse_clock(window.start)
        end = parse_clock(window.end)
        if start <= end:
            if start <= current <= end:
                return True
        elif current >= start or current <= end:
            return True
    return False


def round_currency(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def weight_multiplier_for(config: ShippingConfig, total_weight: float) -> float:
    pricing = config.weight_pricing
    if not pricing.enabled or total_weight <= pricing.base_weight_kg:
        return 1.0
    extra_weight = total_weight - pricing.base_weight_kg
    return 1.0 + (extra_weight * pricing.additional_rate_per_kg / 100)


def _surcharge_label(multiplier: float) -> str:
    if multiplier > 1:
        return f"{(multiplier - 1) * 100:.0f}%"
    return "None"


def _format_amount(symbol: str, amount: float) -> str:
    return f"{symbol}{amount:.2f}"


def free_shipping_breakdown(config: ShippingConfig, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> CostBreakdown:
    return CostBreakdown(
        base_rate=0.0,
        distance_rate=0.0,
        peak_hour_multiplier=1.0,
        weight_multiplier=1.0,
        express_multiplier=1.0,
        custom_area_rate=0.0,
        subtotal=0.0,
        final_amount=0.0,
        free_shipping_applied=True,
        reason=f"Free shipping for orders above {currency_symbol}{config.free_shipping_threshold:g}",
    )


def compute_breakdown(
    config: ShippingConfig,
    distance_km: float,
    order_value: float,
    total_weight: float,
    is_express: bool,
    now_local: time,
    *,
    custom_area_rate: Optional[float] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> CostBreakdown:
    """Compute the itemized shipping cost for one vendor and destination."""

    if order_value >= config.free_shipping_threshold:
        return free_shipping_breakdown(config, currency_symbol)

    base_rate = custom_area_rate if custom_area_rate is not None else config.base_rate
    distance_rate = distance_km * config.per_km_rate

    peak_multiplier = config.peak_hour_multiplier if is_peak_hour(config.peak_hours, now_local) else 1.0
    weight_multiplier = weight_multiplier_for(config, total_weight)
    express_multiplier = 1.0
    if is_express and config.express_delivery.enabled:
        express_multiplier = config.express_delivery.multiplier

    subtotal = (base_rate + distance_rate) * peak_multiplier * weight_multiplier * express_multiplier

    return CostBreakdown(
        base_rate=base_rate,
        distance_rate=distance_rate,
        peak_hour_multiplier=peak_multiplier,
        weight_multiplier=weight_multiplier,
        express_multiplier=express_multiplier,
        custom_area_rate=custom_area_rate if custom_area_rate is not None else 0.0,
        subtotal=subtotal,
        final_amount=round_currency(subtotal),
        free_shipping_applied=False,
        itemization={
            "distance": f"{distance_km:.2f} km",
            "baseCharge": _format_amount(currency_symbol, base_rate),
            "distanceCharge": _format_amount(currency_symbol, distance_rate),
            "peakHourSurcharge": _surcharge_label(peak_multiplier),
            "weightSurcharge": _surcharge_label(weight_multiplier),
            "expressSurcharge": _surcharge_label(express_multiplier),
        },
    )
