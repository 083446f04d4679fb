"""Postal-code service-area checks.

This is the coarse half of the deliverability decision. The precise half, the
delivery-radius ceiling, needs a road distance and is applied by the engine
after the distance lookup.
"""

from __future__ import annotations

from typing import Optional

from ...models.domain import ServiceArea, ShippingConfig


def match_service_area(config: ShippingConfig, postal_code: Optional[str]) -> Optional[ServiceArea]:
    """Return the configured service area for ``postal_code``, if any."""

    if not postal_code:
        return None
    for area in config.service_areas:
        if area.postal_code == postal_code:
            return area
    return None


def is_serviceable(config: ShippingConfig, postal_code: Optional[str]) -> bool:
    # An empty allow-list means no postal restriction; the radius check still applies.
    if not config.service_areas:
        return True
    return match_service_area(config, postal_code) is not None
