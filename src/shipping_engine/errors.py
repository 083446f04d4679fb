"""Error taxonomy surfaced by the shipping engine.

Every failure the engine reports to callers is a ``ShippingError`` subclass
with a stable ``code`` and a message that can be shown to the end user as-is.
"""

from __future__ import annotations


class ShippingError(Exception):
    code = "shipping_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "code": self.code}


class ValidationError(ShippingError):
    """Caller omitted or malformed a required field."""

    code = "validation_error"
    status_code = 400


class ConfigNotFound(ShippingError):
    """Vendor has no active shipping configuration."""

    code = "config_not_found"
    status_code = 404

    def __init__(self, vendor_id: str) -> None:
        super().__init__("Shipping configuration not found for this supplier")
        self.vendor_id = vendor_id


class OutOfServiceArea(ShippingError):
    code = "out_of_service_area"
    status_code = 422

    def __init__(self, postal_code: str | None) -> None:
        super().__init__("Delivery not available in your area")
        self.postal_code = postal_code


class ExceedsMaxDistance(ShippingError):
    code = "exceeds_max_distance"
    status_code = 422

    def __init__(self, distance_km: float, max_distance_km: float) -> None:
        super().__init__(f"Delivery not available beyond {max_distance_km:g}km radius")
        self.distance_km = distance_km
        self.max_distance_km = max_distance_km


class ProviderError(ShippingError):
    """The distance provider failed or answered with a non-success status."""

    code = "provider_error"
    status_code = 502

    def __init__(self, detail: str | None = None) -> None:
        super().__init__("Failed to calculate distance. Please try again.")
        self.detail = detail


class PersistenceError(ShippingError):
    """The calculation could not be recorded, so the quoted price is not valid."""

    code = "persistence_error"
    status_code = 500

    def __init__(self, detail: str | None = None, message: str | None = None) -> None:
        super().__init__(message or "Failed to record shipping calculation. Please try again.")
        self.detail = detail


class EstimateTimeout(ShippingError):
    """A vendor's estimate did not finish within the fan-out deadline."""

    code = "estimate_timeout"
    status_code = 504

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__("Shipping estimate timed out. Please try again.")
        self.timeout_seconds = timeout_seconds
