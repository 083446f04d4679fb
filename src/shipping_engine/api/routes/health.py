"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_provider_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.geo.distance_client import check_health as provider_health_check
    return provider_health_check


@router.get("/health/provider", status_code=status.HTTP_200_OK)
def health_provider() -> dict:
    """Check the distance provider with a live request."""
    if not settings.maps_api_key:
        return {"service": "distance_provider", "healthy": False, "error": "SHIP_MAPS_API_KEY is not set"}
    provider_health_check = _get_provider_health_check()
    return {"service": "distance_provider", "healthy": provider_health_check(settings)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and shipping table status."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set SHIP_SUPABASE_URL and SHIP_SUPABASE_KEY environment variables.",
        }

    try:
        response = supabase.table(settings.configs_table).select("vendor_id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "configs_count": response.count or 0,
            "message": f"Database connected. Found {response.count or 0} shipping configurations.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
