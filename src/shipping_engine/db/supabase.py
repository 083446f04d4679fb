"""Supabase client for the shipping document store."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the shared Supabase client, or None when credentials are missing.

    Creating the client does not open a connection; the first query against
    ``shipping_configs`` or ``shipping_calculations`` may still fail.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase credentials not configured (SHIP_SUPABASE_URL / SHIP_SUPABASE_KEY)")
        return None

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client for {settings.supabase_url}: {e}")
        return None
    logger.info("Using Supabase for shipping configs and calculation records")
    return client


# shipping_configs       one row per vendor (unique vendor_id)
# shipping_calculations  append-only; rows past expires_at are purged by the
#                        scheduled job in supabase/schema.sql
