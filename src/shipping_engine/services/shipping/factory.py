"""Construction of the shared stores, engine and estimator from settings."""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache

from ...config import settings
from ...db.supabase import get_supabase_client
from ...persistence.calculations import InMemoryCalculationStore, SupabaseCalculationStore
from ...persistence.configs import InMemoryConfigRepository, SupabaseConfigRepository
from ..geo.cache import DistanceCache
from ..geo.distance_client import DistanceMatrixClient
from .engine import CalculationEngine
from .estimator import MultiVendorEstimator

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_config_repository() -> SupabaseConfigRepository | InMemoryConfigRepository:
    client = get_supabase_client()
    if client is None:
        logger.warning("Supabase not configured - shipping configs are kept in memory only")
        return InMemoryConfigRepository()
    return SupabaseConfigRepository(client)


@lru_cache(maxsize=1)
def get_calculation_store() -> SupabaseCalculationStore | InMemoryCalculationStore:
    client = get_supabase_client()
    if client is None:
        logger.warning("Supabase not configured - shipping calculations are kept in memory only")
        return InMemoryCalculationStore()
    return SupabaseCalculationStore(client)


@lru_cache(maxsize=1)
def get_engine() -> CalculationEngine:
    try:
        provider = DistanceMatrixClient.from_settings(settings)
    except ValueError as e:
        logger.error(f"Distance provider initialization failed: {e}")
        raise ValueError("Distance provider is not configured. Please check SHIP_MAPS_API_KEY setting.") from e

    store = get_calculation_store()
    distances = DistanceCache(
        reader=store,
        provider=provider,
        window=timedelta(minutes=settings.distance_cache_window_minutes),
    )
    return CalculationEngine(get_config_repository(), distances, store)


@lru_cache(maxsize=1)
def get_estimator() -> MultiVendorEstimator:
    return MultiVendorEstimator(get_engine(), max_workers=settings.estimator_max_workers)
