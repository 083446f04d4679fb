"""Distance lookups that reuse recent calculation records before calling the provider."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable

from ...models.domain import DistanceResult, Location
from ...persistence.base import DistanceCacheReader
from .distance_client import DistanceProvider

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DistanceCache:
    """Cache-or-fetch distance lookup keyed on (vendor, destination coordinates).

    Two concurrent identical lookups may both miss and both call the provider;
    the duplicate records that follow are harmless.
    """

    def __init__(
        self,
        reader: DistanceCacheReader,
        provider: DistanceProvider,
        window: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.reader = reader
        self.provider = provider
        self.window = window
        self.clock = clock

    def lookup(self, vendor_id: str, destination: Location) -> DistanceResult | None:
        if self.window <= timedelta(0):
            return None
        since = self.clock() - self.window
        try:
            record = self.reader.latest_for_destination(
                vendor_id, destination.latitude, destination.longitude, since
            )
        except Exception as exc:
            logger.warning(f"Distance cache lookup failed for vendor {vendor_id}, calling provider: {exc}")
            return None
        if record is None:
            return None
        return replace(record.distance, from_cache=True)

    def get_distance(self, vendor_id: str, origin: Location, destination: Location) -> DistanceResult:
        cached = self.lookup(vendor_id, destination)
        if cached is not None:
            logger.debug(f"Distance cache hit for vendor {vendor_id}")
            return cached
        logger.debug(f"Distance cache miss for vendor {vendor_id}")
        return self.provider.get_distance(origin, destination)
