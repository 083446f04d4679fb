"""Storage contracts used by the shipping engine.

Configuration and calculation records live in the same document store, but
the engine only sees these narrow interfaces so the audit trail and the
distance cache can be moved to different backends independently.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..models.domain import CalculationRecord, ServiceArea, ShippingConfig


class ConfigRepository(Protocol):
    def get_active_config(self, vendor_id: str) -> Optional[ShippingConfig]:
        """Return the vendor's config only if it is active."""

    def get_config(self, vendor_id: str) -> Optional[ShippingConfig]:
        ...

    def upsert_config(self, config: ShippingConfig) -> ShippingConfig:
        ...

    def replace_service_areas(self, vendor_id: str, areas: Sequence[ServiceArea]) -> Optional[ShippingConfig]:
        ...


class AuditWriter(Protocol):
    def append(self, record: CalculationRecord) -> CalculationRecord:
        """Insert one record; raise PersistenceError when the write is not confirmed."""


class DistanceCacheReader(Protocol):
    def latest_for_destination(
        self, vendor_id: str, latitude: float, longitude: float, since: datetime
    ) -> Optional[CalculationRecord]:
        ...


class HistoryReader(Protocol):
    def history_for_requester(
        self, requester_id: str, page: int, limit: int
    ) -> tuple[list[CalculationRecord], int]:
        """Return one page of records, newest first, and the total count."""
