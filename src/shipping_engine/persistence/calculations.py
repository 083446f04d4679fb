"""Calculation record persistence.

One physical table serves two logical readers: the audit/history view and
the short-window distance cache. Rows are insert-only; the store's TTL job
removes them once ``expires_at`` has passed.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..config import settings
from ..errors import PersistenceError
from ..models.domain import CalculationRecord, CostBreakdown, DistanceResult
from .configs import location_from_row, location_to_row

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _measure(value: float | None, text: str | None) -> dict | None:
    if value is None:
        return None
    return {"value": value, "text": text}


def breakdown_from_dict(payload: dict[str, Any]) -> CostBreakdown:
    return CostBreakdown(
        base_rate=float(payload.get("baseRate", 0)),
        distance_rate=float(payload.get("distanceRate", 0)),
        peak_hour_multiplier=float(payload.get("peakHourMultiplier", 1)),
        weight_multiplier=float(payload.get("weightMultiplier", 1)),
        express_multiplier=float(payload.get("expressMultiplier", 1)),
        custom_area_rate=float(payload.get("customAreaRate", 0)),
        subtotal=float(payload.get("subtotal", 0)),
        final_amount=float(payload.get("finalAmount", 0)),
        free_shipping_applied=bool(payload.get("freeShippingApplied", False)),
        itemization=dict(payload.get("breakdown") or {}),
        reason=payload.get("reason"),
    )


def record_to_row(record: CalculationRecord) -> dict[str, Any]:
    distance = record.distance
    row = {
        "vendor_id": record.vendor_id,
        "requester_id": record.requester_id,
        "order_id": record.order_id,
        "origin": location_to_row(record.origin),
        "destination": location_to_row(record.destination),
        "destination_latitude": record.destination.latitude,
        "destination_longitude": record.destination.longitude,
        "distance": _measure(distance.distance_meters, distance.distance_text),
        "duration": _measure(distance.duration_seconds, distance.duration_text),
        "duration_in_traffic": _measure(distance.duration_in_traffic_seconds, distance.duration_in_traffic_text),
        "distance_fetched_at": distance.fetched_at.isoformat(),
        "calculation": record.breakdown.to_dict(),
        "line_items": record.line_items,
        "shipping_cost": record.shipping_cost,
        "order_value": record.order_value,
        "total_weight": record.total_weight,
        "is_express": record.is_express,
        "is_peak_hour": record.is_peak_hour,
        "is_free_shipping": record.is_free_shipping,
        "provider_response": distance.raw_response,
        "calculated_at": record.calculated_at.isoformat(),
        "expires_at": record.expires_at.isoformat(),
    }
    if record.record_id:
        row["id"] = record.record_id
    return row


def record_from_row(row: dict[str, Any]) -> CalculationRecord:
    distance = row.get("distance") or {}
    duration = row.get("duration") or {}
    in_traffic = row.get("duration_in_traffic") or {}
    calculated_at = _parse_timestamp(row["calculated_at"])
    breakdown = breakdown_from_dict(row.get("calculation") or {})
    return CalculationRecord(
        record_id=str(row["id"]) if row.get("id") is not None else None,
        vendor_id=str(row["vendor_id"]),
        requester_id=row.get("requester_id"),
        order_id=str(row.get("order_id") or ""),
        origin=location_from_row(row["origin"]),
        destination=location_from_row(row["destination"]),
        distance=DistanceResult(
            distance_meters=float(distance["value"]),
            duration_seconds=float(duration["value"]),
            duration_in_traffic_seconds=float(in_traffic["value"]) if in_traffic.get("value") is not None else None,
            fetched_at=_parse_timestamp(row.get("distance_fetched_at") or calculated_at),
            distance_text=distance.get("text"),
            duration_text=duration.get("text"),
            duration_in_traffic_text=in_traffic.get("text"),
            raw_response=row.get("provider_response"),
        ),
        breakdown=breakdown,
        shipping_cost=float(row.get("shipping_cost", breakdown.final_amount)),
        order_value=float(row.get("order_value") or 0),
        total_weight=float(row.get("total_weight") or 0),
        is_express=bool(row.get("is_express", False)),
        is_peak_hour=bool(row.get("is_peak_hour", False)),
        calculated_at=calculated_at,
        expires_at=_parse_timestamp(row["expires_at"]),
        line_items=list(row.get("line_items") or []),
    )


class SupabaseCalculationStore:
    """Audit writer, distance-cache reader and history reader over ``shipping_calculations``."""

    def __init__(self, client: Any, table: str | None = None) -> None:
        self.client = client
        self.table = table or settings.calculations_table

    def append(self, record: CalculationRecord) -> CalculationRecord:
        try:
            response = self.client.table(self.table).insert(record_to_row(record)).execute()
        except Exception as e:
            logger.error(f"Failed to save shipping calculation for order {record.order_id}: {e}")
            raise PersistenceError(str(e)) from e
        if not response.data:
            raise PersistenceError("insert returned no rows")
        inserted_id = response.data[0].get("id")
        return replace(record, record_id=str(inserted_id)) if inserted_id is not None else record

    def latest_for_destination(
        self, vendor_id: str, latitude: float, longitude: float, since: datetime
    ) -> Optional[CalculationRecord]:
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("vendor_id", vendor_id)
            .eq("destination_latitude", latitude)
            .eq("destination_longitude", longitude)
            .gte("calculated_at", since.isoformat())
            .order("calculated_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return record_from_row(response.data[0])

    def history_for_requester(self, requester_id: str, page: int, limit: int) -> tuple[list[CalculationRecord], int]:
        offset = (page - 1) * limit
        try:
            response = (
                self.client.table(self.table)
                .select("*", count="exact")
                .eq("requester_id", requester_id)
                .order("calculated_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to load shipping history for {requester_id}: {e}")
            raise PersistenceError(str(e), message="Unable to load shipping history. Please try again.") from e
        records = []
        for row in response.data or []:
            try:
                records.append(record_from_row(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid calculation row: {e}")
        total = response.count if response.count is not None else len(records)
        return records, total


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryCalculationStore:
    """Process-local calculation store; records are purged once past ``expires_at``."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._lock = threading.Lock()
        self._records: list[CalculationRecord] = []
        self.clock = clock

    def _live(self) -> list[CalculationRecord]:
        # caller holds the lock; expired records are dropped for good
        now = self.clock()
        self._records = [record for record in self._records if record.expires_at > now]
        return list(self._records)

    def append(self, record: CalculationRecord) -> CalculationRecord:
        stored = replace(record, record_id=record.record_id or uuid.uuid4().hex)
        with self._lock:
            self._live()
            self._records.append(stored)
        return stored

    def latest_for_destination(
        self, vendor_id: str, latitude: float, longitude: float, since: datetime
    ) -> Optional[CalculationRecord]:
        with self._lock:
            matches = [
                record
                for record in self._live()
                if record.vendor_id == vendor_id
                and record.destination.latitude == latitude
                and record.destination.longitude == longitude
                and record.calculated_at >= since
            ]
        if not matches:
            return None
        return max(matches, key=lambda record: record.calculated_at)

    def history_for_requester(self, requester_id: str, page: int, limit: int) -> tuple[list[CalculationRecord], int]:
        with self._lock:
            records = [record for record in self._live() if record.requester_id == requester_id]
        records.sort(key=lambda record: record.calculated_at, reverse=True)
        offset = (page - 1) * limit
        return records[offset : offset + limit], len(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
