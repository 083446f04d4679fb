"""Concurrent shipping estimates across several vendors."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import settings
from ...errors import EstimateTimeout, ShippingError
from ...models.domain import Location
from .engine import CalculationEngine, ShippingQuote

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VendorOutcome:
    vendor_id: str
    quote: Optional[ShippingQuote] = None
    error: Optional[ShippingError] = None

    @property
    def ok(self) -> bool:
        return self.quote is not None

    def to_dict(self) -> dict:
        if self.quote is not None:
            estimate = {"success": True, "data": self.quote.to_dict()}
        else:
            estimate = self.error.to_dict()
        return {"vendorId": self.vendor_id, "estimate": estimate}


class MultiVendorEstimator:
    """Run one calculation per vendor in parallel and settle every outcome.

    A failing vendor never cancels or affects the others, and
    :meth:`estimate_all` never raises: it returns one outcome per requested
    vendor, in request order.
    """

    def __init__(
        self,
        engine: CalculationEngine,
        max_workers: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.engine = engine
        self.max_workers = max_workers or settings.estimator_max_workers
        self.timeout_seconds = timeout_seconds

    def _estimate_one(
        self,
        vendor_id: str,
        destination: Location,
        order_value: float,
        total_weight: float | None,
        is_express: bool,
        requester_id: str | None,
    ) -> ShippingQuote:
        return self.engine.calculate(
            vendor_id,
            destination=destination,
            order_value=order_value,
            requester_id=requester_id,
            order_id=f"estimate_{int(time.time() * 1000)}_{vendor_id}",
            total_weight=total_weight,
            is_express=is_express,
        )

    def _settle(self, vendor_id: str, future: Future) -> VendorOutcome:
        if not future.done():
            future.cancel()
            return VendorOutcome(vendor_id=vendor_id, error=EstimateTimeout(self.timeout_seconds or 0))
        try:
            return VendorOutcome(vendor_id=vendor_id, quote=future.result())
        except ShippingError as exc:
            return VendorOutcome(vendor_id=vendor_id, error=exc)
        except Exception as exc:
            logger.exception(f"Unexpected error estimating shipping for vendor {vendor_id}: {exc}")
            return VendorOutcome(
                vendor_id=vendor_id,
                error=ShippingError("Unable to estimate shipping for this supplier"),
            )

    def estimate_all(
        self,
        vendor_ids: Sequence[str],
        *,
        destination: Location,
        order_value: float,
        total_weight: float | None = None,
        is_express: bool = False,
        requester_id: str | None = None,
    ) -> list[VendorOutcome]:
        if not vendor_ids:
            return []

        start_time = time.time()
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(vendor_ids)))
        try:
            futures = [
                executor.submit(
                    self._estimate_one,
                    vendor_id,
                    destination,
                    order_value,
                    total_weight,
                    is_express,
                    requester_id,
                )
                for vendor_id in vendor_ids
            ]
            # Settle-all join: failures do not end the wait early.
            wait(futures, timeout=self.timeout_seconds, return_when=ALL_COMPLETED)
            outcomes = [self._settle(vendor_id, future) for vendor_id, future in zip(vendor_ids, futures)]
        finally:
            # Calculations still running past the deadline are abandoned; any
            # record they write afterwards stands.
            executor.shutdown(wait=self.timeout_seconds is None, cancel_futures=True)

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(
            f"Estimated shipping for {len(outcomes)} vendors in {time.time() - start_time:.2f}s "
            f"({failed} failed)"
        )
        return outcomes
