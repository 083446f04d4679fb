"""Shipping cost endpoints."""

from __future__ import annotations

import logging
import math

from fastapi import APIRouter, HTTPException, Query, status

from ...errors import ShippingError
from ...schemas.shipping import (
    CalculateRequest,
    CalculateResponse,
    DeliveryEstimateResponse,
    EstimatesRequest,
    EstimatesResponse,
    EstimateTimeRequest,
    HistoryResponse,
    PaginationModel,
    QuoteData,
    VendorEstimateModel,
    record_summary,
)
from ...services.shipping.engine import CalculationEngine, validate_order
from ...services.shipping.factory import get_calculation_store, get_engine, get_estimator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipping", tags=["shipping"])


def shipping_http_error(exc: ShippingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())


def internal_http_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"success": False, "error": message, "code": "internal_error"},
    )


def _engine() -> CalculationEngine:
    try:
        return get_engine()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"success": False, "error": str(exc), "code": "provider_not_configured"},
        ) from exc


@router.post("/calculate", response_model=CalculateResponse, status_code=status.HTTP_200_OK)
def calculate_shipping(payload: CalculateRequest) -> CalculateResponse:
    engine = _engine()
    try:
        quote = engine.calculate(
            payload.vendor_id,
            destination=payload.destination.to_domain() if payload.destination else None,
            order_value=payload.order_value,
            requester_id=payload.requester_id,
            order_id=payload.order_id,
            total_weight=payload.total_weight,
            is_express=payload.is_express,
            line_items=[item.to_domain() for item in payload.line_items],
        )
    except ShippingError as exc:
        raise shipping_http_error(exc) from exc
    except Exception as exc:
        logger.exception(f"Error calculating shipping for vendor {payload.vendor_id}: {exc}")
        raise internal_http_error("Failed to calculate shipping cost") from exc
    return CalculateResponse(data=QuoteData.model_validate(quote.to_dict()))


@router.post("/estimates", response_model=EstimatesResponse, status_code=status.HTTP_200_OK)
def multi_vendor_estimates(payload: EstimatesRequest) -> EstimatesResponse:
    """Estimate shipping for several vendors at once.

    An incomplete order is rejected with 400 before any vendor is tried.
    Otherwise answers 200: every requested vendor gets its own entry,
    successful or not, in request order.
    """
    _engine()
    destination = payload.destination.to_domain() if payload.destination else None
    try:
        validate_order(destination, payload.order_value, payload.total_weight)
    except ShippingError as exc:
        raise shipping_http_error(exc) from exc
    outcomes = get_estimator().estimate_all(
        payload.vendor_ids,
        destination=destination,
        order_value=payload.order_value,
        total_weight=payload.total_weight,
        is_express=payload.is_express,
        requester_id=payload.requester_id,
    )
    return EstimatesResponse(
        estimates=[VendorEstimateModel.model_validate(outcome.to_dict()) for outcome in outcomes]
    )


@router.post("/estimate-time", response_model=DeliveryEstimateResponse, status_code=status.HTTP_200_OK)
def estimate_delivery_time(payload: EstimateTimeRequest) -> DeliveryEstimateResponse:
    engine = _engine()
    try:
        estimate = engine.estimate_delivery_time(payload.vendor_id, payload.destination.to_domain())
    except ShippingError as exc:
        raise shipping_http_error(exc) from exc
    except Exception as exc:
        logger.exception(f"Error estimating delivery time for vendor {payload.vendor_id}: {exc}")
        raise internal_http_error("Failed to estimate delivery time") from exc
    return DeliveryEstimateResponse.model_validate(estimate.to_dict())


@router.get("/history/{requester_id}", response_model=HistoryResponse, status_code=status.HTTP_200_OK)
def shipping_history(
    requester_id: str,
    page: int = Query(default=1, ge=1, description="1-based page index"),
    limit: int = Query(default=20, ge=1, le=100, description="Records per page"),
) -> HistoryResponse:
    try:
        records, total = get_calculation_store().history_for_requester(requester_id, page, limit)
    except ShippingError as exc:
        raise shipping_http_error(exc) from exc
    return HistoryResponse(
        history=[record_summary(record) for record in records],
        pagination=PaginationModel(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )
