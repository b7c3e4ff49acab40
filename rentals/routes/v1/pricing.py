"""V1 pricing preview endpoints.

Both endpoints run the same calculator the booking transaction charges with.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_pricing_service
from ...core.exceptions import DomainException
from ...core.ids import normalize_id
from ...domain.pricing import PricingResult, format_duration
from ...schemas.pricing import PricingPreviewResponse
from ...services.pricing_service import PricingService
from ._common import UUID_PATH_PATTERN, handle_domain_exception, require_offset

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/pricing
router = APIRouter(tags=["pricing"])


def _to_response(result: PricingResult, unit_id: str | None = None) -> PricingPreviewResponse:
    return PricingPreviewResponse(
        mode=result.mode,
        total_credits=result.total_credits,
        hourly_rate=result.hourly_rate,
        day_price=result.day_price,
        duration_minutes=result.duration_minutes,
        billable_days=result.billable_days,
        total_days=result.total_days,
        breakdown=result.breakdown,
        duration_text=format_duration(result.duration_minutes),
        unit_id=unit_id,
    )


@router.get("/preview", response_model=PricingPreviewResponse)
def preview_pricing(
    hourly_rate: int = Query(..., gt=0, description="Credits per hour"),
    duration_minutes: int = Query(..., gt=0, description="Rental length in minutes"),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PricingPreviewResponse:
    """Price an arbitrary rate and duration without touching inventory."""
    try:
        result = pricing_service.preview(hourly_rate, duration_minutes)
    except DomainException as exc:
        raise exc.to_http_exception() from exc

    return _to_response(result)


@router.get(
    "/units/{unit_id}",
    response_model=PricingPreviewResponse,
    responses={409: {"description": "Unit unavailable"}, 422: {"description": "No rate"}},
)
async def quote_unit(
    unit_id: str = Path(..., description="Car unit UUID", pattern=UUID_PATH_PATTERN),
    start: datetime = Query(..., description="Inclusive start (ISO-8601 with offset)"),
    end: datetime = Query(..., description="Exclusive end (ISO-8601 with offset)"),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PricingPreviewResponse:
    """Quote what booking ``unit_id`` for ``[start, end)`` would charge right now."""
    try:
        result = await asyncio.to_thread(
            pricing_service.quote_for_unit,
            unit_id,
            require_offset(start, "start"),
            require_offset(end, "end"),
        )
        return _to_response(result, unit_id=normalize_id(unit_id))
    except DomainException as e:
        handle_domain_exception(e)
