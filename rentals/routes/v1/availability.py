# rentals/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    GET / - Units of a model that are free for a window (advisory)
"""

import asyncio
from datetime import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_availability_service
from ...core.constants import MAX_COLOR_FILTER_LENGTH
from ...core.exceptions import DomainException
from ...schemas.availability import AvailabilityResponse, AvailableUnit
from ...services.availability_service import AvailabilityService
from ._common import UUID_PATH_PATTERN, handle_domain_exception, require_offset

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.get(
    "",
    response_model=AvailabilityResponse,
    responses={
        400: {"description": "Window not aligned, too short, or inverted"},
    },
)
async def get_availability(
    model_id: str = Query(..., description="Car model UUID", pattern=UUID_PATH_PATTERN),
    start: datetime = Query(..., description="Inclusive start (ISO-8601 with offset)"),
    end: datetime = Query(..., description="Exclusive end (ISO-8601 with offset)"),
    color: Optional[str] = Query(None, max_length=MAX_COLOR_FILTER_LENGTH),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """
    List the active units of a model with no confirmed booking or blackout
    intersecting ``[start, end)``.

    The answer can go stale before a booking is attempted; the booking
    endpoint re-checks under lock.
    """
    try:
        result = await asyncio.to_thread(
            availability_service.available_units,
            model_id,
            require_offset(start, "start"),
            require_offset(end, "end"),
            color,
        )
        return AvailabilityResponse(
            available_unit_ids=result.available_unit_ids,
            available_count=result.available_count,
            total_units=result.total_units,
            available_units=[
                AvailableUnit(
                    id=unit.id,
                    display_name=unit.display_name,
                    color=unit.color,
                    color_hex=unit.color_hex,
                    credits_per_hour=unit.effective_credits_per_hour,
                    business_id=unit.business_id,
                )
                for unit in result.available_units
            ],
        )
    except DomainException as e:
        handle_domain_exception(e)
