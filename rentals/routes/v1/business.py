# rentals/routes/v1/business.py
"""
Business fleet routes - API v1

Endpoints for accounts with the BUSINESS role, scoped to the caller's own
units.

Endpoints:
    GET /bookings - Bookings on the business's units
    GET /blackouts - Blackouts on the business's units
    POST /blackouts - Block a unit for a window
    DELETE /blackouts/{blackout_id} - Remove a blackout
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.params import Path

from ...api.dependencies import (
    get_blackout_service,
    get_booking_service,
    get_current_active_user,
)
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...database import with_db_retry
from ...models.user import User
from ...schemas.booking import BookingListResponse, BookingResponse
from ...schemas.business import BlackoutCreate, BlackoutListResponse, BlackoutResponse
from ...services.blackout_service import BlackoutService
from ...services.booking_service import BookingService
from ._common import UUID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["business-v1"])


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("/bookings", response_model=BookingListResponse)
async def list_business_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Bookings on the caller's units, latest start first."""
    try:
        bookings, total = await asyncio.to_thread(
            booking_service.list_business_bookings,
            current_user,
            status=status_filter,
            limit=limit,
            offset=offset,
        )
        return BookingListResponse(
            items=[BookingResponse.model_validate(b) for b in bookings],
            total=total,
            limit=limit,
            offset=offset,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/blackouts", response_model=BlackoutListResponse)
async def list_blackouts(
    unit_id: Optional[str] = Query(None, description="Car unit UUID", pattern=UUID_PATH_PATTERN),
    current_user: User = Depends(get_current_active_user),
    blackout_service: BlackoutService = Depends(get_blackout_service),
) -> BlackoutListResponse:
    try:
        blackouts = await asyncio.to_thread(
            blackout_service.list_blackouts, current_user, unit_id
        )
        return BlackoutListResponse(
            items=[BlackoutResponse.model_validate(b) for b in blackouts],
            total=len(blackouts),
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/blackouts",
    response_model=BlackoutResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid window or identifier"},
        404: {"description": "Car unit not found"},
    },
)
async def add_blackout(
    blackout_data: BlackoutCreate = Body(...),
    current_user: User = Depends(get_current_active_user),
    blackout_service: BlackoutService = Depends(get_blackout_service),
) -> BlackoutResponse:
    """Block one of the caller's units. Existing bookings are left in place."""
    try:
        blackout = await asyncio.to_thread(
            with_db_retry,
            "add_blackout",
            lambda: blackout_service.add_blackout(
                current_user,
                blackout_data.car_unit_id,
                blackout_data.start_ts,
                blackout_data.end_ts,
                blackout_data.reason,
            ),
        )
        return BlackoutResponse.model_validate(blackout)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.delete(
    "/blackouts/{blackout_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"description": "Blackout not found"}},
)
async def delete_blackout(
    blackout_id: str = Path(..., description="Blackout UUID", pattern=UUID_PATH_PATTERN),
    current_user: User = Depends(get_current_active_user),
    blackout_service: BlackoutService = Depends(get_blackout_service),
) -> Response:
    try:
        await asyncio.to_thread(
            with_db_retry,
            "delete_blackout",
            lambda: blackout_service.delete_blackout(current_user, blackout_id),
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
