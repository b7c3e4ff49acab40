# rentals/routes/v1/bookings.py
"""
Customer booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - List the caller's bookings
    POST / - Reserve a unit and debit credits
    GET /{booking_id} - Booking details (owner or admin)
    POST /{booking_id}/cancel - Cancel with tiered refund
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_active_user
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...database import with_db_retry
from ...models.user import User
from ...schemas.booking import (
    BookingCancelResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingListResponse,
    BookingResponse,
)
from ...services.booking_service import BookingService
from ._common import UUID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """List the caller's bookings, latest start first."""
    try:
        bookings, total = await asyncio.to_thread(
            booking_service.list_bookings,
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


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid window or identifier"},
        409: {"description": "Unit unavailable, slot already booked, or account busy"},
        422: {"description": "No rate configured or insufficient balance"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """
    Reserve a unit for a half-open window and debit the price.

    The whole write is one transaction: on any failure nothing is booked and
    nothing is charged. A 409 with code SLOT_ALREADY_BOOKED means another
    booking won the race; re-check availability and pick another slot.
    ACCOUNT_BUSY means another booking debited the same account first; a
    plain retry re-reads the balance.
    """
    try:
        result = await asyncio.to_thread(
            with_db_retry,
            "create_booking",
            lambda: booking_service.create_booking(
                current_user,
                booking_data.unit_id,
                booking_data.start_ts,
                booking_data.end_ts,
            ),
        )
        return BookingCreateResponse(
            booking_id=result.booking_id,
            credits_charged=result.credits_charged,
            balance_after=result.balance_after,
            pricing_mode=result.pricing.mode,
            hourly_rate=result.pricing.hourly_rate,
            day_price=result.pricing.day_price,
            billable_days=result.pricing.billable_days,
            duration_minutes=result.pricing.duration_minutes,
            breakdown=result.pricing.breakdown,
        )
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str = Path(..., description="Booking UUID", pattern=UUID_PATH_PATTERN),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Get full booking details."""
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, current_user, booking_id)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingCancelResponse,
    responses={404: {"description": "Booking not found"}},
)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking UUID", pattern=UUID_PATH_PATTERN),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCancelResponse:
    """Cancel a booking. Canceling twice is a no-op with a zero refund."""
    try:
        result = await asyncio.to_thread(
            with_db_retry,
            "cancel_booking",
            lambda: booking_service.cancel_booking(current_user, booking_id),
        )
        return BookingCancelResponse(
            booking_id=result.booking_id,
            status=result.status,
            refund_credits=result.refund_credits,
            refund_pct=result.refund_pct,
            message=result.message,
        )
    except DomainException as e:
        handle_domain_exception(e)
