"""Booking request and response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator

from ..core.enums import BookingStatus, PricingMode
from ..core.timezone_utils import ensure_utc
from .base import StandardizedModel, StrictRequestModel, require_aware, require_uuid


class BookingCreate(StrictRequestModel):
    """
    Reserve one unit for a half-open window.

    Timestamps are ISO-8601 with an explicit offset; they are normalized to
    UTC by the service.
    """

    unit_id: str = Field(..., description="Car unit to reserve (UUID)")
    start_ts: datetime = Field(..., description="Inclusive start, 30-minute aligned")
    end_ts: datetime = Field(..., description="Exclusive end, 30-minute aligned")

    @field_validator("unit_id")
    @classmethod
    def _validate_unit_id(cls, v: str) -> str:
        return require_uuid(v, "unit_id")

    @field_validator("start_ts", "end_ts")
    @classmethod
    def _validate_aware(cls, v: datetime, info: ValidationInfo) -> datetime:
        return require_aware(v, info.field_name)

    @model_validator(mode="after")
    def validate_time_order(self) -> "BookingCreate":
        if self.end_ts <= self.start_ts:
            raise ValueError("End time must be after start time")
        return self


class BookingCreateResponse(StandardizedModel):
    booking_id: str
    credits_charged: int
    balance_after: int
    pricing_mode: PricingMode
    hourly_rate: int
    day_price: int
    billable_days: Optional[int] = None
    duration_minutes: int
    breakdown: str


class BookingCancelResponse(StandardizedModel):
    booking_id: str
    status: BookingStatus
    refund_credits: int
    refund_pct: int
    message: str


class BookingResponse(StandardizedModel):
    id: str
    car_unit_id: str
    customer_id: str
    start_ts: datetime
    end_ts: datetime
    status: BookingStatus
    credits_charged: int
    pricing_mode: PricingMode
    hourly_rate_used: int
    day_price_used: int
    billable_days: Optional[int] = None
    duration_minutes: int
    created_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    @field_validator("start_ts", "end_ts", "created_at", "canceled_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None


class BookingListResponse(StandardizedModel):
    items: List[BookingResponse]
    total: int
    limit: int
    offset: int
