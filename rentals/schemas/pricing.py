"""Pricing preview schemas."""

from typing import Optional

from ..core.enums import PricingMode
from .base import StandardizedModel


class PricingPreviewResponse(StandardizedModel):
    mode: PricingMode
    total_credits: int
    hourly_rate: int
    day_price: int
    duration_minutes: int
    billable_days: Optional[int] = None
    total_days: Optional[int] = None
    breakdown: str
    duration_text: str
    unit_id: Optional[str] = None
