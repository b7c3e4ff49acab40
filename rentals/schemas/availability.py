"""Availability search schemas."""

from typing import List, Optional

from .base import StandardizedModel


class AvailableUnit(StandardizedModel):
    id: str
    display_name: Optional[str] = None
    color: Optional[str] = None
    color_hex: Optional[str] = None
    credits_per_hour: Optional[int] = None
    business_id: str


class AvailabilityResponse(StandardizedModel):
    available_unit_ids: List[str]
    available_count: int
    total_units: int
    available_units: List[AvailableUnit]
