"""Business fleet schemas: blackouts on the business's own units."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator

from ..core.constants import MAX_BLACKOUT_REASON_LENGTH
from ..core.timezone_utils import ensure_utc
from .base import StandardizedModel, StrictRequestModel, require_aware, require_uuid


class BlackoutCreate(StrictRequestModel):
    car_unit_id: str = Field(..., description="Unit to block (UUID)")
    start_ts: datetime = Field(..., description="Inclusive start")
    end_ts: datetime = Field(..., description="Exclusive end")
    reason: Optional[str] = Field(None, max_length=MAX_BLACKOUT_REASON_LENGTH)

    @field_validator("car_unit_id")
    @classmethod
    def _validate_unit_id(cls, v: str) -> str:
        return require_uuid(v, "car_unit_id")

    @field_validator("start_ts", "end_ts")
    @classmethod
    def _validate_aware(cls, v: datetime, info: ValidationInfo) -> datetime:
        return require_aware(v, info.field_name)

    @model_validator(mode="after")
    def validate_time_order(self) -> "BlackoutCreate":
        if self.end_ts <= self.start_ts:
            raise ValueError("End time must be after start time")
        return self


class BlackoutResponse(StandardizedModel):
    id: str
    car_unit_id: str
    start_ts: datetime
    end_ts: datetime
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("start_ts", "end_ts", "created_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None


class BlackoutListResponse(StandardizedModel):
    items: List[BlackoutResponse]
    total: int
