"""Credit wallet schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_GRANT_REASON_LENGTH
from ..core.timezone_utils import ensure_utc
from .base import StandardizedModel, StrictRequestModel, require_uuid


class BalanceResponse(StandardizedModel):
    user_id: str
    balance: int


class LedgerEntryResponse(StandardizedModel):
    id: str
    delta: int
    reason: str
    related_booking_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None


class LedgerListResponse(StandardizedModel):
    items: List[LedgerEntryResponse]
    total: int
    balance: int
    limit: int
    offset: int


class CreditGrantRequest(StrictRequestModel):
    user_id: str
    amount: int = Field(..., gt=0, description="Credits to add")
    reason: str = Field(..., min_length=1, max_length=MAX_GRANT_REASON_LENGTH)

    @field_validator("user_id")
    @classmethod
    def _validate_user_id(cls, v: str) -> str:
        return require_uuid(v, "user_id")

    @field_validator("reason")
    @classmethod
    def _strip_reason(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("reason must not be blank")
        return cleaned


class CreditGrantResponse(StandardizedModel):
    user_id: str
    granted: int
    new_balance: int
    ledger_entry_id: str
