"""
Base schemas shared by request and response DTOs.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..core.ids import normalize_id


class StandardizedModel(BaseModel):
    """Base model for responses; enums serialize as their values."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


def require_uuid(value: str, field_name: str) -> str:
    normalized = normalize_id(value)
    if normalized is None:
        raise ValueError(f"{field_name} must be a UUID")
    return normalized


def require_aware(value: datetime, field_name: str) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{field_name} must include a UTC offset")
    return value
