# rentals/routes/v1/_common.py
"""Helpers shared by the v1 routers."""

from datetime import datetime
from typing import NoReturn

from fastapi import HTTPException, status

from ...core.exceptions import DomainException, ValidationException

UUID_PATH_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def require_offset(value: datetime, name: str) -> datetime:
    """Reject naive timestamps; the grid is defined in UTC."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationException(
            f"{name} must include a UTC offset",
            details={name: value.isoformat()},
        )
    return value
