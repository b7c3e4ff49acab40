# rentals/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from ...database import get_db
from .auth import get_current_active_user
from .services import (
    get_availability_service,
    get_blackout_service,
    get_booking_service,
    get_credit_service,
    get_pricing_service,
)

__all__ = [
    "get_current_active_user",
    "get_db",
    "get_availability_service",
    "get_blackout_service",
    "get_booking_service",
    "get_credit_service",
    "get_pricing_service",
]
