# rentals/core/enums.py
"""
Core enums for the rental booking engine.

Values are stored verbatim in the database, so they must not be renamed
without a migration.
"""

from enum import Enum


class RoleName(str, Enum):
    """Account roles recognised by the engine."""

    CUSTOMER = "CUSTOMER"
    BUSINESS = "BUSINESS"
    ADMIN = "ADMIN"


class BookingStatus(str, Enum):
    """Reservation lifecycle. CONFIRMED is the only state that occupies a unit."""

    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class PricingMode(str, Enum):
    """Tier the pricing calculator applied."""

    HOURLY = "HOURLY"
    DAY_CAP = "DAY_CAP"
    WEEK_CAP = "WEEK_CAP"


class AuditAction(str, Enum):
    BOOKING_CREATED = "booking.created"
    BOOKING_CANCELED = "booking.canceled"
    CREDITS_GRANTED = "credits.granted"
    BLACKOUT_CREATED = "blackout.created"
    BLACKOUT_DELETED = "blackout.deleted"
