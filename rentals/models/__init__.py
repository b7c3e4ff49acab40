"""
SQLAlchemy models for the rental booking engine.

Importing this package registers every table on ``Base.metadata``.
"""

from .audit_log import AuditLog
from .booking import Booking
from .business import Business
from .car import CarBlackout, CarModel, CarUnit
from .ledger import LedgerEntry
from .user import User

__all__ = [
    "AuditLog",
    "Booking",
    "Business",
    "CarBlackout",
    "CarModel",
    "CarUnit",
    "LedgerEntry",
    "User",
]
