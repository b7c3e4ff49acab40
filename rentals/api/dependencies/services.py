# rentals/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

One service instance per request, bound to the request's session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.availability_service import AvailabilityService
from ...services.blackout_service import BlackoutService
from ...services.booking_service import BookingService
from ...services.credit_service import CreditService
from ...services.pricing_service import PricingService


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_credit_service(db: Session = Depends(get_db)) -> CreditService:
    return CreditService(db)


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_blackout_service(db: Session = Depends(get_db)) -> BlackoutService:
    return BlackoutService(db)
