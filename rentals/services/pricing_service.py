# rentals/services/pricing_service.py
"""
Pricing previews.

Wraps the pure calculator for the client-facing quote endpoints. Quotes use
the same function as the booking transaction, so a quote for a unit and
window equals the charge a booking would make at that moment.
"""

from datetime import datetime
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import NoRateConfiguredException, UnitUnavailableException
from ..core.ids import normalize_id
from ..domain.pricing import PricingResult, calculate_rental_price
from ..domain.time_window import TimeWindow
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class PricingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.unit_repository = RepositoryFactory.create_car_unit_repository(db)

    def preview(self, hourly_rate: int, duration_minutes: int) -> PricingResult:
        return calculate_rental_price(duration_minutes, hourly_rate)

    @BaseService.measure_operation("quote_for_unit")
    def quote_for_unit(self, unit_id: str, start_ts: datetime, end_ts: datetime) -> PricingResult:
        """
        Price a prospective booking of ``unit_id``.

        Raises:
            ValidationException: window fails the scheduling grid rules
            UnitUnavailableException: unit missing or inactive
            NoRateConfiguredException: no positive hourly rate resolvable
        """
        window = TimeWindow.from_bounds(start_ts, end_ts)
        window.validate_bookable()

        normalized_unit_id = normalize_id(unit_id)
        unit = self.unit_repository.get_by_id(normalized_unit_id) if normalized_unit_id else None
        if unit is None or not unit.active:
            raise UnitUnavailableException(
                "Car unit not found or inactive", details={"unit_id": unit_id}
            )
        rate = unit.effective_credits_per_hour
        if rate is None or rate <= 0:
            raise NoRateConfiguredException(unit.id)
        return calculate_rental_price(window.duration_minutes, rate)
