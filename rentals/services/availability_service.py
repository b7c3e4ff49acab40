# rentals/services/availability_service.py
"""
Availability resolver.

Answers "which units of this model are free for this window". The answer is
advisory: it can be stale by the time a booking is attempted, and the booking
transaction re-checks everything authoritatively.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_COLOR_FILTER_LENGTH
from ..core.exceptions import ValidationException
from ..core.ids import normalize_id
from ..domain.time_window import TimeWindow
from ..models.car import CarUnit
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    available_unit_ids: List[str]
    total_units: int
    available_units: List[CarUnit] = field(default_factory=list)

    @property
    def available_count(self) -> int:
        return len(self.available_unit_ids)


class AvailabilityService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.unit_repository = RepositoryFactory.create_car_unit_repository(db)
        self.conflict_repository = RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("available_units")
    def available_units(
        self,
        model_id: str,
        start_ts: datetime,
        end_ts: datetime,
        color: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Resolve the active units of ``model_id`` that are free for the window.

        An unknown model is not an error; it simply has no units.

        Raises:
            ValidationException: malformed model id, a window that fails the
                scheduling grid rules, or a color filter that is too long
        """
        window = TimeWindow.from_bounds(start_ts, end_ts)
        window.validate_bookable()

        color_filter = (color or "").strip() or None
        if color_filter and len(color_filter) > MAX_COLOR_FILTER_LENGTH:
            raise ValidationException(
                f"Color filter must be at most {MAX_COLOR_FILTER_LENGTH} characters"
            )

        normalized_model_id = normalize_id(model_id)
        if normalized_model_id is None:
            raise ValidationException("Invalid car model id", details={"model_id": model_id})
        model_id = normalized_model_id

        units = self.unit_repository.get_active_units_for_model(model_id, color_filter)
        unit_ids = [unit.id for unit in units]

        booked = self.conflict_repository.get_booked_unit_ids(unit_ids, window.start, window.end)
        blacked_out = self.conflict_repository.get_blacked_out_unit_ids(
            unit_ids, window.start, window.end
        )
        free_units = [u for u in units if u.id not in booked and u.id not in blacked_out]

        self.log_operation(
            "available_units",
            model_id=model_id,
            total_units=len(units),
            available_count=len(free_units),
        )
        return AvailabilityResult(
            available_unit_ids=[u.id for u in free_units],
            total_units=len(units),
            available_units=free_units,
        )
