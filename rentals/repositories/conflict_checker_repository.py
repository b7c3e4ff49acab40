# rentals/repositories/conflict_checker_repository.py
"""
ConflictChecker repository.

Overlap queries against CONFIRMED bookings and blackout windows. Two windows
intersect when ``existing.start < query.end AND existing.end > query.start``;
touching endpoints never conflict.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Set

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.car import CarBlackout
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_booked_unit_ids(
        self, unit_ids: Iterable[str], start_ts: datetime, end_ts: datetime
    ) -> Set[str]:
        """Units in ``unit_ids`` holding a CONFIRMED booking that intersects the window."""
        ids = list(unit_ids)
        if not ids:
            return set()
        try:
            rows = (
                self.db.query(Booking.car_unit_id)
                .filter(
                    Booking.car_unit_id.in_(ids),
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.start_ts < end_ts,
                    Booking.end_ts > start_ts,
                )
                .distinct()
                .all()
            )
            return {row[0] for row in rows}
        except OperationalError:
            raise
        except SQLAlchemyError as exc:
            self.logger.error("Failed to check booked units: %s", exc)
            raise RepositoryException("Failed to check booking conflicts") from exc

    def get_blacked_out_unit_ids(
        self, unit_ids: Iterable[str], start_ts: datetime, end_ts: datetime
    ) -> Set[str]:
        """Units in ``unit_ids`` with a blackout that intersects the window."""
        ids = list(unit_ids)
        if not ids:
            return set()
        try:
            rows = (
                self.db.query(CarBlackout.car_unit_id)
                .filter(
                    CarBlackout.car_unit_id.in_(ids),
                    CarBlackout.start_ts < end_ts,
                    CarBlackout.end_ts > start_ts,
                )
                .distinct()
                .all()
            )
            return {row[0] for row in rows}
        except OperationalError:
            raise
        except SQLAlchemyError as exc:
            self.logger.error("Failed to check blackouts: %s", exc)
            raise RepositoryException("Failed to check blackout windows") from exc

    def get_overlapping_bookings(
        self, unit_id: str, start_ts: datetime, end_ts: datetime
    ) -> List[Booking]:
        """CONFIRMED bookings on one unit that intersect the window."""
        query = self.db.query(Booking).filter(
            Booking.car_unit_id == unit_id,
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.start_ts < end_ts,
            Booking.end_ts > start_ts,
        )
        return query.all()

    def has_blackout(self, unit_id: str, start_ts: datetime, end_ts: datetime) -> bool:
        return bool(self.get_blacked_out_unit_ids([unit_id], start_ts, end_ts))
