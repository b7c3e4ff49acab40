# rentals/repositories/booking_repository.py
"""
Booking repository.

create() surfaces IntegrityError unchanged so the booking service can map an
exclusion-constraint violation to a slot conflict.
"""

from datetime import datetime
import logging
from typing import Any, List, Optional, Tuple, cast

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.car import CarUnit
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.car_unit))

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def cancel_if_confirmed(
        self, booking_id: str, *, canceled_by_id: str, canceled_at: datetime
    ) -> bool:
        """
        Apply the CONFIRMED -> CANCELED transition.

        The UPDATE is guarded on the prior status, so two concurrent cancels
        cannot both refund. Returns False when the booking was no longer
        CONFIRMED.
        """
        result = self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus.CONFIRMED.value)
            .values(
                status=BookingStatus.CANCELED.value,
                canceled_at=canceled_at,
                canceled_by_id=canceled_by_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _paginate(
        self, query: Query, status: Optional[str], limit: int, offset: int
    ) -> Tuple[List[Booking], int]:
        if status:
            query = query.filter(Booking.status == status)
        total = query.count()
        rows = (
            query.order_by(Booking.start_ts.desc(), Booking.id.desc())
            .offset(max(0, offset))
            .limit(max(0, limit))
            .all()
        )
        return cast(List[Booking], rows), int(total)

    def list_for_customer(
        self,
        customer_id: str,
        *,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        """Customer's bookings, latest start first, with the unpaginated total."""
        try:
            query = self.db.query(Booking).filter(Booking.customer_id == customer_id)
            return self._paginate(query, status, limit, offset)
        except SQLAlchemyError as exc:
            self.logger.error("Failed to list bookings for %s: %s", customer_id, exc)
            raise RepositoryException("Failed to list bookings") from exc

    def list_for_business(
        self,
        business_id: str,
        *,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        """Bookings on any of the business's units, latest start first."""
        try:
            query = (
                self.db.query(Booking)
                .join(CarUnit, Booking.car_unit_id == CarUnit.id)
                .filter(CarUnit.business_id == business_id)
            )
            return self._paginate(query, status, limit, offset)
        except SQLAlchemyError as exc:
            self.logger.error("Failed to list bookings for business %s: %s", business_id, exc)
            raise RepositoryException("Failed to list business bookings") from exc
