# rentals/repositories/blackout_repository.py
"""
Blackout repository.

Blackouts are owned through their unit, so every business-scoped lookup joins
car_units on business_id.
"""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.car import CarBlackout, CarUnit
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BlackoutRepository(BaseRepository[CarBlackout]):
    def __init__(self, db: Session):
        super().__init__(db, CarBlackout)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(CarBlackout.car_unit))

    def _for_business(self, business_id: str) -> Query:
        return (
            self.db.query(CarBlackout)
            .join(CarUnit, CarBlackout.car_unit_id == CarUnit.id)
            .filter(CarUnit.business_id == business_id)
        )

    def list_for_business(
        self, business_id: str, unit_id: Optional[str] = None
    ) -> List[CarBlackout]:
        """The business's blackouts, latest start first."""
        try:
            query = self._for_business(business_id)
            if unit_id:
                query = query.filter(CarBlackout.car_unit_id == unit_id)
            rows = query.order_by(CarBlackout.start_ts.desc(), CarBlackout.id.desc()).all()
            return cast(List[CarBlackout], rows)
        except SQLAlchemyError as exc:
            self.logger.error("Failed to list blackouts for business %s: %s", business_id, exc)
            raise RepositoryException("Failed to list blackouts") from exc

    def get_for_business(self, blackout_id: str, business_id: str) -> Optional[CarBlackout]:
        """A blackout only when it sits on one of the business's units."""
        try:
            return self._for_business(business_id).filter(CarBlackout.id == blackout_id).first()
        except SQLAlchemyError as exc:
            self.logger.error("Failed to load blackout %s: %s", blackout_id, exc)
            raise RepositoryException("Failed to load blackout") from exc

    def delete(self, blackout: CarBlackout) -> None:
        """Remove a blackout. Does NOT commit."""
        try:
            self.db.delete(blackout)
            self.db.flush()
        except SQLAlchemyError as exc:
            self.logger.error("Failed to delete blackout %s: %s", blackout.id, exc)
            raise RepositoryException("Failed to delete blackout") from exc
