# rentals/repositories/car_unit_repository.py
"""
CarUnit repository.

Inventory lookups for availability search and the per-unit version claim used
to serialize booking writes on the same unit.
"""

import logging
from typing import List, Optional, cast

from sqlalchemy import func, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.car import CarUnit
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CarUnitRepository(BaseRepository[CarUnit]):
    def __init__(self, db: Session):
        super().__init__(db, CarUnit)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(CarUnit.car_model))

    def get_active_units_for_model(
        self, car_model_id: str, color: Optional[str] = None
    ) -> List[CarUnit]:
        """Active units of a model, optionally filtered by color (case-insensitive)."""
        try:
            query = self.db.query(CarUnit).filter(
                CarUnit.car_model_id == car_model_id,
                CarUnit.active.is_(True),
            )
            if color:
                query = query.filter(func.lower(CarUnit.color) == color.lower())
            return cast(List[CarUnit], query.order_by(CarUnit.id).all())
        except OperationalError:
            raise
        except SQLAlchemyError as exc:
            self.logger.error("Failed to list units for model %s: %s", car_model_id, exc)
            raise RepositoryException("Failed to list car units") from exc

    def lock_for_booking(self, unit_id: str) -> Optional[CarUnit]:
        """
        Load the unit for a booking write.

        On PostgreSQL the row is locked FOR UPDATE so concurrent writers on the
        same unit queue behind each other. Other backends rely on the version
        claim in claim_booking_version.
        """
        query = self._apply_eager_loading(
            self.db.query(CarUnit).filter(CarUnit.id == unit_id)
        ).populate_existing()
        if self.dialect_name == "postgresql":
            query = query.with_for_update(of=CarUnit)
        return query.first()

    def claim_booking_version(self, unit_id: str, expected_version: int) -> bool:
        """
        Compare-and-swap the unit's booking_version.

        Returns False when another transaction bumped the version first.
        """
        result = self.db.execute(
            update(CarUnit)
            .where(CarUnit.id == unit_id, CarUnit.booking_version == expected_version)
            .values(booking_version=CarUnit.booking_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
