# rentals/services/blackout_service.py
"""
Blackout management for business accounts.

A blackout vetoes bookings on one unit for `[start_ts, end_ts)`. Businesses
add and remove blackouts on their own units only; units and blackouts of
other businesses are reported as not found.

Adding a blackout does not touch existing bookings on the unit.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_BLACKOUT_REASON_LENGTH
from ..core.enums import AuditAction
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from ..core.ids import normalize_id
from ..core.timezone_utils import ensure_utc
from ..models.audit_log import AuditLog
from ..models.car import CarBlackout
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class BlackoutService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.blackout_repository = RepositoryFactory.create_blackout_repository(db)
        self.unit_repository = RepositoryFactory.create_car_unit_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_repository(db)

    @staticmethod
    def _require_business(caller: Optional[User]) -> str:
        if caller is None:
            raise UnauthorizedException("Authentication required")
        if not caller.is_business or not caller.business_id:
            raise ForbiddenException("Only business accounts can manage blackouts")
        return caller.business_id

    @BaseService.measure_operation("list_blackouts")
    def list_blackouts(
        self, caller: Optional[User], unit_id: Optional[str] = None
    ) -> List[CarBlackout]:
        business_id = self._require_business(caller)
        if unit_id is not None:
            normalized_unit_id = normalize_id(unit_id)
            if normalized_unit_id is None:
                raise ValidationException("Invalid car unit id", details={"unit_id": unit_id})
            unit_id = normalized_unit_id
        return self.blackout_repository.list_for_business(business_id, unit_id)

    @BaseService.measure_operation("add_blackout")
    def add_blackout(
        self,
        caller: Optional[User],
        unit_id: str,
        start_ts: datetime,
        end_ts: datetime,
        reason: Optional[str] = None,
    ) -> CarBlackout:
        """
        Block ``unit_id`` for ``[start_ts, end_ts)``.

        Raises:
            UnauthorizedException: no caller
            ForbiddenException: caller is not a business account
            ValidationException: malformed id, end not after start, or reason too long
            NotFoundException: unit missing or owned by another business
        """
        business_id = self._require_business(caller)
        normalized_unit_id = normalize_id(unit_id)
        if normalized_unit_id is None:
            raise ValidationException("Invalid car unit id", details={"unit_id": unit_id})

        start = ensure_utc(start_ts)
        end = ensure_utc(end_ts)
        if start >= end:
            raise ValidationException(
                "End time must be after start time",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        clean_reason = (reason or "").strip() or None
        if clean_reason and len(clean_reason) > MAX_BLACKOUT_REASON_LENGTH:
            raise ValidationException(
                f"Reason must be at most {MAX_BLACKOUT_REASON_LENGTH} characters"
            )

        unit = self.unit_repository.get_by_id(normalized_unit_id, load_relationships=False)
        if unit is None or unit.business_id != business_id:
            raise NotFoundException("Car unit not found", details={"unit_id": normalized_unit_id})

        with self.transaction():
            blackout = self.blackout_repository.create(
                car_unit_id=unit.id,
                start_ts=start,
                end_ts=end,
                reason=clean_reason,
            )
            self.audit_repository.write(
                AuditLog.record(
                    action=AuditAction.BLACKOUT_CREATED.value,
                    entity_type="car_blackout",
                    entity_id=blackout.id,
                    actor_user_id=caller.id,
                    details={
                        "car_unit_id": unit.id,
                        "start_ts": start.isoformat(),
                        "end_ts": end.isoformat(),
                        "reason": clean_reason,
                    },
                )
            )

        self.log_operation(
            "add_blackout", business_id=business_id, unit_id=unit.id, blackout_id=blackout.id
        )
        return blackout

    @BaseService.measure_operation("delete_blackout")
    def delete_blackout(self, caller: Optional[User], blackout_id: str) -> None:
        """
        Remove one of the caller's blackouts.

        Raises:
            UnauthorizedException: no caller
            ForbiddenException: caller is not a business account
            ValidationException: malformed id
            NotFoundException: blackout missing or on another business's unit
        """
        business_id = self._require_business(caller)
        normalized_id = normalize_id(blackout_id)
        if normalized_id is None:
            raise ValidationException(
                "Invalid blackout id", details={"blackout_id": blackout_id}
            )

        blackout = self.blackout_repository.get_for_business(normalized_id, business_id)
        if blackout is None:
            raise NotFoundException("Blackout not found", details={"blackout_id": normalized_id})

        with self.transaction():
            details = {
                "car_unit_id": blackout.car_unit_id,
                "start_ts": ensure_utc(blackout.start_ts).isoformat(),
                "end_ts": ensure_utc(blackout.end_ts).isoformat(),
            }
            self.blackout_repository.delete(blackout)
            self.audit_repository.write(
                AuditLog.record(
                    action=AuditAction.BLACKOUT_DELETED.value,
                    entity_type="car_blackout",
                    entity_id=normalized_id,
                    actor_user_id=caller.id,
                    details=details,
                )
            )

        self.log_operation("delete_blackout", business_id=business_id, blackout_id=normalized_id)
