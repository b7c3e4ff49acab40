# rentals/services/credit_service.py
"""
Credit wallet operations: balance, history and administrative grants.

Booking charges and cancellation refunds are written by BookingService inside
its own transactions; this service covers the wallet's read side and the only
other way credits enter the system, an admin grant.
"""

from dataclasses import dataclass
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import MAX_GRANT_REASON_LENGTH
from ..core.enums import AuditAction
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from ..events import CreditsGranted, EventPublisher, get_event_publisher
from ..models.audit_log import AuditLog
from ..models.ledger import LedgerEntry
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrantResult:
    user_id: str
    granted: int
    new_balance: int
    ledger_entry_id: str


class CreditService(BaseService):
    def __init__(self, db: Session, event_publisher: Optional[EventPublisher] = None):
        super().__init__(db)
        self.ledger_repository = RepositoryFactory.create_ledger_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_repository(db)
        self.event_publisher = event_publisher or get_event_publisher()

    @BaseService.measure_operation("get_balance")
    def get_balance(self, user_id: str) -> int:
        return self.ledger_repository.get_balance(user_id)

    @BaseService.measure_operation("get_ledger")
    def get_ledger(
        self, user_id: str, *, limit: int = 50, offset: int = 0
    ) -> Tuple[List[LedgerEntry], int]:
        return self.ledger_repository.list_for_user(user_id, limit=limit, offset=offset)

    @BaseService.measure_operation("admin_grant_credits")
    def admin_grant_credits(
        self, admin: Optional[User], user_id: str, amount: int, reason: str
    ) -> GrantResult:
        """
        Add ``amount`` credits to ``user_id``'s wallet.

        Raises:
            UnauthorizedException: no caller
            ForbiddenException: caller is not an admin
            ValidationException: non-positive amount or blank reason
            NotFoundException: target account does not exist
        """
        if admin is None:
            raise UnauthorizedException("Authentication required")
        if not admin.is_admin:
            raise ForbiddenException("Only admins can grant credits")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationException(
                "Amount must be a positive whole number", details={"amount": amount}
            )
        clean_reason = (reason or "").strip()
        if not clean_reason:
            raise ValidationException("Reason is required")
        if len(clean_reason) > MAX_GRANT_REASON_LENGTH:
            raise ValidationException(
                f"Reason must be at most {MAX_GRANT_REASON_LENGTH} characters"
            )

        if self.user_repository.get_by_id(user_id, load_relationships=False) is None:
            raise NotFoundException("User not found", details={"user_id": user_id})

        with self.transaction():
            entry = self.ledger_repository.append(
                user_id=user_id, delta=amount, reason=clean_reason
            )
            new_balance = self.ledger_repository.get_balance(user_id)
            self.audit_repository.write(
                AuditLog.record(
                    action=AuditAction.CREDITS_GRANTED.value,
                    entity_type="user",
                    entity_id=user_id,
                    actor_user_id=admin.id,
                    details={
                        "amount": amount,
                        "reason": clean_reason,
                        "new_balance": new_balance,
                        "ledger_entry_id": entry.id,
                    },
                )
            )

        prometheus_metrics.inc_ledger_entry("grant")
        self.log_operation(
            "admin_grant_credits",
            admin_id=admin.id,
            target_user_id=user_id,
            amount=amount,
            new_balance=new_balance,
        )
        self.event_publisher.publish(
            CreditsGranted(
                user_id=user_id,
                amount=amount,
                granted_by=admin.id,
                new_balance=new_balance,
            )
        )
        return GrantResult(
            user_id=user_id,
            granted=amount,
            new_balance=new_balance,
            ledger_entry_id=entry.id,
        )
