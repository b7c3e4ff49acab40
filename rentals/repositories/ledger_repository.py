# rentals/repositories/ledger_repository.py
"""
Credit ledger repository.

The ledger is append-only: this repository exposes inserts and reads, never
updates or deletes. Balances are derived with SUM(delta).
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple, cast

from sqlalchemy import func
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.ledger import LedgerEntry
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LedgerRepository(BaseRepository[LedgerEntry]):
    def __init__(self, db: Session):
        super().__init__(db, LedgerEntry)
        self.logger = logging.getLogger(__name__)

    def get_balance(self, user_id: str) -> int:
        """Sum of all deltas for the account (0 when it has no entries)."""
        try:
            total = (
                self.db.query(func.coalesce(func.sum(LedgerEntry.delta), 0))
                .filter(LedgerEntry.user_id == user_id)
                .scalar()
            )
            return int(total or 0)
        except OperationalError:
            raise
        except SQLAlchemyError as exc:
            self.logger.error("Failed to compute balance for %s: %s", user_id, exc)
            raise RepositoryException("Failed to compute credit balance") from exc

    def append(
        self,
        *,
        user_id: str,
        delta: int,
        reason: str,
        related_booking_id: Optional[str] = None,
    ) -> LedgerEntry:
        """Insert one entry inside the caller's transaction."""
        if delta == 0:
            raise ValueError("Ledger entries must carry a non-zero delta")
        return self.create(
            user_id=user_id,
            delta=delta,
            reason=reason,
            related_booking_id=related_booking_id,
        )

    def list_for_user(
        self, user_id: str, *, limit: int = 50, offset: int = 0
    ) -> Tuple[List[LedgerEntry], int]:
        """Entries newest first, with the unpaginated total."""
        try:
            query = self.db.query(LedgerEntry).filter(LedgerEntry.user_id == user_id)
            total = query.count()
            rows = (
                query.order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
                .offset(max(0, offset))
                .limit(max(0, limit))
                .all()
            )
            return cast(List[LedgerEntry], rows), int(total)
        except SQLAlchemyError as exc:
            self.logger.error("Failed to list ledger for %s: %s", user_id, exc)
            raise RepositoryException("Failed to list ledger entries") from exc
