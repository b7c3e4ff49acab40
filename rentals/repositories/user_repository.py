# rentals/repositories/user_repository.py
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def lock_for_debit(self, user_id: str) -> Optional[User]:
        """
        Load the account ahead of a balance check.

        On PostgreSQL the row is locked FOR UPDATE so debits on one account run
        one at a time. Other backends rely on claim_ledger_version.
        """
        query = self.db.query(User).filter(User.id == user_id).populate_existing()
        if self.dialect_name == "postgresql":
            query = query.with_for_update(of=User)
        return query.first()

    def claim_ledger_version(self, user_id: str, expected_version: int) -> bool:
        """Compare-and-swap the account's ledger_version."""
        result = self.db.execute(
            update(User)
            .where(User.id == user_id, User.ledger_version == expected_version)
            .values(ledger_version=User.ledger_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
