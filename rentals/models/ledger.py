# rentals/models/ledger.py
"""
Credit ledger.

Entries are append-only signed integer deltas. An account's balance is the sum
of its deltas; balances are never stored.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ids import generate_id
from ..core.timezone_utils import utc_now
from ..database import Base


class LedgerEntry(Base):
    __tablename__ = "credit_ledger"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    delta = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    related_booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True, index=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )

    user = relationship("User")

    __table_args__ = (
        CheckConstraint("delta <> 0", name="ck_credit_ledger_delta_nonzero"),
        Index("ix_credit_ledger_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.id}: user={self.user_id}, delta={self.delta}>"
