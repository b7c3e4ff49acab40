# rentals/models/booking.py
"""
Reservation model.

A booking holds one unit for the half-open window `[start_ts, end_ts)` and
snapshots every pricing input used to compute its charge, so later catalog
rate changes never alter a historical record.

On PostgreSQL the `bookings_no_overlap` exclusion constraint guarantees that
no two CONFIRMED bookings for the same unit overlap. Canceled bookings fall
out of the constraint's scope immediately.
"""

import logging

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    event,
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import BookingStatus
from ..core.ids import generate_id
from ..core.timezone_utils import utc_now
from ..database import Base

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT_NAME = "bookings_no_overlap"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    car_unit_id = Column(String(36), ForeignKey("car_units.id"), nullable=False)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    start_ts = Column(DateTime(timezone=True), nullable=False)
    end_ts = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)

    # Pricing snapshot
    credits_charged = Column(Integer, nullable=False)
    pricing_mode = Column(String(20), nullable=False)
    hourly_rate_used = Column(Integer, nullable=False)
    day_price_used = Column(Integer, nullable=False)
    billable_days = Column(Integer, nullable=True)
    duration_minutes = Column(Integer, nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    canceled_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    car_unit = relationship("CarUnit")
    customer = relationship("User", foreign_keys=[customer_id])
    canceled_by = relationship("User", foreign_keys=[canceled_by_id])

    __table_args__ = (
        CheckConstraint("status IN ('CONFIRMED', 'CANCELED')", name="ck_bookings_status"),
        CheckConstraint(
            "pricing_mode IN ('HOURLY', 'DAY_CAP', 'WEEK_CAP')", name="ck_bookings_pricing_mode"
        ),
        CheckConstraint("start_ts < end_ts", name="ck_bookings_window"),
        CheckConstraint("credits_charged >= 0", name="ck_bookings_credits_non_negative"),
        CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
        Index("ix_bookings_unit_window", "car_unit_id", "start_ts", "end_ts"),
    )

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED.value

    @property
    def is_canceled(self) -> bool:
        return self.status == BookingStatus.CANCELED.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: unit={self.car_unit_id}, customer={self.customer_id}, "
            f"window={self.start_ts}-{self.end_ts}, status={self.status}>"
        )


_bookings = Booking.__table__
_bookings.append_constraint(
    ExcludeConstraint(
        (_bookings.c.car_unit_id, "="),
        (func.tstzrange(_bookings.c.start_ts, _bookings.c.end_ts, "[)"), "&&"),
        name=OVERLAP_CONSTRAINT_NAME,
        using="gist",
        where=_bookings.c.status == BookingStatus.CONFIRMED.value,
    ).ddl_if(dialect="postgresql")
)

event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
