# rentals/models/car.py
"""
Catalog and inventory models.

A CarModel is a catalog class (make/model/trim) carrying a suggested hourly
rate. A CarUnit is one physical car a business rents out; it may override the
model's rate. Units are deactivated rather than deleted once referenced.
"""

from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ids import generate_id
from ..database import Base


class CarModel(Base):
    __tablename__ = "car_models"

    id = Column(String(36), primary_key=True, default=generate_id)
    display_name = Column(String(200), nullable=False)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    suggested_credits_per_hour = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    units = relationship("CarUnit", back_populates="car_model")

    __table_args__ = (
        CheckConstraint(
            "suggested_credits_per_hour IS NULL OR suggested_credits_per_hour > 0",
            name="ck_car_models_rate_positive",
        ),
    )

    def __repr__(self) -> str:
        return f"<CarModel {self.display_name}>"


class CarUnit(Base):
    __tablename__ = "car_units"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    car_model_id = Column(String(36), ForeignKey("car_models.id"), nullable=False, index=True)
    display_name = Column(String(200), nullable=True)
    color = Column(String(50), nullable=True)
    color_hex = Column(String(7), nullable=True)
    credits_per_hour = Column(Integer, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    # Bumped by every booking write on this unit (optimistic concurrency token)
    booking_version = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    business = relationship("Business", back_populates="units")
    car_model = relationship("CarModel", back_populates="units")
    blackouts = relationship("CarBlackout", back_populates="car_unit")

    __table_args__ = (
        CheckConstraint(
            "credits_per_hour IS NULL OR credits_per_hour > 0",
            name="ck_car_units_rate_positive",
        ),
        Index("ix_car_units_model_active", "car_model_id", "active"),
    )

    @property
    def effective_credits_per_hour(self) -> Optional[int]:
        """Unit override, falling back to the model's suggestion."""
        if self.credits_per_hour is not None:
            return self.credits_per_hour
        if self.car_model is not None:
            return self.car_model.suggested_credits_per_hour
        return None

    def __repr__(self) -> str:
        return f"<CarUnit {self.id}: model={self.car_model_id}, active={self.active}>"


class CarBlackout(Base):
    """Maintenance or owner hold: the unit is not rentable during `[start_ts, end_ts)`."""

    __tablename__ = "car_blackouts"

    id = Column(String(36), primary_key=True, default=generate_id)
    car_unit_id = Column(String(36), ForeignKey("car_units.id"), nullable=False)
    start_ts = Column(DateTime(timezone=True), nullable=False)
    end_ts = Column(DateTime(timezone=True), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    car_unit = relationship("CarUnit", back_populates="blackouts")

    __table_args__ = (
        CheckConstraint("start_ts < end_ts", name="ck_car_blackouts_window"),
        Index("ix_car_blackouts_unit_window", "car_unit_id", "start_ts", "end_ts"),
    )
