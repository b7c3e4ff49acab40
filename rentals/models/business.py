# rentals/models/business.py
"""Businesses that own rentable units."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ids import generate_id
from ..database import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    units = relationship("CarUnit", back_populates="business")

    def __repr__(self) -> str:
        return f"<Business {self.slug}>"
