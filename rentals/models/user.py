# rentals/models/user.py
"""
Account model.

Accounts are provisioned by the upstream identity provider; the booking engine
only reads them to resolve the caller's role and ownership.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import RoleName
from ..core.ids import generate_id
from ..database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.CUSTOMER.value)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Bumped by every booking debit; concurrent debits on one account race on it
    ledger_version = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    business = relationship("Business")

    __table_args__ = (
        CheckConstraint("role IN ('CUSTOMER', 'BUSINESS', 'ADMIN')", name="ck_users_role"),
    )

    def has_role(self, role: RoleName) -> bool:
        return self.role == role.value

    @property
    def is_admin(self) -> bool:
        return self.has_role(RoleName.ADMIN)

    @property
    def is_customer(self) -> bool:
        return self.has_role(RoleName.CUSTOMER)

    @property
    def is_business(self) -> bool:
        return self.has_role(RoleName.BUSINESS)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
