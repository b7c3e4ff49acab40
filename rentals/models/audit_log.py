# rentals/models/audit_log.py
"""
Activity records for booking, blackout and credit actions.

Rows are immutable once written. The `metadata` column holds action-specific
details (refund tier, pricing snapshot, grant reason).
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from ..core.ids import generate_id
from ..core.timezone_utils import utc_now
from ..database import Base


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True, default=generate_id)
    actor_user_id = Column(String(36), nullable=True)
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=False)
    details = Column(
        "metadata",
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    __table_args__ = (Index("ix_audit_log_entity", "entity_type", "entity_id"),)

    @classmethod
    def record(
        cls,
        *,
        action: str,
        entity_type: str,
        entity_id: str,
        actor_user_id: str | None,
        details: Mapping[str, Any] | None = None,
    ) -> "AuditLog":
        """Factory helper that copies the metadata mapping."""
        return cls(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=actor_user_id,
            details=dict(details) if details is not None else None,
        )
