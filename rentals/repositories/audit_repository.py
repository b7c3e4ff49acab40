"""
Repository helpers for audit_log persistence.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog
from ..monitoring.prometheus_metrics import prometheus_metrics


class AuditRepository:
    """Persist activity records."""

    def __init__(self, db: Session):
        self.db = db

    def write(self, audit: AuditLog) -> None:
        """Persist a new audit row inside the active transaction."""
        self.db.add(audit)
        prometheus_metrics.record_audit_write(audit.entity_type, audit.action)
        self.db.flush()
