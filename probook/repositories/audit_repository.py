# probook/repositories/audit_repository.py
"""
Persistence and lookup for booking audit entries.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Select, and_, select
from sqlalchemy.orm import Session

from probook.models.audit_log import AuditLog
from probook.monitoring.prometheus_metrics import prometheus_metrics


class AuditRepository:
    """Persist and query audit trail entries."""

    def __init__(self, db: Session):
        self.db = db

    def write(self, audit: AuditLog) -> AuditLog:
        """Persist a new audit row inside the active transaction."""
        self.db.add(audit)
        prometheus_metrics.record_audit_write(audit.resource_type, audit.action)
        self.db.flush()
        return audit

    def list_for_resource(
        self,
        resource_type: str,
        resource_id: str,
        *,
        event_type: Optional[str] = None,
        limit: int = 50,
    ) -> list[AuditLog]:
        """Audit rows for one resource, newest first."""
        conditions = [AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id]
        if event_type:
            conditions.append(AuditLog.event_type == event_type)

        stmt: Select[AuditLog] = (
            select(AuditLog).where(and_(*conditions)).order_by(AuditLog.occurred_at.desc())
        )
        return list(self.db.execute(stmt.limit(max(0, limit))).scalars().all())
