# probook/models/audit_log.py
"""
Audit trail rows for privileged booking actions (admin overrides, earnings).

Rows are written inside the transaction of the change they describe.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from probook.core.actor import Actor
from probook.core.timezone_utils import utc_now
from probook.database import Base

PayloadType = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")


class AuditLog(Base):
    __tablename__ = "booking_audit_entries"
    __table_args__ = (Index("ix_booking_audit_resource", "resource_type", "resource_id"),)

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    event_type = Column(String(64), nullable=False, index=True)
    resource_type = Column(String(32), nullable=False)
    resource_id = Column(String(26), nullable=False)
    action = Column(String(32), nullable=False)
    actor_id = Column(String(26), nullable=True)
    actor_role = Column(String(16), nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    # declarative reserves the ``metadata`` attribute name
    event_metadata = Column("metadata", PayloadType, nullable=True)

    @classmethod
    def build(
        cls,
        *,
        event_type: str,
        actor: Actor,
        resource_type: str,
        resource_id: str,
        action: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> AuditLog:
        return cls(
            event_type=event_type,
            actor_id=actor.id,
            actor_role=actor.role.value,
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            event_metadata=dict(metadata) if metadata else None,
        )

    def __repr__(self) -> str:
        return f"<AuditLog {self.event_type} {self.resource_type}:{self.resource_id}>"
