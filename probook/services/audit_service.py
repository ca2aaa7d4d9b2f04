"""Service for writing audit trail entries for privileged booking actions."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from probook.core.actor import Actor
from probook.models.audit_log import AuditLog
from probook.repositories.audit_repository import AuditRepository
from probook.repositories.factory import RepositoryFactory


class AuditService:
    """
    Create audit log rows inside the caller's transaction.

    Nothing here commits; the audited change and its audit row succeed or
    fail together.
    """

    def __init__(self, db: Session, repository: Optional[AuditRepository] = None):
        self.db = db
        self.repository = repository or RepositoryFactory.create_audit_repository(db)

    def log_event(
        self,
        *,
        event_type: str,
        actor: Actor,
        resource_type: str,
        resource_id: str,
        action: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog.build(
            event_type=event_type,
            actor=actor,
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            metadata=_sanitize_metadata(metadata),
        )
        return self.repository.write(entry)

    def list_for_booking(self, booking_id: str, *, event_type: Optional[str] = None) -> list[AuditLog]:
        return self.repository.list_for_resource("booking", booking_id, event_type=event_type)


def _sanitize_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[dict[str, Any]]:
    if not metadata:
        return None
    return {key: _json_safe(value) for key, value in metadata.items()}


def _json_safe(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value
