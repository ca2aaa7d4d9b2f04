# probook/repositories/notification_delivery_repository.py
"""
Repository for notification delivery tracking.

Rows are keyed by idempotency key. ``create_queued`` is an
insert-or-ignore so two concurrent enqueues of the same key both resolve to
the row that won the insert.
"""

from __future__ import annotations

from typing import Any, List, Optional, cast

from sqlalchemy import Select, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import ulid

from probook.core.timezone_utils import utc_now
from probook.database import get_dialect_name
from probook.models.notification import DeliveryStatus, NotificationDelivery


class NotificationDeliveryRepository:
    """Data access helper for notification_deliveries rows."""

    def __init__(self, db: Session):
        self.db = db
        self._dialect = get_dialect_name(db, default="postgresql").lower()

    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[NotificationDelivery]:
        stmt: Select[Any] = select(NotificationDelivery).where(
            NotificationDelivery.idempotency_key == idempotency_key
        )
        result = self.db.execute(stmt)
        return cast(Optional[NotificationDelivery], result.scalar_one_or_none())

    def get_by_id(self, delivery_id: str) -> Optional[NotificationDelivery]:
        return self.db.get(NotificationDelivery, delivery_id)

    def create_queued(
        self,
        *,
        channel: str,
        recipient_ref: str,
        template_id: str,
        payload: Optional[dict[str, Any]],
        idempotency_key: str,
    ) -> NotificationDelivery:
        """
        Insert a QUEUED row unless the key already exists.

        Returns the stored row for the key either way.
        """
        values = {
            "id": str(ulid.ULID()),
            "channel": channel,
            "recipient_ref": recipient_ref,
            "template_id": template_id,
            "payload": payload or {},
            "idempotency_key": idempotency_key,
            "status": DeliveryStatus.QUEUED.value,
            "attempt_count": 0,
            "created_at": utc_now(),
        }

        if self._dialect in ("postgresql", "sqlite"):
            insert_fn = pg_insert if self._dialect == "postgresql" else sqlite_insert
            stmt = (
                insert_fn(NotificationDelivery)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["idempotency_key"])
            )
            self.db.execute(stmt)
            self.db.flush()
        else:
            # Generic fallback: savepoint insert, ignore duplicate key
            try:
                with self.db.begin_nested():
                    self.db.add(NotificationDelivery(**values))
            except IntegrityError:
                pass

        row = self.find_by_idempotency_key(idempotency_key)
        if row is None:
            raise RuntimeError("Failed to load notification delivery after insert")
        return row

    def increment_attempt(self, delivery: NotificationDelivery) -> NotificationDelivery:
        delivery.register_attempt()
        self.db.flush()
        return delivery

    def mark_sent(
        self,
        delivery: NotificationDelivery,
        *,
        provider: str,
        provider_message_id: Optional[str],
    ) -> NotificationDelivery:
        delivery.mark_sent(provider, provider_message_id)
        self.db.flush()
        return delivery

    def mark_failed(self, delivery: NotificationDelivery, error: str) -> NotificationDelivery:
        delivery.mark_failed(error)
        self.db.flush()
        return delivery

    def list_queued(self, limit: int) -> List[NotificationDelivery]:
        """Oldest QUEUED rows first."""
        stmt = (
            select(NotificationDelivery)
            .where(NotificationDelivery.status == DeliveryStatus.QUEUED.value)
            .order_by(NotificationDelivery.created_at.asc(), NotificationDelivery.id.asc())
            .limit(max(limit, 0))
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_failed(self, limit: int, max_attempts: int) -> List[NotificationDelivery]:
        """Oldest FAILED rows that still have attempts left."""
        stmt = (
            select(NotificationDelivery)
            .where(
                NotificationDelivery.status == DeliveryStatus.FAILED.value,
                NotificationDelivery.attempt_count < max_attempts,
            )
            .order_by(NotificationDelivery.created_at.asc(), NotificationDelivery.id.asc())
            .limit(max(limit, 0))
        )
        return list(self.db.execute(stmt).scalars().all())
