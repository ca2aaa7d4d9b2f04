# probook/models/notification.py
"""
Notification delivery persistence models.

One ``NotificationDelivery`` row exists per idempotency key; every attempt to
deliver the same logical message resolves to that row.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from probook.core.timezone_utils import utc_now
from probook.database import Base


class DeliveryStatus(str, Enum):
    QUEUED = "QUEUED"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationDelivery(Base):
    """Delivery record for one message on one channel to one recipient."""

    __tablename__ = "notification_deliveries"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    channel = Column(String(16), nullable=False)
    recipient_ref = Column(String(255), nullable=False)
    template_id = Column(String(64), nullable=False, index=True)
    payload = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=False,
        default=dict,
    )
    idempotency_key = Column(String(255), nullable=False)
    provider = Column(String(32), nullable=True)
    provider_message_id = Column(String(255), nullable=True)
    status = Column(String(16), nullable=False, default=DeliveryStatus.QUEUED.value, index=True)
    error = Column(Text, nullable=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )
    sent_at = Column(DateTime(timezone=True), nullable=True)
    failed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_notification_deliveries_idempotency_key"),
    )

    def register_attempt(self) -> None:
        self.attempt_count = (self.attempt_count or 0) + 1
        self.last_attempt_at = utc_now()

    def mark_sent(self, provider: str, provider_message_id: Optional[str]) -> None:
        """Mark the message as accepted by the channel provider."""
        self.status = DeliveryStatus.SENT.value
        self.provider = provider
        self.provider_message_id = provider_message_id
        self.error = None
        self.sent_at = utc_now()

    def mark_failed(self, error: str) -> None:
        """Record the failure; the row stays eligible for retry."""
        self.status = DeliveryStatus.FAILED.value
        self.error = error[:2000]
        self.failed_at = utc_now()


class PushSubscription(Base):
    """Browser push endpoint registered by a user."""

    __tablename__ = "push_subscriptions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, index=True)
    endpoint = Column(Text, nullable=False, unique=True)
    p256dh_key = Column(String(255), nullable=False)
    auth_key = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )
