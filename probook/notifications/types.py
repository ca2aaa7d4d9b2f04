"""Value types exchanged between the dispatcher, the policy table and channel providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from probook.core.enums import NotificationChannel, RecipientRole
from probook.models.notification import DeliveryStatus

if TYPE_CHECKING:
    from probook.models.notification import NotificationDelivery


@dataclass(frozen=True)
class NotificationMessage:
    """
    One logical message for one recipient on one channel.

    ``recipient_ref`` depends on the channel: an email address for EMAIL, an
    E.164 phone number for WHATSAPP, a user id for PUSH.
    """

    channel: NotificationChannel
    recipient_ref: str
    template_id: str
    idempotency_key: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_delivery(cls, delivery: "NotificationDelivery") -> "NotificationMessage":
        return cls(
            channel=NotificationChannel(delivery.channel),
            recipient_ref=delivery.recipient_ref,
            template_id=delivery.template_id,
            idempotency_key=delivery.idempotency_key,
            payload=dict(delivery.payload or {}),
        )


@dataclass(frozen=True)
class Recipient:
    """Contact details the channel policy needs to pick channels."""

    role: RecipientRole
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    prefers_whatsapp: bool = False
    timezone: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class ProviderSendResult:
    provider: str
    provider_message_id: Optional[str] = None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one ``deliver_now`` call."""

    delivery_id: str
    idempotency_key: str
    status: DeliveryStatus
    attempt_count: int
    error: Optional[str] = None
    already_sent: bool = False

    @classmethod
    def from_delivery(
        cls, delivery: "NotificationDelivery", *, already_sent: bool = False
    ) -> "DeliveryResult":
        return cls(
            delivery_id=delivery.id,
            idempotency_key=delivery.idempotency_key,
            status=DeliveryStatus(delivery.status),
            attempt_count=delivery.attempt_count or 0,
            error=delivery.error,
            already_sent=already_sent,
        )

    @property
    def sent(self) -> bool:
        return self.status == DeliveryStatus.SENT


@dataclass(frozen=True)
class DrainResult:
    processed: int = 0
    sent: int = 0
    failed: int = 0
