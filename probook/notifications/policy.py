"""
Notification channel policy.

A static table maps recipient role to a primary channel and an optional
secondary channel. The secondary channel is only used for events important
enough to interrupt someone, and only when the recipient can receive it.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from probook.core.enums import NotificationChannel, NotificationEvent, RecipientRole

from .types import NotificationMessage, Recipient

logger = logging.getLogger(__name__)

IMPORTANT_EVENTS: FrozenSet[NotificationEvent] = frozenset(
    {
        NotificationEvent.BOOKING_ACCEPTED,
        NotificationEvent.BOOKING_REJECTED,
        NotificationEvent.BOOKING_ON_MY_WAY,
        NotificationEvent.BOOKING_ARRIVED,
        NotificationEvent.BOOKING_COMPLETED,
        NotificationEvent.PAYMENT_REQUIRED,
    }
)


@dataclass(frozen=True)
class ChannelRule:
    channel: NotificationChannel
    important_only: bool = False
    requires_whatsapp_preference: bool = False


ROLE_CHANNELS: Mapping[RecipientRole, Tuple[ChannelRule, ...]] = {
    RecipientRole.CLIENT: (
        ChannelRule(NotificationChannel.EMAIL),
        ChannelRule(
            NotificationChannel.WHATSAPP,
            important_only=True,
            requires_whatsapp_preference=True,
        ),
    ),
    RecipientRole.PROVIDER: (
        ChannelRule(NotificationChannel.PUSH),
        ChannelRule(NotificationChannel.WHATSAPP, important_only=True),
    ),
}


def is_important(event: NotificationEvent | str) -> bool:
    return NotificationEvent(event) in IMPORTANT_EVENTS


def recipient_ref_for(channel: NotificationChannel, recipient: Recipient) -> Optional[str]:
    if channel == NotificationChannel.EMAIL:
        return recipient.email
    if channel == NotificationChannel.WHATSAPP:
        return recipient.phone
    return recipient.user_id


def select_channels(
    event: NotificationEvent | str, recipient: Recipient
) -> List[Tuple[NotificationChannel, str]]:
    """
    Channels (with their recipient refs) to use for ``event``.

    Channels whose address is missing are skipped.
    """
    important = is_important(event)
    selected: List[Tuple[NotificationChannel, str]] = []
    for rule in ROLE_CHANNELS[recipient.role]:
        if rule.important_only and not important:
            continue
        if rule.requires_whatsapp_preference and not recipient.prefers_whatsapp:
            continue
        ref = recipient_ref_for(rule.channel, recipient)
        if not ref:
            logger.debug(
                "Skipping %s for %s user %s: no address", rule.channel.value, recipient.role.value, recipient.user_id
            )
            continue
        selected.append((rule.channel, ref))
    return selected


def build_idempotency_key(
    event: NotificationEvent | str,
    booking_id: str,
    recipient_ref: str,
    channel: NotificationChannel | str,
) -> str:
    """``"{event}:{booking_id}:{recipient_ref}:{channel}"``"""
    return (
        f"{NotificationEvent(event).value}:{booking_id}:{recipient_ref}:"
        f"{NotificationChannel(channel).value}"
    )


def build_notification_messages(
    event: NotificationEvent | str,
    booking_id: str,
    recipient: Recipient,
    payload: Optional[Mapping[str, Any]] = None,
) -> List[NotificationMessage]:
    base: Dict[str, Any] = dict(payload or {})
    base.setdefault("event", NotificationEvent(event).value)
    base.setdefault("booking_id", booking_id)
    return [
        NotificationMessage(
            channel=channel,
            recipient_ref=ref,
            template_id=NotificationEvent(event).value,
            idempotency_key=build_idempotency_key(event, booking_id, ref, channel),
            payload=base,
        )
        for channel, ref in select_channels(event, recipient)
    ]
