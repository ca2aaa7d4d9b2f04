# probook/services/booking_notifier.py
"""
Booking notifications.

Resolves the recipient, renders the event template and hands the resulting
messages to the dispatcher. Runs after the booking change is committed, so a
failure here is logged and never reaches the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..core.enums import NotificationEvent, RecipientRole
from ..core.timezone_utils import ensure_utc, format_local_datetime
from ..models.booking import Booking
from ..models.profiles import ProviderProfile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.policy import build_notification_messages
from ..notifications.templates import render_template
from ..notifications.types import DeliveryResult, Recipient
from ..repositories.profile_repository import ProviderRepository
from .client_profile_service import ClientProfileService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


class BookingNotifier:
    def __init__(
        self,
        dispatcher: NotificationService,
        client_profiles: ClientProfileService,
        providers: ProviderRepository,
    ):
        self.dispatcher = dispatcher
        self.client_profiles = client_profiles
        self.providers = providers

    def notify_client(self, event: NotificationEvent, booking: Booking) -> List[DeliveryResult]:
        try:
            profile = self.client_profiles.get_by_user_id(booking.client_user_id)
            if profile is None:
                logger.warning("No client profile for user %s; skipping %s", booking.client_user_id, event.value)
                return []
            recipient = Recipient(
                role=RecipientRole.CLIENT,
                user_id=booking.client_user_id,
                email=profile.email,
                phone=profile.phone,
                prefers_whatsapp=profile.prefers_whatsapp,
                timezone=profile.timezone,
                display_name=profile.full_name or None,
            )
            provider = self._provider_for(booking)
            return self._dispatch(event, booking, recipient, provider)
        except Exception as exc:
            return self._contain(event, booking, exc)

    def notify_provider(self, event: NotificationEvent, booking: Booking) -> List[DeliveryResult]:
        try:
            provider = self._provider_for(booking)
            if provider is None:
                logger.warning("Booking %s has no provider; skipping %s", booking.id, event.value)
                return []
            recipient = Recipient(
                role=RecipientRole.PROVIDER,
                user_id=provider.user_id,
                email=provider.email,
                phone=provider.phone,
                display_name=provider.display_name,
            )
            return self._dispatch(event, booking, recipient, provider)
        except Exception as exc:
            return self._contain(event, booking, exc)

    def _provider_for(self, booking: Booking) -> Optional[ProviderProfile]:
        if not booking.provider_profile_id:
            return None
        return self.providers.get_by_id(booking.provider_profile_id)

    def _dispatch(
        self,
        event: NotificationEvent,
        booking: Booking,
        recipient: Recipient,
        provider: Optional[ProviderProfile],
    ) -> List[DeliveryResult]:
        payload = self._build_payload(event, booking, recipient, provider)
        messages = build_notification_messages(event, booking.id, recipient, payload)
        if not messages:
            logger.info("No reachable channel for %s on booking %s", event.value, booking.id)

        results: List[DeliveryResult] = []
        for message in messages:
            try:
                results.append(self.dispatcher.deliver_now(message))
            except Exception as exc:
                logger.error(
                    "Failed to send %s notification for booking %s: %s",
                    message.channel.value,
                    booking.id,
                    exc,
                )
                prometheus_metrics.record_side_effect_failure("notification")
        return results

    @staticmethod
    def _build_payload(
        event: NotificationEvent,
        booking: Booking,
        recipient: Recipient,
        provider: Optional[ProviderProfile],
    ) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "display_id": booking.display_id,
            "provider_name": provider.display_name if provider else None,
            "category": booking.category,
            "address": booking.address_text,
            "scheduled_local": format_local_datetime(booking.scheduled_at, recipient.timezone),
        }
        rendered = render_template(event, context)
        return {
            "booking_id": booking.id,
            "display_id": booking.display_id,
            "event": event.value,
            "scheduled_at": ensure_utc(booking.scheduled_at).isoformat(),
            **context,
            **rendered,
        }

    @staticmethod
    def _contain(event: NotificationEvent, booking: Booking, exc: Exception) -> List[DeliveryResult]:
        logger.error("Error sending %s notification for booking %s: %s", event.value, booking.id, exc)
        prometheus_metrics.record_side_effect_failure("notification")
        return []
