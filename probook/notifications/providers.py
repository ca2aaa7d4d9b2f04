"""
Channel providers.

Each provider sends one ``NotificationMessage`` and either returns a
``ProviderSendResult`` or raises. Delivery bookkeeping is the dispatcher's
job; providers never touch ``notification_deliveries``.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Mapping, Optional, Protocol

from pywebpush import WebPushException, webpush
import resend
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client
import ulid

from probook.core.config import Settings, settings as default_settings
from probook.core.enums import NotificationChannel
from probook.core.exceptions import ChannelNotConfigured, NoActiveRecipientEndpoints
from probook.repositories.push_subscription_repository import PushSubscriptionRepository

from .types import NotificationMessage, ProviderSendResult

logger = logging.getLogger(__name__)


class NotificationProvider(Protocol):
    name: str

    def send(self, message: NotificationMessage) -> ProviderSendResult: ...


class ConsoleEmailProvider:
    """Logs email instead of sending it; used in development and tests."""

    name = "console"

    def send(self, message: NotificationMessage) -> ProviderSendResult:
        logger.info(
            "[console-email] to=%s subject=%s key=%s\n%s",
            message.recipient_ref,
            message.payload.get("subject"),
            message.idempotency_key,
            message.payload.get("text", ""),
        )
        return ProviderSendResult(provider=self.name, provider_message_id=f"console-{ulid.ULID()}")


class ResendEmailProvider:
    name = "resend"

    def __init__(self, api_key: str, from_email: str):
        if not api_key:
            raise ValueError("Resend API key is required for the resend email provider")
        resend.api_key = api_key
        self.from_email = from_email

    def send(self, message: NotificationMessage) -> ProviderSendResult:
        text = message.payload.get("text") or ""
        email_data = {
            "from": self.from_email,
            "to": message.recipient_ref,
            "subject": message.payload.get("subject") or message.template_id,
            "html": message.payload.get("html") or text,
            "text": text,
            "headers": {"X-Entity-Ref-ID": message.idempotency_key},
        }
        response = resend.Emails.send(email_data)
        message_id = response.get("id") if isinstance(response, Mapping) else getattr(response, "id", None)
        logger.info("Email sent to %s (%s), id=%s", message.recipient_ref, message.template_id, message_id)
        return ProviderSendResult(provider=self.name, provider_message_id=message_id)


class TwilioWhatsAppProvider:
    name = "twilio"

    def __init__(self, account_sid: str, auth_token: str, from_number: str, client: Optional[Client] = None):
        self.client = client or Client(account_sid, auth_token)
        self.from_number = from_number

    @staticmethod
    def _whatsapp_address(number: str) -> str:
        return number if number.startswith("whatsapp:") else f"whatsapp:{number}"

    def send(self, message: NotificationMessage) -> ProviderSendResult:
        body = message.payload.get("text") or message.payload.get("subject") or message.template_id
        try:
            twilio_message = self.client.messages.create(
                from_=self._whatsapp_address(self.from_number),
                to=self._whatsapp_address(message.recipient_ref),
                body=body,
            )
        except TwilioRestException as exc:
            logger.warning(
                "Twilio rejected WhatsApp message to %s: code=%s msg=%s",
                message.recipient_ref,
                getattr(exc, "code", None),
                getattr(exc, "msg", str(exc)),
            )
            raise
        logger.info("WhatsApp sent to %s, SID: %s", message.recipient_ref, twilio_message.sid)
        return ProviderSendResult(provider=self.name, provider_message_id=twilio_message.sid)


class WebPushProvider:
    """
    Sends to every active push subscription of the recipient user.

    Expired endpoints (404/410) are deactivated. The send counts as
    delivered when at least one endpoint accepted it.
    """

    name = "webpush"

    def __init__(
        self,
        subscriptions: PushSubscriptionRepository,
        vapid_private_key: str,
        vapid_claims_email: str,
    ):
        self.subscriptions = subscriptions
        self.vapid_private_key = vapid_private_key
        self.vapid_claims_email = vapid_claims_email

    def send(self, message: NotificationMessage) -> ProviderSendResult:
        user_id = message.recipient_ref
        active = self.subscriptions.list_active_for_user(user_id)
        if not active:
            raise NoActiveRecipientEndpoints(user_id)

        data = json.dumps(
            {
                "title": message.payload.get("subject") or message.template_id,
                "body": message.payload.get("text", ""),
                "data": {
                    "booking_id": message.payload.get("booking_id"),
                    "event": message.template_id,
                },
            }
        )

        delivered = 0
        last_error: Optional[WebPushException] = None
        for subscription in active:
            try:
                webpush(
                    subscription_info={
                        "endpoint": subscription.endpoint,
                        "keys": {
                            "p256dh": subscription.p256dh_key,
                            "auth": subscription.auth_key,
                        },
                    },
                    data=data,
                    vapid_private_key=self.vapid_private_key,
                    vapid_claims={"sub": self.vapid_claims_email},
                )
                delivered += 1
            except WebPushException as exc:
                status_code = getattr(getattr(exc, "response", None), "status_code", None)
                if status_code in (404, 410):
                    logger.info(
                        "Push subscription expired; deactivating endpoint=%s user_id=%s",
                        subscription.endpoint,
                        user_id,
                    )
                    self.subscriptions.deactivate_endpoint(subscription.endpoint)
                else:
                    logger.error("Push send failed for user %s: %s", user_id, exc)
                last_error = exc

        if delivered == 0:
            if last_error is None:
                raise NoActiveRecipientEndpoints(user_id)
            raise last_error

        return ProviderSendResult(provider=self.name, provider_message_id=f"{delivered}/{len(active)}")


class ProviderRegistry:
    """Channel to provider lookup."""

    def __init__(self, providers: Optional[Mapping[NotificationChannel, NotificationProvider]] = None):
        self._providers: Dict[NotificationChannel, NotificationProvider] = dict(providers or {})

    def register(self, channel: NotificationChannel, provider: NotificationProvider) -> None:
        self._providers[channel] = provider

    def get(self, channel: NotificationChannel | str) -> NotificationProvider:
        provider = self._providers.get(NotificationChannel(channel))
        if provider is None:
            raise ChannelNotConfigured(NotificationChannel(channel).value)
        return provider

    def channels(self) -> list[NotificationChannel]:
        return list(self._providers)


def build_provider_registry(
    subscriptions: PushSubscriptionRepository,
    config: Optional[Settings] = None,
) -> ProviderRegistry:
    """
    Registry for the configured channels.

    WhatsApp is only registered when Twilio credentials are present; sends on
    an unregistered channel fail the delivery instead of raising.
    """
    cfg = config or default_settings
    registry = ProviderRegistry()

    if cfg.email_provider == "resend":
        registry.register(
            NotificationChannel.EMAIL,
            ResendEmailProvider(cfg.resend_api_key.get_secret_value(), cfg.email_from),
        )
    else:
        registry.register(NotificationChannel.EMAIL, ConsoleEmailProvider())

    if cfg.twilio_configured:
        registry.register(
            NotificationChannel.WHATSAPP,
            TwilioWhatsAppProvider(
                cfg.twilio_account_sid or "",
                cfg.twilio_auth_token.get_secret_value() if cfg.twilio_auth_token else "",
                cfg.twilio_whatsapp_from_number or "",
            ),
        )
    else:
        logger.info("Twilio not configured; WHATSAPP deliveries will fail until it is")

    vapid_key = cfg.vapid_private_key.get_secret_value().strip()
    if vapid_key:
        registry.register(
            NotificationChannel.PUSH,
            WebPushProvider(subscriptions, vapid_key, cfg.vapid_claims_email),
        )
    else:
        logger.info("VAPID key not configured; PUSH deliveries will fail until it is")

    return registry
