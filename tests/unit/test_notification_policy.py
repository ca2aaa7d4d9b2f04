"""Channel selection and idempotency keys."""

import pytest

from probook.core.enums import NotificationChannel, NotificationEvent, RecipientRole
from probook.notifications.policy import (
    build_idempotency_key,
    build_notification_messages,
    is_important,
    select_channels,
)
from probook.notifications.types import Recipient

EMAIL = NotificationChannel.EMAIL
WHATSAPP = NotificationChannel.WHATSAPP
PUSH = NotificationChannel.PUSH


def client(**overrides):
    values = dict(
        role=RecipientRole.CLIENT,
        user_id="client-1",
        email="ana@example.com",
        phone="+59899333444",
        prefers_whatsapp=False,
    )
    values.update(overrides)
    return Recipient(**values)


def provider(**overrides):
    values = dict(
        role=RecipientRole.PROVIDER,
        user_id="provider-user-1",
        email="juan@example.com",
        phone="+59899111222",
    )
    values.update(overrides)
    return Recipient(**values)


class TestImportance:
    @pytest.mark.parametrize(
        "event",
        [
            NotificationEvent.BOOKING_ACCEPTED,
            NotificationEvent.BOOKING_REJECTED,
            NotificationEvent.BOOKING_ON_MY_WAY,
            NotificationEvent.BOOKING_ARRIVED,
            NotificationEvent.BOOKING_COMPLETED,
            NotificationEvent.PAYMENT_REQUIRED,
        ],
    )
    def test_important(self, event):
        assert is_important(event)

    @pytest.mark.parametrize(
        "event",
        [
            NotificationEvent.BOOKING_CREATED,
            NotificationEvent.BOOKING_CANCELLED,
            NotificationEvent.PAYMENT_AUTHORIZED,
            NotificationEvent.REVIEW_RECEIVED,
        ],
    )
    def test_not_important(self, event):
        assert not is_important(event)


class TestClientChannels:
    def test_email_only_without_whatsapp_preference(self):
        channels = select_channels(NotificationEvent.BOOKING_ACCEPTED, client())
        assert channels == [(EMAIL, "ana@example.com")]

    def test_whatsapp_added_for_important_event(self):
        channels = select_channels(NotificationEvent.BOOKING_ACCEPTED, client(prefers_whatsapp=True))
        assert channels == [(EMAIL, "ana@example.com"), (WHATSAPP, "+59899333444")]

    def test_whatsapp_not_added_for_routine_event(self):
        channels = select_channels(NotificationEvent.BOOKING_CREATED, client(prefers_whatsapp=True))
        assert channels == [(EMAIL, "ana@example.com")]

    def test_missing_email_skips_channel(self):
        assert select_channels(NotificationEvent.BOOKING_CREATED, client(email=None)) == []

    def test_missing_phone_skips_whatsapp(self):
        recipient = client(prefers_whatsapp=True, phone=None)
        channels = select_channels(NotificationEvent.BOOKING_COMPLETED, recipient)
        assert channels == [(EMAIL, "ana@example.com")]


class TestProviderChannels:
    def test_push_addressed_by_user_id(self):
        channels = select_channels(NotificationEvent.PAYMENT_AUTHORIZED, provider())
        assert channels == [(PUSH, "provider-user-1")]

    def test_whatsapp_for_important_event_without_preference(self):
        channels = select_channels(NotificationEvent.BOOKING_COMPLETED, provider())
        assert channels == [(PUSH, "provider-user-1"), (WHATSAPP, "+59899111222")]

    def test_no_phone_means_push_only(self):
        channels = select_channels(NotificationEvent.BOOKING_COMPLETED, provider(phone=None))
        assert channels == [(PUSH, "provider-user-1")]


class TestMessages:
    def test_idempotency_key_format(self):
        key = build_idempotency_key(NotificationEvent.BOOKING_ACCEPTED, "B1", "ana@example.com", EMAIL)
        assert key == "booking.accepted:B1:ana@example.com:EMAIL"

    def test_one_message_per_channel(self):
        messages = build_notification_messages(
            NotificationEvent.BOOKING_ARRIVED,
            "B1",
            client(prefers_whatsapp=True),
            {"display_id": "A2223"},
        )

        assert [m.channel for m in messages] == [EMAIL, WHATSAPP]
        assert {m.idempotency_key for m in messages} == {
            "booking.arrived:B1:ana@example.com:EMAIL",
            "booking.arrived:B1:+59899333444:WHATSAPP",
        }
        for message in messages:
            assert message.template_id == "booking.arrived"
            assert message.payload["display_id"] == "A2223"
            assert message.payload["booking_id"] == "B1"
            assert message.payload["event"] == "booking.arrived"

    def test_keys_stable_across_calls(self):
        first = build_notification_messages(NotificationEvent.BOOKING_CREATED, "B1", client())
        second = build_notification_messages(NotificationEvent.BOOKING_CREATED, "B1", client())
        assert [m.idempotency_key for m in first] == [m.idempotency_key for m in second]
