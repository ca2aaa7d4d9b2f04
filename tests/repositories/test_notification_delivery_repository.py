"""NotificationDeliveryRepository against SQLite."""

from datetime import datetime, timedelta, timezone

from probook.models.notification import DeliveryStatus, NotificationDelivery
from probook.repositories.notification_delivery_repository import NotificationDeliveryRepository


def _queue(repo, key, **overrides):
    values = dict(
        channel="EMAIL",
        recipient_ref="ana@example.com",
        template_id="booking.created",
        payload={"display_id": "A2223"},
        idempotency_key=key,
    )
    values.update(overrides)
    return repo.create_queued(**values)


class TestCreateQueued:
    def test_inserts_queued_row(self, db):
        repo = NotificationDeliveryRepository(db)

        row = _queue(repo, "booking.created:B1:ana@example.com:EMAIL")
        db.commit()

        assert row.status == DeliveryStatus.QUEUED.value
        assert row.attempt_count == 0
        assert row.payload == {"display_id": "A2223"}
        assert row.provider is None

    def test_same_key_returns_existing_row(self, db):
        repo = NotificationDeliveryRepository(db)
        key = "booking.created:B1:ana@example.com:EMAIL"

        first = _queue(repo, key)
        db.commit()
        second = _queue(repo, key, payload={"display_id": "CHANGED"})
        db.commit()

        assert second.id == first.id
        assert second.payload == {"display_id": "A2223"}
        assert db.query(NotificationDelivery).count() == 1

    def test_existing_status_is_preserved(self, db):
        repo = NotificationDeliveryRepository(db)
        key = "booking.created:B1:ana@example.com:EMAIL"
        row = _queue(repo, key)
        repo.mark_sent(row, provider="console", provider_message_id="m-1")
        db.commit()

        again = _queue(repo, key)

        assert again.status == DeliveryStatus.SENT.value


class TestAttemptBookkeeping:
    def test_increment_and_mark_failed(self, db):
        repo = NotificationDeliveryRepository(db)
        row = _queue(repo, "k1")

        repo.increment_attempt(row)
        repo.mark_failed(row, "TwilioRestException: " + "x" * 3000)
        db.commit()

        stored = repo.get_by_id(row.id)
        assert stored.attempt_count == 1
        assert stored.last_attempt_at is not None
        assert stored.status == DeliveryStatus.FAILED.value
        assert len(stored.error) == 2000
        assert stored.failed_at is not None

    def test_mark_sent_clears_error(self, db):
        repo = NotificationDeliveryRepository(db)
        row = _queue(repo, "k1")
        repo.mark_failed(row, "boom")

        repo.mark_sent(row, provider="twilio", provider_message_id="SM123")
        db.commit()

        assert row.status == DeliveryStatus.SENT.value
        assert row.error is None
        assert row.provider_message_id == "SM123"
        assert row.sent_at is not None


class TestListing:
    def test_list_queued_oldest_first_with_limit(self, db):
        repo = NotificationDeliveryRepository(db)
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        for key, minutes in (("k3", 3), ("k1", 1), ("k2", 2)):
            row = _queue(repo, key)
            row.created_at = base + timedelta(minutes=minutes)
        sent = _queue(repo, "k0")
        sent.created_at = base
        repo.mark_sent(sent, provider="console", provider_message_id=None)
        db.commit()

        queued = repo.list_queued(limit=2)

        assert [row.idempotency_key for row in queued] == ["k1", "k2"]

    def test_list_failed_respects_max_attempts(self, db):
        repo = NotificationDeliveryRepository(db)
        retryable = _queue(repo, "retry-me")
        exhausted = _queue(repo, "give-up")
        for row, attempts in ((retryable, 2), (exhausted, 5)):
            row.attempt_count = attempts
            repo.mark_failed(row, "boom")
        db.commit()

        failed = repo.list_failed(limit=10, max_attempts=5)

        assert [row.idempotency_key for row in failed] == ["retry-me"]
