# probook/services/notification_service.py
"""
Notification dispatcher.

Persists every message as a ``notification_deliveries`` row keyed by its
idempotency key before any provider is called, then records the outcome on
that row. Provider failures are recorded, never raised, so callers can send
notifications as fire-and-forget side effects.
"""

from __future__ import annotations

import time
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from ..models.notification import DeliveryStatus, NotificationDelivery
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.providers import ProviderRegistry
from ..notifications.types import DeliveryResult, DrainResult, NotificationMessage
from ..repositories.notification_delivery_repository import NotificationDeliveryRepository
from .base import BaseService


class NotificationService(BaseService):
    """Enqueue, deliver, drain and retry notification deliveries."""

    def __init__(
        self,
        db: Session,
        providers: ProviderRegistry,
        delivery_repository: Optional[NotificationDeliveryRepository] = None,
        max_attempts: Optional[int] = None,
    ):
        super().__init__(db)
        self.providers = providers
        self.repository = delivery_repository or NotificationDeliveryRepository(db)
        self.max_attempts = max_attempts or settings.notification_max_attempts

    @BaseService.measure_operation("enqueue")
    def enqueue(self, message: NotificationMessage) -> NotificationDelivery:
        """
        Store ``message`` as QUEUED unless its key is already known.

        Returns the row for the key, whatever its status.
        """
        existing = self.repository.find_by_idempotency_key(message.idempotency_key)
        if existing is not None:
            self.logger.debug("Delivery %s already exists (%s)", message.idempotency_key, existing.status)
            return existing

        with self.transaction():
            delivery = self.repository.create_queued(
                channel=message.channel.value,
                recipient_ref=message.recipient_ref,
                template_id=message.template_id,
                payload=message.payload,
                idempotency_key=message.idempotency_key,
            )
        return delivery

    @BaseService.measure_operation("deliver_now")
    def deliver_now(self, message: NotificationMessage) -> DeliveryResult:
        """
        Enqueue then send immediately.

        A key that was already SENT is returned untouched without calling the
        provider again. Provider and bookkeeping errors after the enqueue come
        back as a FAILED result instead of being raised.
        """
        delivery = self.enqueue(message)
        if delivery.status == DeliveryStatus.SENT.value:
            self.logger.info("Skipping %s: already sent", message.idempotency_key)
            return DeliveryResult.from_delivery(delivery, already_sent=True)
        return self._attempt(delivery)

    @BaseService.measure_operation("drain_queued")
    def drain_queued(self, limit: Optional[int] = None) -> DrainResult:
        """Deliver up to ``limit`` QUEUED rows, oldest first. A limit below 1 is a no-op."""
        batch_size = self._batch_size(limit)
        if not batch_size:
            return DrainResult()
        return self._process(self.repository.list_queued(batch_size))

    @BaseService.measure_operation("retry_failed")
    def retry_failed(self, limit: Optional[int] = None) -> DrainResult:
        """Re-attempt FAILED rows that have attempts left."""
        batch_size = self._batch_size(limit)
        if not batch_size:
            return DrainResult()
        return self._process(self.repository.list_failed(batch_size, self.max_attempts))

    @staticmethod
    def _batch_size(limit: Optional[int]) -> int:
        # sqlite reads a negative LIMIT as "no limit"
        size = settings.notification_drain_batch_size if limit is None else limit
        return max(size, 0)

    def _process(self, deliveries: list[NotificationDelivery]) -> DrainResult:
        sent = failed = 0
        for delivery in deliveries:
            result = self._attempt(delivery)
            if result.sent:
                sent += 1
            else:
                failed += 1
        if deliveries:
            self.logger.info(
                "Processed %d deliveries: %d sent, %d failed", len(deliveries), sent, failed
            )
        return DrainResult(processed=len(deliveries), sent=sent, failed=failed)

    def _attempt(self, delivery: NotificationDelivery) -> DeliveryResult:
        """Send one row; bookkeeping failures are reported as a FAILED result."""
        delivery_id, key = delivery.id, delivery.idempotency_key
        attempts = (delivery.attempt_count or 0) + 1
        try:
            return self._send(delivery)
        except ServiceException as exc:
            self.logger.error("Could not record delivery %s: %s", key, exc.message)
            prometheus_metrics.record_side_effect_failure("notification")
            return DeliveryResult(
                delivery_id=delivery_id,
                idempotency_key=key,
                status=DeliveryStatus.FAILED,
                attempt_count=attempts,
                error=exc.message,
            )

    def _send(self, delivery: NotificationDelivery) -> DeliveryResult:
        with self.transaction():
            self.repository.increment_attempt(delivery)

        message = NotificationMessage.from_delivery(delivery)
        start = time.monotonic()
        try:
            provider = self.providers.get(message.channel)
            outcome = provider.send(message)
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            self.logger.warning(
                "Delivery %s on %s failed (attempt %d): %s",
                delivery.idempotency_key,
                delivery.channel,
                delivery.attempt_count,
                error,
            )
            with self.transaction():
                self.repository.mark_failed(delivery, error)
            prometheus_metrics.record_notification_delivery(
                delivery.channel, DeliveryStatus.FAILED.value, time.monotonic() - start
            )
            return DeliveryResult.from_delivery(delivery)

        with self.transaction():
            self.repository.mark_sent(
                delivery,
                provider=outcome.provider,
                provider_message_id=outcome.provider_message_id,
            )
        prometheus_metrics.record_notification_delivery(
            delivery.channel, DeliveryStatus.SENT.value, time.monotonic() - start
        )
        self.logger.info(
            "Delivered %s via %s (%s)", delivery.idempotency_key, outcome.provider, outcome.provider_message_id
        )
        return DeliveryResult.from_delivery(delivery)
