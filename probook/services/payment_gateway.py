# probook/services/payment_gateway.py
"""
Payment gateways used to capture authorized payments at booking completion.

A gateway is resolved per payment by its ``provider`` name through a plain
factory callable, so tests pass a lambda returning a fake.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from sqlalchemy.orm import Session
import stripe

from probook.core.config import settings
from probook.core.exceptions import PaymentCaptureError
from probook.models.payment import Payment, PaymentStatus
from probook.repositories.factory import RepositoryFactory
from probook.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    def capture_payment(self, payment_id: str) -> Payment: ...


PaymentGatewayFactory = Callable[[str], PaymentGateway]


class StripePaymentGateway:
    """Captures Stripe PaymentIntents and records the captured amount."""

    provider_name = "stripe"

    def __init__(self, db: Session, payments: Optional[PaymentRepository] = None, api_key: Optional[str] = None):
        self.db = db
        self.payments = payments or RepositoryFactory.create_payment_repository(db)
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key.get_secret_value()

    def capture_payment(self, payment_id: str) -> Payment:
        payment = self.payments.get_by_id(payment_id)
        if payment is None:
            raise PaymentCaptureError(payment_id, "payment not found")
        if payment.status == PaymentStatus.CAPTURED.value:
            return payment
        if payment.status != PaymentStatus.AUTHORIZED.value:
            raise PaymentCaptureError(payment_id, f"payment is {payment.status}, not AUTHORIZED")
        if not payment.provider_payment_id:
            raise PaymentCaptureError(payment_id, "missing provider payment id")

        try:
            intent = stripe.PaymentIntent.capture(
                payment.provider_payment_id,
                api_key=self.api_key,
                idempotency_key=f"capture:{payment.id}",
            )
        except stripe.StripeError as exc:
            logger.error("Stripe capture failed for payment %s: %s", payment_id, exc)
            raise PaymentCaptureError(payment_id, str(exc)) from exc

        amount = intent.get("amount_received") or payment.amount_authorized or payment.amount_estimated
        payment.mark_captured(int(amount))
        self.db.commit()
        logger.info("Captured payment %s (%s) amount=%s", payment.id, payment.provider_payment_id, amount)
        return payment


def build_payment_gateway_factory(db: Session) -> PaymentGatewayFactory:
    """Return a factory resolving gateways by payment provider name."""

    def factory(provider: str) -> PaymentGateway:
        if provider == StripePaymentGateway.provider_name:
            return StripePaymentGateway(db)
        raise ValueError(f"Unsupported payment provider: {provider}")

    return factory
