# probook/services/payment_capture_service.py
"""
Post-completion payment settlement.

Runs after a booking's COMPLETED status is committed. Every failure is
logged with the booking and payment ids and returned as a value so the
booking stays completed and the money side can be reconciled later.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..models.booking import Booking
from ..models.payment import Payment, PaymentStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.payment_repository import PaymentRepository
from .earning_service import EarningService
from .payment_gateway import PaymentGatewayFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SideEffectOutcome:
    step: str
    ok: bool
    error: Optional[str] = None
    skipped: bool = False

    @classmethod
    def failure(cls, step: str, exc: BaseException) -> "SideEffectOutcome":
        return cls(step=step, ok=False, error=f"{type(exc).__name__}: {exc}")


class PaymentCaptureCoordinator:
    """Captures an authorized payment and records the provider's earning."""

    def __init__(
        self,
        db: Session,
        payments: PaymentRepository,
        gateway_factory: PaymentGatewayFactory,
        earning_service: EarningService,
    ):
        self.db = db
        self.payments = payments
        self.gateway_factory = gateway_factory
        self.earning_service = earning_service

    def settle_completed_booking(self, booking: Booking) -> List[SideEffectOutcome]:
        try:
            payment = self.payments.find_by_booking_id(booking.id)
        except Exception as exc:
            return [self._contain("payment_lookup", booking, None, exc)]

        if payment is None:
            logger.info("No payment recorded for booking %s; nothing to capture", booking.id)
            return [SideEffectOutcome(step="capture", ok=True, skipped=True)]

        outcomes: List[SideEffectOutcome] = []
        if payment.status == PaymentStatus.AUTHORIZED.value:
            try:
                self.gateway_factory(payment.provider).capture_payment(payment.id)
            except Exception as exc:
                outcomes.append(self._contain("capture", booking, payment, exc))
                return outcomes
            outcomes.append(SideEffectOutcome(step="capture", ok=True))
            outcomes.append(self._record_earning(booking, payment))
        elif payment.status == PaymentStatus.CAPTURED.value:
            outcomes.append(self._record_earning(booking, payment))
        else:
            logger.warning(
                "Payment %s for completed booking %s is %s; skipping capture",
                payment.id,
                booking.id,
                payment.status,
            )
            outcomes.append(SideEffectOutcome(step="capture", ok=True, skipped=True))
        return outcomes

    def _record_earning(self, booking: Booking, payment: Payment) -> SideEffectOutcome:
        try:
            self.earning_service.create_earning_for_completed_booking(booking.id, Actor.system())
        except Exception as exc:
            return self._contain("earnings", booking, payment, exc)
        return SideEffectOutcome(step="earnings", ok=True)

    def _contain(
        self,
        step: str,
        booking: Booking,
        payment: Optional[Payment],
        exc: Exception,
    ) -> SideEffectOutcome:
        logger.error(
            "Post-completion %s failed for booking %s (payment %s): %s",
            step,
            booking.id,
            payment.id if payment is not None else None,
            exc,
            exc_info=True,
        )
        prometheus_metrics.record_side_effect_failure(step)
        # The booking is already committed; drop whatever this step left pending.
        self.db.rollback()
        return SideEffectOutcome.failure(step, exc)
