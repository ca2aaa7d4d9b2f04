# probook/services/earning_service.py
"""
Provider earnings.

An earning is created once per completed booking from its captured payment:
the platform fee is taken off the gross amount and the rest becomes payable
to the provider after a cooling-off period.
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..core.config import settings
from ..core.enums import AuditEventType
from ..core.exceptions import EarningCreationError
from ..core.timezone_utils import utc_now
from ..models.booking import BookingStatus
from ..models.payment import Earning, EarningStatus, PaymentStatus
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.payment_repository import EarningRepository, PaymentRepository
from .audit_service import AuditService
from .base import BaseService


def split_platform_fee(gross_amount: int, fee_rate: float) -> tuple[int, int]:
    """
    Return ``(platform_fee, net)`` in minor units.

    The fee rounds half up so a 0.5 minor-unit fee goes to the platform.
    """
    fee = int((Decimal(gross_amount) * Decimal(str(fee_rate))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return fee, gross_amount - fee


class EarningService(BaseService):
    def __init__(
        self,
        db: Session,
        earnings: Optional[EarningRepository] = None,
        payments: Optional[PaymentRepository] = None,
        bookings: Optional[BookingRepository] = None,
        audit_service: Optional[AuditService] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(db)
        self.earnings = earnings or RepositoryFactory.create_earning_repository(db)
        self.payments = payments or RepositoryFactory.create_payment_repository(db)
        self.bookings = bookings or RepositoryFactory.create_booking_repository(db)
        self.audit_service = audit_service or AuditService(db)
        self.clock = clock

    @BaseService.measure_operation("create_earning_for_completed_booking")
    def create_earning_for_completed_booking(self, booking_id: str, actor: Actor) -> Earning:
        """
        Record the provider's earning for a completed booking.

        Idempotent: an existing earning for the booking is returned as is.

        Raises:
            EarningCreationError: booking not completed, or payment not captured
        """
        booking = self.bookings.get_by_id(booking_id)
        if booking is None:
            raise EarningCreationError(booking_id, "booking not found")
        if booking.status != BookingStatus.COMPLETED.value:
            raise EarningCreationError(booking_id, f"booking is {booking.status}, not COMPLETED")

        existing = self.earnings.find_by_booking_id(booking_id)
        if existing is not None:
            self.logger.info("Earning already exists for booking %s", booking_id)
            return existing

        payment = self.payments.find_by_booking_id(booking_id)
        if payment is None or payment.status != PaymentStatus.CAPTURED.value:
            raise EarningCreationError(booking_id, "payment is not captured")
        if not payment.amount_captured or payment.amount_captured <= 0:
            raise EarningCreationError(booking_id, "captured amount is missing")
        if not booking.provider_profile_id:
            raise EarningCreationError(booking_id, "booking has no provider")

        gross = int(payment.amount_captured)
        fee, net = split_platform_fee(gross, settings.platform_fee_rate)
        now = self.clock()

        earning = Earning(
            booking_id=booking_id,
            provider_profile_id=booking.provider_profile_id,
            client_user_id=booking.client_user_id,
            currency=payment.currency,
            gross_amount=gross,
            platform_fee_amount=fee,
            net_amount=net,
            status=EarningStatus.PENDING.value,
            available_at=now + timedelta(days=settings.earning_cooling_off_days),
        )
        with self.transaction():
            try:
                with self.db.begin_nested():
                    self.db.add(earning)
            except IntegrityError:
                # Concurrent completion inserted first
                winner = self.earnings.find_by_booking_id(booking_id)
                if winner is None:
                    raise
                self.logger.info("Earning for booking %s was created concurrently", booking_id)
                return winner
            self.audit_service.log_event(
                event_type=AuditEventType.EARNING_CREATED.value,
                actor=actor,
                resource_type="booking",
                resource_id=booking_id,
                action="create_earning",
                metadata={"gross": gross, "platform_fee": fee, "net": net, "currency": payment.currency},
            )

        self.logger.info(
            "Created earning for booking %s: gross=%s fee=%s net=%s %s",
            booking_id,
            gross,
            fee,
            net,
            payment.currency,
        )
        return earning

    @BaseService.measure_operation("mark_payable_if_due")
    def mark_payable_if_due(self, now: Optional[datetime] = None) -> int:
        """Move PENDING earnings past their cooling-off window to PAYABLE."""
        due = self.earnings.list_due_pending(now or self.clock())
        if not due:
            return 0
        with self.transaction():
            for earning in due:
                earning.status = EarningStatus.PAYABLE.value
        self.logger.info("Marked %d earnings payable", len(due))
        return len(due)
