"""Post-completion settlement keeps the booking completed whatever happens."""

from unittest.mock import MagicMock

import pytest

from probook.core.exceptions import PaymentCaptureError
from probook.models.booking import Booking, BookingStatus
from probook.models.payment import Earning, PaymentStatus
from probook.repositories.payment_repository import PaymentRepository
from probook.services.earning_service import EarningService
from probook.services.payment_capture_service import PaymentCaptureCoordinator
from tests.factories import FakeGateway, create_booking, create_payment, create_provider, new_id


@pytest.fixture
def completed_booking(db):
    return create_booking(db, create_provider(db), new_id(), status=BookingStatus.COMPLETED)


def make_coordinator(db, gateway, clock):
    return PaymentCaptureCoordinator(
        db,
        PaymentRepository(db),
        lambda provider: gateway,
        EarningService(db, clock=clock),
    )


class TestSettleCompletedBooking:
    def test_captures_then_records_earning(self, db, clock, completed_booking):
        payment = create_payment(db, completed_booking, amount=160000)
        gateway = FakeGateway(db)

        outcomes = make_coordinator(db, gateway, clock).settle_completed_booking(completed_booking)

        assert [(o.step, o.ok) for o in outcomes] == [("capture", True), ("earnings", True)]
        assert gateway.captured == [payment.id]
        assert db.query(Earning).one().gross_amount == 160000

    def test_already_captured_skips_gateway(self, db, clock, completed_booking):
        create_payment(db, completed_booking, status=PaymentStatus.CAPTURED, captured=5000)
        gateway = FakeGateway(db)

        outcomes = make_coordinator(db, gateway, clock).settle_completed_booking(completed_booking)

        assert [(o.step, o.ok) for o in outcomes] == [("earnings", True)]
        assert gateway.captured == []
        assert db.query(Earning).count() == 1

    def test_capture_failure_is_contained(self, db, clock, completed_booking):
        payment = create_payment(db, completed_booking)
        gateway = FakeGateway(db, error=PaymentCaptureError(payment.id, "card_declined"))

        outcomes = make_coordinator(db, gateway, clock).settle_completed_booking(completed_booking)

        assert len(outcomes) == 1
        assert outcomes[0].step == "capture"
        assert not outcomes[0].ok
        assert "card_declined" in outcomes[0].error
        assert db.get(Booking, completed_booking.id).status == BookingStatus.COMPLETED.value
        assert db.query(Earning).count() == 0

    def test_earning_failure_is_contained(self, db, clock, completed_booking):
        create_payment(db, completed_booking, status=PaymentStatus.CAPTURED, captured=5000)
        earning_service = MagicMock(spec=EarningService)
        earning_service.create_earning_for_completed_booking.side_effect = RuntimeError("db gone")
        coordinator = PaymentCaptureCoordinator(
            db, PaymentRepository(db), lambda provider: FakeGateway(db), earning_service
        )

        outcomes = coordinator.settle_completed_booking(completed_booking)

        assert [(o.step, o.ok) for o in outcomes] == [("earnings", False)]

    def test_no_payment_is_skipped(self, db, clock, completed_booking):
        outcomes = make_coordinator(db, FakeGateway(db), clock).settle_completed_booking(completed_booking)

        assert len(outcomes) == 1
        assert outcomes[0].skipped

    @pytest.mark.parametrize("status", [PaymentStatus.PENDING, PaymentStatus.FAILED, PaymentStatus.REFUNDED])
    def test_other_payment_statuses_are_skipped(self, db, clock, completed_booking, status):
        create_payment(db, completed_booking, status=status)
        gateway = FakeGateway(db)

        outcomes = make_coordinator(db, gateway, clock).settle_completed_booking(completed_booking)

        assert outcomes[0].skipped
        assert gateway.captured == []
