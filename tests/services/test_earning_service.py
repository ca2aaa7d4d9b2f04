from datetime import timedelta
from unittest.mock import patch

import pytest

from probook.core.actor import Actor
from probook.core.enums import AuditEventType
from probook.core.exceptions import EarningCreationError
from probook.models.audit_log import AuditLog
from probook.models.booking import BookingStatus
from probook.models.payment import Earning, EarningStatus, PaymentStatus
from probook.services.earning_service import EarningService
from tests.factories import FIXED_NOW, create_booking, create_payment, create_provider, new_id


@pytest.fixture
def service(db, clock):
    return EarningService(db, clock=clock)


@pytest.fixture
def completed_booking(db):
    return create_booking(db, create_provider(db), new_id(), status=BookingStatus.COMPLETED)


class TestCreateEarning:
    def test_splits_captured_amount(self, db, service, completed_booking):
        create_payment(db, completed_booking, status=PaymentStatus.CAPTURED, captured=160000)

        earning = service.create_earning_for_completed_booking(completed_booking.id, Actor.system())

        assert earning.gross_amount == 160000
        assert earning.platform_fee_amount == 24000
        assert earning.net_amount == 136000
        assert earning.currency == "UYU"
        assert earning.status == EarningStatus.PENDING.value
        assert earning.provider_profile_id == completed_booking.provider_profile_id
        assert earning.available_at == FIXED_NOW + timedelta(days=7)

    def test_writes_audit_row(self, db, service, completed_booking):
        create_payment(db, completed_booking, status=PaymentStatus.CAPTURED, captured=1000)

        service.create_earning_for_completed_booking(completed_booking.id, Actor.system())

        audit = db.query(AuditLog).one()
        assert audit.event_type == AuditEventType.EARNING_CREATED.value
        assert audit.resource_id == completed_booking.id
        assert audit.actor_role == "SYSTEM"
        assert audit.event_metadata["net"] == 850

    def test_idempotent(self, db, service, completed_booking):
        create_payment(db, completed_booking, status=PaymentStatus.CAPTURED, captured=1000)

        first = service.create_earning_for_completed_booking(completed_booking.id, Actor.system())
        second = service.create_earning_for_completed_booking(completed_booking.id, Actor.system())

        assert second.id == first.id
        assert db.query(Earning).count() == 1

    def test_requires_completed_booking(self, db, service):
        booking = create_booking(db, create_provider(db), new_id(), status=BookingStatus.ARRIVED)
        create_payment(db, booking, status=PaymentStatus.CAPTURED, captured=1000)

        with pytest.raises(EarningCreationError, match="not COMPLETED"):
            service.create_earning_for_completed_booking(booking.id, Actor.system())

    def test_requires_captured_payment(self, db, service, completed_booking):
        create_payment(db, completed_booking, status=PaymentStatus.AUTHORIZED)

        with pytest.raises(EarningCreationError, match="not captured"):
            service.create_earning_for_completed_booking(completed_booking.id, Actor.system())
        assert db.query(Earning).count() == 0

    def test_missing_booking(self, service):
        with pytest.raises(EarningCreationError, match="not found"):
            service.create_earning_for_completed_booking("missing", Actor.system())


class TestMarkPayable:
    def test_promotes_only_due_earnings(self, db, service, completed_booking):
        create_payment(db, completed_booking, status=PaymentStatus.CAPTURED, captured=1000)
        earning = service.create_earning_for_completed_booking(completed_booking.id, Actor.system())

        assert service.mark_payable_if_due(FIXED_NOW + timedelta(days=6)) == 0
        assert service.mark_payable_if_due(FIXED_NOW + timedelta(days=7, minutes=1)) == 1

        db.refresh(earning)
        assert earning.status == EarningStatus.PAYABLE.value


class TestConcurrentCompletion:
    def test_losing_insert_returns_the_winning_row(self, db, service, completed_booking, clock):
        create_payment(db, completed_booking, status=PaymentStatus.CAPTURED, captured=1000)
        rival = EarningService(db, clock=clock)
        lookup = service.earnings.find_by_booking_id
        winners = []

        def lookup_while_rival_commits(booking_id):
            # The rival settles after our existence check but before our insert
            if not winners:
                winners.append(rival.create_earning_for_completed_booking(booking_id, Actor.system()))
                return None
            return lookup(booking_id)

        with patch.object(service.earnings, "find_by_booking_id", side_effect=lookup_while_rival_commits):
            earning = service.create_earning_for_completed_booking(completed_booking.id, Actor.system())

        assert earning.id == winners[0].id
        assert db.query(Earning).count() == 1
        assert db.query(AuditLog).filter_by(event_type=AuditEventType.EARNING_CREATED.value).count() == 1
