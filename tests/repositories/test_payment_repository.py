from datetime import timedelta

from probook.models.payment import Earning, EarningStatus
from probook.repositories.payment_repository import EarningRepository, PaymentRepository
from tests.factories import FIXED_NOW, create_booking, create_payment, create_provider, new_id


def _earning(db, booking, available_at, status=EarningStatus.PENDING):
    earning = Earning(
        booking_id=booking.id,
        provider_profile_id=booking.provider_profile_id,
        client_user_id=booking.client_user_id,
        currency="UYU",
        gross_amount=1000,
        platform_fee_amount=150,
        net_amount=850,
        status=status.value,
        available_at=available_at,
    )
    db.add(earning)
    db.commit()
    return earning


def test_payment_by_booking(db):
    booking = create_booking(db, create_provider(db), new_id())
    payment = create_payment(db, booking)

    assert PaymentRepository(db).find_by_booking_id(booking.id).id == payment.id
    assert PaymentRepository(db).find_by_booking_id("missing") is None


def test_due_pending_earnings(db):
    provider = create_provider(db)
    due = _earning(db, create_booking(db, provider, new_id()), FIXED_NOW - timedelta(hours=1))
    _earning(db, create_booking(db, provider, new_id()), FIXED_NOW + timedelta(days=1))
    _earning(
        db,
        create_booking(db, provider, new_id()),
        FIXED_NOW - timedelta(days=2),
        status=EarningStatus.PAYABLE,
    )

    rows = EarningRepository(db).list_due_pending(FIXED_NOW)

    assert [row.id for row in rows] == [due.id]
    assert len(EarningRepository(db).list_for_provider(provider.id)) == 3
