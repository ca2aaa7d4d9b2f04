from datetime import timedelta

import pytest

from probook.core.exceptions import BookingNotFound
from probook.models.booking import BookingStatus
from probook.repositories.booking_repository import BookingFilters, BookingRepository
from tests.factories import FIXED_NOW, create_booking, create_provider, new_id


@pytest.fixture
def repo(db):
    return BookingRepository(db)


class TestDisplayIds:
    def test_highest_on_empty_table(self, repo):
        assert repo.get_highest_display_id() is None

    def test_highest_uses_sequence_order(self, db, repo):
        provider = create_provider(db)
        for display_id in ("A2229", "A2232", "A222Z"):
            create_booking(db, provider, new_id(), display_id=display_id)

        assert repo.get_highest_display_id() == "A2232"
        assert repo.display_id_exists("A222Z")
        assert not repo.display_id_exists("A2233")


class TestUpdateStatus:
    def test_sets_status(self, db, repo):
        booking = create_booking(db, create_provider(db), new_id())

        updated = repo.update_status(booking.id, BookingStatus.ACCEPTED)
        db.commit()

        assert updated.status == "ACCEPTED"

    def test_missing_booking(self, repo):
        with pytest.raises(BookingNotFound):
            repo.update_status("does-not-exist", BookingStatus.ACCEPTED)


class TestListing:
    def test_client_bookings_newest_first(self, db, repo):
        provider = create_provider(db)
        client_id = new_id()
        first = create_booking(db, provider, client_id)
        first.created_at = FIXED_NOW - timedelta(days=2)
        second = create_booking(db, provider, client_id)
        second.created_at = FIXED_NOW - timedelta(days=1)
        create_booking(db, provider, new_id())
        db.commit()

        assert [b.id for b in repo.find_by_client(client_id)] == [second.id, first.id]
        assert repo.client_has_bookings(client_id)
        assert not repo.client_has_bookings(new_id())

    def test_provider_bookings_by_schedule(self, db, repo):
        provider = create_provider(db)
        later = create_booking(db, provider, new_id(), scheduled_at=FIXED_NOW + timedelta(days=3))
        sooner = create_booking(db, provider, new_id(), scheduled_at=FIXED_NOW + timedelta(days=1))
        create_booking(db, create_provider(db), new_id())

        assert [b.id for b in repo.find_by_provider(provider.id)] == [sooner.id, later.id]

    def test_find_all_filters(self, db, repo):
        provider = create_provider(db)
        pending = create_booking(db, provider, new_id(), status=BookingStatus.PENDING)
        create_booking(db, provider, new_id(), status=BookingStatus.COMPLETED)

        rows = repo.find_all(BookingFilters(status=BookingStatus.PENDING, provider_profile_id=provider.id))

        assert [b.id for b in rows] == [pending.id]
        assert len(repo.find_all(BookingFilters(limit=1))) == 1
