# probook/repositories/booking_repository.py
"""
Booking Repository

Implements data access for bookings:
- Booking creation and status updates
- Client/provider listing queries
- Admin filtered listing
- Display id lookups used by the identifier generator
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import BookingNotFound, RepositoryException
from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingFilters:
    """Admin listing filters; every field is optional."""

    status: Optional[BookingStatus] = None
    provider_profile_id: Optional[str] = None
    client_user_id: Optional[str] = None
    scheduled_from: Optional[datetime] = None
    scheduled_to: Optional[datetime] = None
    limit: int = 100


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    # Status Management

    def update_status(self, booking_id: str, status: Union[BookingStatus, str]) -> Booking:
        """
        Set a booking's status.

        Last write wins; callers validate the transition first.

        Raises:
            BookingNotFound: If booking not found
            RepositoryException: If update fails
        """
        try:
            booking = self.get_by_id(booking_id)
            if not booking:
                raise BookingNotFound(booking_id)

            booking.status = BookingStatus(status).value
            self.db.flush()
            self.logger.info("Booking %s status set to %s", booking_id, booking.status)
            return booking
        except BookingNotFound:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating status of booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking status: {str(e)}") from e

    # Listing Queries

    def find_by_client(self, client_user_id: str) -> List[Booking]:
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.client_user_id == client_user_id)
                .order_by(Booking.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for client {client_user_id}: {str(e)}")
            raise RepositoryException(f"Failed to get client bookings: {str(e)}") from e

    def find_by_provider(self, provider_profile_id: str) -> List[Booking]:
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.provider_profile_id == provider_profile_id)
                .order_by(Booking.scheduled_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error getting bookings for provider {provider_profile_id}: {str(e)}"
            )
            raise RepositoryException(f"Failed to get provider bookings: {str(e)}") from e

    def find_all(self, filters: Optional[BookingFilters] = None) -> List[Booking]:
        filters = filters or BookingFilters()
        try:
            query = self.db.query(Booking)
            if filters.status is not None:
                query = query.filter(Booking.status == BookingStatus(filters.status).value)
            if filters.provider_profile_id:
                query = query.filter(Booking.provider_profile_id == filters.provider_profile_id)
            if filters.client_user_id:
                query = query.filter(Booking.client_user_id == filters.client_user_id)
            if filters.scheduled_from is not None:
                query = query.filter(Booking.scheduled_at >= filters.scheduled_from)
            if filters.scheduled_to is not None:
                query = query.filter(Booking.scheduled_at < filters.scheduled_to)
            return query.order_by(Booking.created_at.desc()).limit(filters.limit).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}") from e

    def client_has_bookings(self, client_user_id: str) -> bool:
        return self.exists(client_user_id=client_user_id)

    # Display Id Lookups

    def get_highest_display_id(self) -> Optional[str]:
        """
        Return the lexicographically highest display id.

        Display ids share a fixed width and an ASCII-ordered alphabet, so the
        string maximum is also the highest sequence number.
        """
        try:
            return self.db.query(func.max(Booking.display_id)).scalar()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading highest display id: {str(e)}")
            raise RepositoryException(f"Failed to read display ids: {str(e)}") from e

    def display_id_exists(self, display_id: str) -> bool:
        return self.exists(display_id=display_id)
