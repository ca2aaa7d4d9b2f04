# probook/repositories/payment_repository.py
"""
Payment and earning data access.

Payments are read-only from the booking lifecycle's point of view apart from
capture; earnings are inserted once per booking and later promoted to
PAYABLE when their cooling-off window ends.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment import Earning, EarningStatus, Payment
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def find_by_booking_id(self, booking_id: str) -> Optional[Payment]:
        return self.find_one_by(booking_id=booking_id)


class EarningRepository(BaseRepository[Earning]):
    def __init__(self, db: Session):
        super().__init__(db, Earning)

    def find_by_booking_id(self, booking_id: str) -> Optional[Earning]:
        return self.find_one_by(booking_id=booking_id)

    def list_due_pending(self, now: datetime, limit: int = 500) -> List[Earning]:
        """PENDING earnings whose ``available_at`` has passed."""
        try:
            return (
                self.db.query(Earning)
                .filter(
                    Earning.status == EarningStatus.PENDING.value,
                    Earning.available_at <= now,
                )
                .order_by(Earning.available_at.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error listing due earnings: {str(e)}")
            raise RepositoryException(f"Failed to list due earnings: {str(e)}") from e

    def list_for_provider(self, provider_profile_id: str) -> List[Earning]:
        return (
            self.db.query(Earning)
            .filter(Earning.provider_profile_id == provider_profile_id)
            .order_by(Earning.created_at.desc())
            .all()
        )
