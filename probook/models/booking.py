# probook/models/booking.py
"""
Booking model.

A booking is a client's request for a provider's services at a scheduled
time and address. Its ``status`` only moves along the lifecycle edges in
``probook.domain.booking_state``; the audited admin override is the single
exception.
"""

from decimal import Decimal
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING_PAYMENT = "PENDING_PAYMENT"  # Created, waiting for payment authorization
    PENDING = "PENDING"  # Paid, waiting for the provider
    ACCEPTED = "ACCEPTED"
    ON_MY_WAY = "ON_MY_WAY"
    ARRIVED = "ARRIVED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in BookingStatus)


class Booking(Base):
    """Service booking between a client user and a provider profile."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    display_id = Column(String(16), nullable=False, unique=True)

    client_user_id = Column(String(26), nullable=False, index=True)
    provider_profile_id = Column(
        String(26), ForeignKey("provider_profiles.id"), nullable=True, index=True
    )

    category = Column(String(50), nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    hours_estimate = Column(Numeric(5, 2), nullable=False)
    address_text = Column(Text, nullable=False)
    description = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING_PAYMENT, index=True)
    is_first_booking = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    provider = relationship("ProviderProfile", lazy="joined")

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_bookings_status"),
        CheckConstraint("hours_estimate > 0", name="check_hours_estimate_positive"),
        Index("ix_bookings_client_created", "client_user_id", "created_at"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING_PAYMENT

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    def estimated_total(self, hourly_rate: Optional[Decimal]) -> Optional[Decimal]:
        """Hourly rate times estimated hours, or ``None`` without a rate."""
        if hourly_rate is None:
            return None
        return (Decimal(hourly_rate) * Decimal(self.hours_estimate)).quantize(Decimal("0.01"))

    def __repr__(self) -> str:
        return f"<Booking {self.display_id} status={self.status}>"
