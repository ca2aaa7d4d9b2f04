# probook/models/payment.py
"""
Payment and earning records.

Payments are owned by the checkout flow; the booking lifecycle only reads
them and captures authorized ones at completion. Earnings are the provider's
share of a captured payment, one per booking.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    AUTHORIZED = "AUTHORIZED"
    CAPTURED = "CAPTURED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class EarningStatus(str, Enum):
    PENDING = "PENDING"  # Cooling-off period
    PAYABLE = "PAYABLE"
    PAID = "PAID"
    REVERSED = "REVERSED"


class Payment(Base):
    """Payment attached to a booking; amounts are integer minor units."""

    __tablename__ = "payments"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, unique=True)
    provider = Column(String(20), nullable=False, default="stripe")
    provider_payment_id = Column(String(255), nullable=True, comment="Stripe PaymentIntent ID")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING, index=True)
    currency = Column(String(3), nullable=False, default="UYU")
    amount_estimated = Column(Integer, nullable=False, default=0)
    amount_authorized = Column(Integer, nullable=True)
    amount_captured = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    def mark_captured(self, amount: int) -> None:
        self.status = PaymentStatus.CAPTURED.value
        self.amount_captured = amount
        self.updated_at = utc_now()


class Earning(Base):
    """Provider earning derived from a captured payment."""

    __tablename__ = "earnings"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, unique=True)
    provider_profile_id = Column(String(26), ForeignKey("provider_profiles.id"), nullable=False, index=True)
    client_user_id = Column(String(26), nullable=False)
    currency = Column(String(3), nullable=False)
    gross_amount = Column(Integer, nullable=False)
    platform_fee_amount = Column(Integer, nullable=False)
    net_amount = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=EarningStatus.PENDING, index=True)
    available_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    __table_args__ = (
        CheckConstraint("gross_amount = platform_fee_amount + net_amount", name="check_earning_split"),
    )
