# probook/schemas/booking.py
"""
Booking input and output schemas.

Input validation here is structural (types, ranges); the time-of-day and
"not in the past" rules depend on the clock and live in the booking service.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.booking import Booking, BookingStatus


class StrictModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )


class BookingCreate(StrictModel):
    """Client request to book a provider."""

    provider_profile_id: str = Field(..., min_length=1, description="Provider profile to book")
    category: str = Field(..., min_length=1, max_length=50)
    scheduled_at: datetime = Field(..., description="Start time; naive values are treated as UTC")
    estimated_hours: Decimal = Field(..., gt=0, le=24, decimal_places=2)
    address_text: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("scheduled_at")
    @classmethod
    def _normalize_to_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class BookingRead(BaseModel):
    """Booking with pricing derived from the provider's current hourly rate."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    display_id: str
    client_user_id: str
    provider_profile_id: Optional[str]
    category: str
    scheduled_at: datetime
    hours_estimate: Decimal
    address_text: str
    description: Optional[str] = None
    status: BookingStatus
    is_first_booking: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    hourly_rate: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None

    @classmethod
    def from_booking(cls, booking: Booking, hourly_rate: Optional[Decimal] = None) -> "BookingRead":
        rate = hourly_rate
        if rate is None and booking.provider is not None:
            rate = booking.provider.hourly_rate
        base = cls.model_validate(booking)
        return base.model_copy(
            update={"hourly_rate": rate, "total_amount": booking.estimated_total(rate)}
        )


class BookingAdminFilters(StrictModel):
    status: Optional[BookingStatus] = None
    provider_profile_id: Optional[str] = None
    client_user_id: Optional[str] = None
    scheduled_from: Optional[datetime] = None
    scheduled_to: Optional[datetime] = None
    limit: int = Field(default=100, ge=1, le=500)

