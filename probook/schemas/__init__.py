"""Pydantic schemas for booking input and output."""

from .booking import BookingAdminFilters, BookingCreate, BookingRead

__all__ = ["BookingAdminFilters", "BookingCreate", "BookingRead"]
