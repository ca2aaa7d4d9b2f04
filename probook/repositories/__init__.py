"""
Repository layer for data access.

Usage:
    from probook.repositories import RepositoryFactory

    bookings = RepositoryFactory.create_booking_repository(db)
    booking = bookings.get_by_id(booking_id)
"""

from .audit_repository import AuditRepository
from .base_repository import BaseRepository
from .booking_repository import BookingFilters, BookingRepository
from .factory import RepositoryFactory
from .notification_delivery_repository import NotificationDeliveryRepository
from .payment_repository import EarningRepository, PaymentRepository
from .profile_repository import ClientProfileRepository, ProviderRepository
from .push_subscription_repository import PushSubscriptionRepository

__all__ = [
    "AuditRepository",
    "BaseRepository",
    "BookingFilters",
    "BookingRepository",
    "ClientProfileRepository",
    "EarningRepository",
    "NotificationDeliveryRepository",
    "PaymentRepository",
    "ProviderRepository",
    "PushSubscriptionRepository",
    "RepositoryFactory",
]
