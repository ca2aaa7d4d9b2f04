"""
Database models for the booking platform.

Importing this package registers every table on ``Base.metadata``.
"""

from .audit_log import AuditLog
from .booking import Booking, BookingStatus
from .notification import DeliveryStatus, NotificationDelivery, PushSubscription
from .payment import Earning, EarningStatus, Payment, PaymentStatus
from .profiles import ClientProfile, ProviderProfile, ProviderStatus

__all__ = [
    "AuditLog",
    "Booking",
    "BookingStatus",
    "ClientProfile",
    "DeliveryStatus",
    "Earning",
    "EarningStatus",
    "NotificationDelivery",
    "Payment",
    "PaymentStatus",
    "ProviderProfile",
    "ProviderStatus",
    "PushSubscription",
]
