# probook/core/enums.py
"""
Core enums shared across models, services, and notification policy.

String-valued so they compare equal to the raw column values stored in the
database and serialize cleanly into notification payloads.
"""

from enum import Enum


class ActorRole(str, Enum):
    """Roles an actor can hold when acting on a booking."""

    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"


class RecipientRole(str, Enum):
    """Who a notification is addressed to."""

    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"


class NotificationChannel(str, Enum):
    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"
    PUSH = "PUSH"


class ContactMethod(str, Enum):
    """Preferred contact method stored on a client profile."""

    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"


class NotificationEvent(str, Enum):
    """Events that produce notifications."""

    BOOKING_CREATED = "booking.created"
    BOOKING_ACCEPTED = "booking.accepted"
    BOOKING_REJECTED = "booking.rejected"
    BOOKING_ON_MY_WAY = "booking.on_my_way"
    BOOKING_ARRIVED = "booking.arrived"
    BOOKING_COMPLETED = "booking.completed"
    BOOKING_CANCELLED = "booking.cancelled"
    PAYMENT_REQUIRED = "payment.required"
    PAYMENT_AUTHORIZED = "payment.authorized"
    REVIEW_RECEIVED = "review.received"


class AuditEventType(str, Enum):
    BOOKING_STATUS_FORCED = "BOOKING_STATUS_FORCED"
    EARNING_CREATED = "EARNING_CREATED"
