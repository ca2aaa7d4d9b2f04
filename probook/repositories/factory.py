# probook/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .audit_repository import AuditRepository
    from .booking_repository import BookingRepository
    from .notification_delivery_repository import NotificationDeliveryRepository
    from .payment_repository import EarningRepository, PaymentRepository
    from .profile_repository import ClientProfileRepository, ProviderRepository
    from .push_subscription_repository import PushSubscriptionRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_provider_repository(db: Session) -> "ProviderRepository":
        from .profile_repository import ProviderRepository

        return ProviderRepository(db)

    @staticmethod
    def create_client_profile_repository(db: Session) -> "ClientProfileRepository":
        from .profile_repository import ClientProfileRepository

        return ClientProfileRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_earning_repository(db: Session) -> "EarningRepository":
        from .payment_repository import EarningRepository

        return EarningRepository(db)

    @staticmethod
    def create_notification_delivery_repository(db: Session) -> "NotificationDeliveryRepository":
        from .notification_delivery_repository import NotificationDeliveryRepository

        return NotificationDeliveryRepository(db)

    @staticmethod
    def create_push_subscription_repository(db: Session) -> "PushSubscriptionRepository":
        from .push_subscription_repository import PushSubscriptionRepository

        return PushSubscriptionRepository(db)

    @staticmethod
    def create_audit_repository(db: Session) -> "AuditRepository":
        """Create repository for audit log persistence."""
        from .audit_repository import AuditRepository

        return AuditRepository(db)
