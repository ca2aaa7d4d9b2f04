# probook/container.py
"""
Composition root.

Builds the per-request object graph from a database session. One session,
one graph; nothing here is cached across requests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from probook.core.config import Settings, settings as default_settings
from probook.core.timezone_utils import utc_now
from probook.notifications.providers import ProviderRegistry, build_provider_registry
from probook.repositories.factory import RepositoryFactory
from probook.services.audit_service import AuditService
from probook.services.booking_authorization import AuthorizationGuard
from probook.services.booking_notifier import BookingNotifier
from probook.services.booking_service import BookingService
from probook.services.client_profile_service import ClientProfileService
from probook.services.display_id_service import DisplayIdGenerator
from probook.services.earning_service import EarningService
from probook.services.notification_service import NotificationService
from probook.services.payment_capture_service import PaymentCaptureCoordinator
from probook.services.payment_gateway import PaymentGatewayFactory, build_payment_gateway_factory


def build_notification_service(
    db: Session,
    providers: Optional[ProviderRegistry] = None,
    config: Optional[Settings] = None,
) -> NotificationService:
    cfg = config or default_settings
    registry = providers or build_provider_registry(
        RepositoryFactory.create_push_subscription_repository(db), cfg
    )
    return NotificationService(
        db,
        registry,
        RepositoryFactory.create_notification_delivery_repository(db),
        max_attempts=cfg.notification_max_attempts,
    )


def build_booking_service(
    db: Session,
    *,
    providers: Optional[ProviderRegistry] = None,
    gateway_factory: Optional[PaymentGatewayFactory] = None,
    clock: Optional[Callable[[], datetime]] = None,
    config: Optional[Settings] = None,
) -> BookingService:
    """
    Wire a ``BookingService`` for one session.

    ``providers``, ``gateway_factory`` and ``clock`` default to the real
    implementations; tests pass fakes.
    """
    cfg = config or default_settings
    clock = clock or utc_now
    bookings = RepositoryFactory.create_booking_repository(db)
    provider_repository = RepositoryFactory.create_provider_repository(db)
    payments = RepositoryFactory.create_payment_repository(db)

    audit_service = AuditService(db)
    client_profiles = ClientProfileService(db)
    earning_service = EarningService(
        db,
        earnings=RepositoryFactory.create_earning_repository(db),
        payments=payments,
        bookings=bookings,
        audit_service=audit_service,
        clock=clock,
    )
    notifier = BookingNotifier(
        build_notification_service(db, providers, cfg),
        client_profiles,
        provider_repository,
    )
    coordinator = PaymentCaptureCoordinator(
        db,
        payments,
        gateway_factory or build_payment_gateway_factory(db),
        earning_service,
    )

    return BookingService(
        db,
        bookings=bookings,
        providers=provider_repository,
        client_profiles=client_profiles,
        guard=AuthorizationGuard(provider_repository),
        display_ids=DisplayIdGenerator(bookings, cfg.display_id_max_attempts),
        notifier=notifier,
        capture_coordinator=coordinator,
        audit_service=audit_service,
        clock=clock,
    )


def build_earning_service(db: Session) -> EarningService:
    return EarningService(db)
