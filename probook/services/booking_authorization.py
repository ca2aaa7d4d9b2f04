# probook/services/booking_authorization.py
"""
Who may do what to a booking.

Checks run after the transition is validated and before anything is
written. A refusal raises ``UnauthorizedAction``.
"""

from __future__ import annotations

import logging

from ..core.actor import Actor
from ..core.enums import ActorRole
from ..core.exceptions import UnauthorizedAction
from ..models.booking import Booking
from ..repositories.profile_repository import ProviderRepository

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    def __init__(self, providers: ProviderRepository):
        self.providers = providers

    def authorize_provider_action(self, actor: Actor, booking: Booking, action: str) -> None:
        if actor.role == ActorRole.ADMIN:
            return
        if actor.role != ActorRole.PROVIDER:
            raise UnauthorizedAction(action, f"role {actor.role.value} cannot {action} bookings")
        if not actor.id:
            raise UnauthorizedAction(action, "provider actor has no user id")

        profile = self.providers.find_by_user_id(actor.id)
        if profile is None:
            raise UnauthorizedAction(action, "provider profile not found")
        if profile.id != booking.provider_profile_id:
            logger.warning(
                "Provider %s attempted to %s booking %s assigned to %s",
                profile.id,
                action,
                booking.id,
                booking.provider_profile_id,
            )
            raise UnauthorizedAction(action, "booking is assigned to another provider")

    def authorize_client_action(self, actor: Actor, booking: Booking, action: str = "cancel") -> None:
        if actor.role == ActorRole.ADMIN:
            return
        if actor.role != ActorRole.CLIENT:
            raise UnauthorizedAction(action, f"role {actor.role.value} cannot {action} bookings")
        if not actor.id or booking.client_user_id != actor.id:
            raise UnauthorizedAction(action, "booking belongs to another client")

    def authorize_create(self, actor: Actor) -> None:
        if actor.role != ActorRole.CLIENT or not actor.id:
            raise UnauthorizedAction("create", "only clients can create bookings")

    def authorize_payment_confirmation(self, actor: Actor) -> None:
        if actor.role not in (ActorRole.SYSTEM, ActorRole.ADMIN):
            raise UnauthorizedAction(
                "confirm_payment", "payment confirmation comes from the payment processor"
            )

    def authorize_admin(self, actor: Actor, action: str) -> None:
        if actor.role != ActorRole.ADMIN:
            raise UnauthorizedAction(action, "admin role required")
