# probook/services/booking_service.py
"""
Booking lifecycle service.

Every lifecycle operation follows the same order: load the booking,
validate the status transition, authorize the actor, persist and commit,
then run side effects. Errors before the commit propagate to the caller;
side-effect errors after it are logged and contained.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..core.enums import AuditEventType, NotificationEvent
from ..core.exceptions import BookingNotFound, BookingValidationError, RepositoryException
from ..core.timezone_utils import ensure_utc, utc_now
from ..domain.booking_state import validate_transition
from ..models.booking import Booking, BookingStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingFilters, BookingRepository
from ..repositories.profile_repository import ProviderRepository
from ..schemas.booking import BookingAdminFilters, BookingCreate, BookingRead
from .audit_service import AuditService
from .base import BaseService
from .booking_authorization import AuthorizationGuard
from .booking_notifier import BookingNotifier
from .client_profile_service import ClientProfileService
from .display_id_service import DisplayIdGenerator
from .payment_capture_service import PaymentCaptureCoordinator

logger = logging.getLogger(__name__)

HALF_HOUR_MESSAGE = "Booking time must be at the hour or half-hour (e.g., 13:00 or 13:30)"
PAST_DATE_MESSAGE = "Cannot create booking for dates in the past"
PAST_TIME_MESSAGE = "Cannot create booking for times in the past"

# Display id races lost at insert time are retried with a fresh id
CREATE_ATTEMPTS = 3

AuthorizeFn = Callable[[Actor, Booking, str], None]


class BookingService(BaseService):
    """Coordinates booking state changes and their side effects."""

    def __init__(
        self,
        db: Session,
        bookings: BookingRepository,
        providers: ProviderRepository,
        client_profiles: ClientProfileService,
        guard: AuthorizationGuard,
        display_ids: DisplayIdGenerator,
        notifier: BookingNotifier,
        capture_coordinator: PaymentCaptureCoordinator,
        audit_service: AuditService,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(db)
        self.bookings = bookings
        self.providers = providers
        self.client_profiles = client_profiles
        self.guard = guard
        self.display_ids = display_ids
        self.notifier = notifier
        self.capture_coordinator = capture_coordinator
        self.audit_service = audit_service
        self.clock = clock

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(self, actor: Actor, data: BookingCreate) -> BookingRead:
        """
        Create a booking awaiting payment.

        Raises:
            UnauthorizedAction: actor is not a client
            BookingValidationError: bad time, or provider missing or suspended
            DisplayIdExhausted: no free display id
        """
        self.guard.authorize_create(actor)
        self._validate_schedule(data.scheduled_at)

        provider = self.providers.get_by_id(data.provider_profile_id)
        if provider is None:
            raise BookingValidationError("Provider not found")
        if provider.is_suspended:
            raise BookingValidationError("Provider is suspended")

        client_user_id = actor.id or ""
        is_first_booking = not self.bookings.client_has_bookings(client_user_id)

        booking = self._insert_with_fresh_display_id(
            client_user_id=client_user_id,
            provider_profile_id=provider.id,
            category=data.category,
            scheduled_at=ensure_utc(data.scheduled_at),
            hours_estimate=data.estimated_hours,
            address_text=data.address_text,
            description=data.description,
            status=BookingStatus.PENDING_PAYMENT.value,
            is_first_booking=is_first_booking,
        )
        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            display_id=booking.display_id,
            provider_profile_id=provider.id,
        )
        self.notifier.notify_client(NotificationEvent.BOOKING_CREATED, booking)
        return BookingRead.from_booking(booking, provider.hourly_rate)

    def _insert_with_fresh_display_id(self, **values: Any) -> Booking:
        """Insert the booking, retrying with a new display id when a concurrent create took ours."""
        attempt = 1
        while True:
            display_id = self.display_ids.generate()
            try:
                with self.transaction():
                    self.client_profiles.ensure_exists(values["client_user_id"])
                    return self.bookings.create(display_id=display_id, **values)
            except RepositoryException:
                if attempt >= CREATE_ATTEMPTS or not self.bookings.display_id_exists(display_id):
                    raise
                self.logger.warning(
                    "Display id %s was taken concurrently; retrying (attempt %d)", display_id, attempt
                )
                attempt += 1

    def _validate_schedule(self, scheduled_at: datetime) -> None:
        """Half-hour alignment, then not in the past. Dates compare in UTC."""
        scheduled = ensure_utc(scheduled_at)
        if scheduled.minute not in (0, 30):
            raise BookingValidationError(HALF_HOUR_MESSAGE)

        now = ensure_utc(self.clock())
        if scheduled.date() < now.date():
            raise BookingValidationError(PAST_DATE_MESSAGE)
        if scheduled.date() == now.date() and scheduled <= now:
            raise BookingValidationError(PAST_TIME_MESSAGE)

    # Lifecycle transitions

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(self, actor: Actor, booking_id: str) -> Booking:
        """Payment authorized upstream: hand the booking to the provider."""
        booking = self._transition(
            actor,
            booking_id,
            BookingStatus.PENDING,
            "confirm_payment",
            lambda a, _b, _action: self.guard.authorize_payment_confirmation(a),
        )
        self.notifier.notify_provider(NotificationEvent.PAYMENT_AUTHORIZED, booking)
        return booking

    @BaseService.measure_operation("accept_booking")
    def accept_booking(self, actor: Actor, booking_id: str) -> Booking:
        booking = self._transition(
            actor, booking_id, BookingStatus.ACCEPTED, "accept", self.guard.authorize_provider_action
        )
        self.notifier.notify_client(NotificationEvent.BOOKING_ACCEPTED, booking)
        return booking

    @BaseService.measure_operation("reject_booking")
    def reject_booking(self, actor: Actor, booking_id: str) -> Booking:
        booking = self._transition(
            actor, booking_id, BookingStatus.REJECTED, "reject", self.guard.authorize_provider_action
        )
        self.notifier.notify_client(NotificationEvent.BOOKING_REJECTED, booking)
        return booking

    @BaseService.measure_operation("mark_on_my_way")
    def mark_on_my_way(self, actor: Actor, booking_id: str) -> Booking:
        booking = self._transition(
            actor, booking_id, BookingStatus.ON_MY_WAY, "depart", self.guard.authorize_provider_action
        )
        self.notifier.notify_client(NotificationEvent.BOOKING_ON_MY_WAY, booking)
        return booking

    @BaseService.measure_operation("mark_arrived")
    def mark_arrived(self, actor: Actor, booking_id: str) -> Booking:
        booking = self._transition(
            actor, booking_id, BookingStatus.ARRIVED, "arrive", self.guard.authorize_provider_action
        )
        self.notifier.notify_client(NotificationEvent.BOOKING_ARRIVED, booking)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, actor: Actor, booking_id: str) -> Booking:
        return self._transition(
            actor, booking_id, BookingStatus.CANCELLED, "cancel", self.guard.authorize_client_action
        )

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, actor: Actor, booking_id: str) -> Booking:
        """
        Complete an ARRIVED booking, then settle payment and notify the client.

        The COMPLETED status is committed before payment capture starts. A
        failed capture or earnings step is logged for reconciliation and the
        booking is still returned as COMPLETED.
        """
        booking = self._transition(
            actor, booking_id, BookingStatus.COMPLETED, "complete", self.guard.authorize_provider_action
        )

        try:
            outcomes = self.capture_coordinator.settle_completed_booking(booking)
        except Exception as exc:
            logger.error("Failed settling payment for completed booking %s: %s", booking.id, exc)
            outcomes = []
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "Booking %s completed but %s step needs reconciliation: %s",
                    booking.id,
                    outcome.step,
                    outcome.error,
                )

        self.notifier.notify_client(NotificationEvent.BOOKING_COMPLETED, booking)
        return booking

    @BaseService.measure_operation("admin_force_status")
    def admin_force_status(
        self,
        actor: Actor,
        booking_id: str,
        new_status: BookingStatus,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Set any status, bypassing the lifecycle rules.

        The audit row is written in the same transaction as the change.
        """
        booking = self._get_or_raise(booking_id)
        self.guard.authorize_admin(actor, "force_status")

        target = BookingStatus(new_status)
        previous_status = booking.status
        with self.transaction():
            self.audit_service.log_event(
                event_type=AuditEventType.BOOKING_STATUS_FORCED.value,
                actor=actor,
                resource_type="booking",
                resource_id=booking.id,
                action="force_status",
                metadata={
                    "previous_status": previous_status,
                    "new_status": target.value,
                    "actor": actor.to_audit_dict(),
                    "booking_id": booking.id,
                    "display_id": booking.display_id,
                    "client_user_id": booking.client_user_id,
                    "provider_profile_id": booking.provider_profile_id,
                    "category": booking.category,
                    "reason": reason,
                },
            )
            updated = self.bookings.update_status(booking.id, target)

        prometheus_metrics.record_booking_transition(previous_status, target.value, forced=True)
        logger.warning(
            "Admin %s forced booking %s from %s to %s", actor.id, booking.id, previous_status, target.value
        )
        return updated

    def _transition(
        self,
        actor: Actor,
        booking_id: str,
        target: BookingStatus,
        action: str,
        authorize: AuthorizeFn,
    ) -> Booking:
        booking = self._get_or_raise(booking_id)
        previous_status = booking.status
        validate_transition(previous_status, target)
        authorize(actor, booking, action)

        with self.transaction():
            updated = self.bookings.update_status(booking.id, target)

        prometheus_metrics.record_booking_transition(previous_status, target.value)
        self.log_operation(
            action,
            booking_id=booking.id,
            from_status=previous_status,
            to_status=target.value,
            actor_role=actor.role.value,
        )
        return updated

    # Queries

    def _get_or_raise(self, booking_id: str) -> Booking:
        booking = self.bookings.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    def get_booking(self, booking_id: str) -> BookingRead:
        return BookingRead.from_booking(self._get_or_raise(booking_id))

    def list_client_bookings(self, client_user_id: str) -> List[BookingRead]:
        return [BookingRead.from_booking(b) for b in self.bookings.find_by_client(client_user_id)]

    def list_provider_bookings(self, provider_profile_id: str) -> List[BookingRead]:
        return [
            BookingRead.from_booking(b) for b in self.bookings.find_by_provider(provider_profile_id)
        ]

    def list_provider_bookings_for_user(self, user_id: str) -> List[BookingRead]:
        profile = self.providers.find_by_user_id(user_id)
        if profile is None:
            return []
        return self.list_provider_bookings(profile.id)

    @BaseService.measure_operation("admin_list_bookings")
    def admin_list_bookings(
        self, actor: Actor, filters: Optional[BookingAdminFilters] = None
    ) -> List[BookingRead]:
        self.guard.authorize_admin(actor, "list_bookings")
        criteria = filters or BookingAdminFilters()
        rows = self.bookings.find_all(
            BookingFilters(
                status=criteria.status,
                provider_profile_id=criteria.provider_profile_id,
                client_user_id=criteria.client_user_id,
                scheduled_from=criteria.scheduled_from,
                scheduled_to=criteria.scheduled_to,
                limit=criteria.limit,
            )
        )
        return [BookingRead.from_booking(b) for b in rows]
