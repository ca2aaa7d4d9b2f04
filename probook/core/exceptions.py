# probook/core/exceptions.py
"""
Errors raised by the booking lifecycle.

Every domain error carries a stable ``code`` and a ``details`` dict, and
knows the HTTP status it maps to when surfaced through FastAPI.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

# Starlette renamed the 422 constant; older releases only have the old name.
HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code or type(self).__name__
        self.details = dict(details or {})

    def to_http_exception(self) -> HTTPException:
        body = {"message": self.message, "code": self.code, "details": self.details}
        return HTTPException(status_code=self.status_code, detail=body)


class ValidationException(DomainException):
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenException(DomainException):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundException(DomainException):
    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleException(DomainException):
    """The request is well-formed but the booking's current state forbids it."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Internal failure (database, exhausted id space, missing prerequisite)."""


# Booking lifecycle exceptions


class InvalidStateTransition(BusinessRuleException):
    """Raised when a booking cannot move from its current status to the requested one."""

    def __init__(self, current: str, attempted: str):
        self.current = current
        self.attempted = attempted
        super().__init__(
            message=f"Invalid status transition from {current} to {attempted}",
            code="INVALID_STATE_TRANSITION",
            details={"current": current, "attempted": attempted},
        )


class UnauthorizedAction(ForbiddenException):
    """Raised when an actor is not allowed to perform an action on a booking."""

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(
            message=f"Not authorized to {action}: {reason}",
            code="UNAUTHORIZED_ACTION",
            details={"action": action, "reason": reason},
        )


class BookingNotFound(NotFoundException):
    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(
            message=f"Booking {booking_id} not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class BookingValidationError(ValidationException):
    """Raised when booking input is rejected before anything is persisted."""

    def __init__(self, reason: str, *, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        super().__init__(message=reason, code="BOOKING_VALIDATION_ERROR", details=details)


class DisplayIdExhausted(ServiceException):
    """Raised when no free display id could be found."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="DISPLAY_ID_EXHAUSTED", details=details)


class EarningCreationError(ServiceException):
    """Raised when an earning cannot be recorded for a booking."""

    def __init__(self, booking_id: str, reason: str):
        self.booking_id = booking_id
        self.reason = reason
        super().__init__(
            message=f"Cannot create earning for booking {booking_id}: {reason}",
            code="EARNING_CREATION_ERROR",
            details={"booking_id": booking_id, "reason": reason},
        )


class PaymentCaptureError(ServiceException):
    """Raised by payment gateways when a capture is rejected."""

    def __init__(self, payment_id: str, reason: str):
        self.payment_id = payment_id
        self.reason = reason
        super().__init__(
            message=f"Capture failed for payment {payment_id}: {reason}",
            code="PAYMENT_CAPTURE_ERROR",
            details={"payment_id": payment_id, "reason": reason},
        )


# Notification channel exceptions


class NoActiveRecipientEndpoints(Exception):
    """Raised by a channel provider when the recipient has nowhere to deliver to."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No active push subscriptions for user {user_id}")


class ChannelNotConfigured(Exception):
    """Raised when no provider is registered for a notification channel."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"No provider registered for channel {channel}")


class RepositoryException(Exception):
    """Data access failed; wraps the underlying SQLAlchemy error."""
