"""
Booking lifecycle state machine.

The adjacency table below is the single source of truth for which status
changes the lifecycle API allows. Everything here is pure: no I/O, no clock.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Mapping, Union

from probook.core.exceptions import InvalidStateTransition
from probook.models.booking import BookingStatus

StatusLike = Union[BookingStatus, str]

BOOKING_TRANSITIONS: Mapping[BookingStatus, FrozenSet[BookingStatus]] = MappingProxyType(
    {
        BookingStatus.PENDING_PAYMENT: frozenset({BookingStatus.PENDING, BookingStatus.CANCELLED}),
        BookingStatus.PENDING: frozenset(
            {BookingStatus.ACCEPTED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
        ),
        BookingStatus.ACCEPTED: frozenset({BookingStatus.ON_MY_WAY, BookingStatus.CANCELLED}),
        BookingStatus.ON_MY_WAY: frozenset({BookingStatus.ARRIVED, BookingStatus.CANCELLED}),
        BookingStatus.ARRIVED: frozenset({BookingStatus.COMPLETED}),
        BookingStatus.COMPLETED: frozenset(),
        BookingStatus.REJECTED: frozenset(),
        BookingStatus.CANCELLED: frozenset(),
    }
)

# Every status needs a row, even terminal ones.
_missing = set(BookingStatus) - set(BOOKING_TRANSITIONS)
if _missing:
    raise RuntimeError(f"Booking transition table is missing statuses: {sorted(_missing)}")

TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset(
    status for status, targets in BOOKING_TRANSITIONS.items() if not targets
)


def _coerce(status: StatusLike) -> BookingStatus:
    return status if isinstance(status, BookingStatus) else BookingStatus(status)


def allowed_targets(current: StatusLike) -> FrozenSet[BookingStatus]:
    return BOOKING_TRANSITIONS[_coerce(current)]


def can_transition(current: StatusLike, target: StatusLike) -> bool:
    return _coerce(target) in allowed_targets(current)


def validate_transition(current: StatusLike, target: StatusLike) -> None:
    """
    Raise ``InvalidStateTransition`` unless ``current -> target`` is an edge.

    Self-transitions are not edges, so repeating an action on a booking that
    already reached the target status is rejected as well.
    """
    current_status = _coerce(current)
    target_status = _coerce(target)
    if target_status not in BOOKING_TRANSITIONS[current_status]:
        raise InvalidStateTransition(current_status.value, target_status.value)


def is_terminal(status: StatusLike) -> bool:
    return _coerce(status) in TERMINAL_STATUSES
