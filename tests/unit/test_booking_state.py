"""Lifecycle transition table."""

import itertools

import pytest

from probook.core.exceptions import InvalidStateTransition
from probook.domain.booking_state import (
    BOOKING_TRANSITIONS,
    TERMINAL_STATUSES,
    allowed_targets,
    can_transition,
    is_terminal,
    validate_transition,
)
from probook.models.booking import BookingStatus

S = BookingStatus

ALLOWED_EDGES = {
    (S.PENDING_PAYMENT, S.PENDING),
    (S.PENDING_PAYMENT, S.CANCELLED),
    (S.PENDING, S.ACCEPTED),
    (S.PENDING, S.REJECTED),
    (S.PENDING, S.CANCELLED),
    (S.ACCEPTED, S.ON_MY_WAY),
    (S.ACCEPTED, S.CANCELLED),
    (S.ON_MY_WAY, S.ARRIVED),
    (S.ON_MY_WAY, S.CANCELLED),
    (S.ARRIVED, S.COMPLETED),
}


@pytest.mark.parametrize("current,target", list(itertools.product(BookingStatus, repeat=2)))
def test_transition_matrix(current, target):
    expected = (current, target) in ALLOWED_EDGES
    assert can_transition(current, target) is expected

    if expected:
        validate_transition(current, target)
    else:
        with pytest.raises(InvalidStateTransition) as exc_info:
            validate_transition(current, target)
        assert exc_info.value.current == current.value
        assert exc_info.value.attempted == target.value


def test_every_status_has_a_row():
    assert set(BOOKING_TRANSITIONS) == set(BookingStatus)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {S.COMPLETED, S.REJECTED, S.CANCELLED}
    for status in BookingStatus:
        assert is_terminal(status) is (status in TERMINAL_STATUSES)


def test_arrived_cannot_be_cancelled():
    assert S.CANCELLED not in allowed_targets(S.ARRIVED)


def test_accepts_raw_string_values():
    assert can_transition("ARRIVED", "COMPLETED")
    assert not can_transition("COMPLETED", "COMPLETED")
    with pytest.raises(InvalidStateTransition):
        validate_transition("PENDING", "ARRIVED")


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        can_transition("DRAFT", "PENDING")
