"""Assigns display ids to new bookings."""

import logging
from typing import Optional

from ..core.config import settings
from ..core.exceptions import DisplayIdExhausted
from ..domain.display_id import MAX_SEQUENCE, encode_display_id, next_sequence_after
from ..repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)


class DisplayIdGenerator:
    """
    Next display id after the highest stored one, skipping ids in use.

    Two concurrent creations can still pick the same id; the unique
    constraint on ``bookings.display_id`` rejects the loser.
    """

    def __init__(self, bookings: BookingRepository, max_attempts: Optional[int] = None):
        self.bookings = bookings
        self.max_attempts = max_attempts or settings.display_id_max_attempts

    def generate(self) -> str:
        sequence = next_sequence_after(self.bookings.get_highest_display_id())

        # first probe plus max_attempts retries
        for _ in range(self.max_attempts + 1):
            if sequence > MAX_SEQUENCE:
                break
            candidate = encode_display_id(sequence)
            if not self.bookings.display_id_exists(candidate):
                return candidate
            logger.debug("Display id %s already taken", candidate)
            sequence += 1

        logger.critical(
            "Could not allocate a display id after %d retries (last sequence %d)",
            self.max_attempts,
            sequence,
        )
        raise DisplayIdExhausted(
            "Unable to allocate a booking display id",
            details={"retries": self.max_attempts, "last_sequence": sequence},
        )
