"""
Human-readable booking identifiers.

Display ids look like ``A2222``, ``A2223`` ... : a fixed prefix followed by a
base-32 sequence number over an alphabet without the easily confused
characters 0, 1, I and O, left-padded with the zero digit ``2``.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

DISPLAY_ID_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
DISPLAY_ID_PREFIX = "A"
DISPLAY_ID_WIDTH = 4
BASE = len(DISPLAY_ID_ALPHABET)
MAX_SEQUENCE = BASE**DISPLAY_ID_WIDTH - 1

_DIGITS = {char: index for index, char in enumerate(DISPLAY_ID_ALPHABET)}


def encode_display_id(sequence: int) -> str:
    """
    Encode a positive sequence number.

    >>> encode_display_id(1)
    'A2223'
    >>> encode_display_id(32)
    'A2232'
    """
    if sequence < 1:
        raise ValueError("Display id sequence must be >= 1")
    if sequence > MAX_SEQUENCE:
        raise ValueError(f"Display id sequence {sequence} exceeds {MAX_SEQUENCE}")

    chars = []
    remaining = sequence
    while remaining > 0:
        remaining, digit = divmod(remaining, BASE)
        chars.append(DISPLAY_ID_ALPHABET[digit])
    suffix = "".join(reversed(chars)).rjust(DISPLAY_ID_WIDTH, DISPLAY_ID_ALPHABET[0])
    return f"{DISPLAY_ID_PREFIX}{suffix}"


def decode_display_id(display_id: str) -> Optional[int]:
    """
    Decode a display id back to its sequence number.

    Returns ``None`` when the value does not carry the prefix or contains a
    character outside the alphabet.
    """
    if not display_id or not display_id.startswith(DISPLAY_ID_PREFIX):
        return None
    suffix = display_id[len(DISPLAY_ID_PREFIX) :]
    if not suffix:
        return None

    value = 0
    for char in suffix:
        digit = _DIGITS.get(char)
        if digit is None:
            return None
        value = value * BASE + digit
    return value


def next_sequence_after(highest_display_id: Optional[str]) -> int:
    """
    Sequence number to try after the highest stored display id.

    An unreadable stored id restarts the sequence at 1; collision probing
    then walks forward past any ids that already exist.
    """
    if highest_display_id is None:
        return 1
    decoded = decode_display_id(highest_display_id)
    if decoded is None:
        logger.warning(
            "Highest display id %r is not decodable; restarting sequence at 1",
            highest_display_id,
        )
        return 1
    return decoded + 1
