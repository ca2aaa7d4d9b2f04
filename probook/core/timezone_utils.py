"""
Timezone utilities.

Bookings are stored in UTC; client-facing text is rendered in the client's
timezone, falling back to the platform default.
"""

from datetime import datetime, timezone
from typing import Optional

import pytz

from probook.core.config import settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Return ``value`` as an aware UTC datetime.

    Naive values are treated as UTC; SQLite hands back naive datetimes for
    ``DateTime(timezone=True)`` columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_timezone(tz_name: Optional[str]) -> pytz.BaseTzInfo:
    """Return the pytz zone for ``tz_name`` or the configured default."""
    if tz_name:
        try:
            return pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError:
            pass
    return pytz.timezone(settings.default_timezone)


def format_local_datetime(value: datetime, tz_name: Optional[str] = None) -> str:
    """
    Format a stored UTC datetime for display in a recipient's timezone.

    Example: ``"Tue 14 Jan 2025, 13:30"``.
    """
    local = ensure_utc(value).astimezone(resolve_timezone(tz_name))
    return local.strftime("%a %d %b %Y, %H:%M")
