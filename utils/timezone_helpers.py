"""
Timezone utilities for turning UTC clock readings into the local date and
"HH:MM" time-of-day that punch records are kept in.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from core.config import DEFAULT_TIMEZONE


def from_utc_to_local(utc_dt: datetime, tz: str) -> datetime:
    """
    Convert UTC datetime to local datetime in the specified timezone.

    Args:
        utc_dt: UTC datetime (naive values are assumed to be UTC)
        tz: IANA timezone string (e.g., 'America/Sao_Paulo', 'Europe/Lisbon')

    Returns:
        datetime: Local datetime in the specified timezone
    """
    utc_dt = ensure_timezone_aware(utc_dt)
    return utc_dt.astimezone(ZoneInfo(tz))


def validate_timezone(tz: str) -> bool:
    """
    Validate if the timezone string is a valid IANA timezone.

    Args:
        tz: IANA timezone string to validate

    Returns:
        bool: True if valid, False otherwise
    """
    try:
        ZoneInfo(tz)
        return True
    except (ValueError, KeyError):
        return False


def get_default_timezone() -> str:
    """
    Get the timezone punches are stamped in when none is given.

    Returns:
        str: DEFAULT_TIMEZONE from the environment, or UTC if that value is invalid
    """
    if validate_timezone(DEFAULT_TIMEZONE):
        return DEFAULT_TIMEZONE
    return "UTC"


def ensure_timezone_aware(dt: datetime) -> datetime:
    """
    Ensure a datetime is timezone-aware, defaulting to UTC if naive.

    Args:
        dt: datetime object

    Returns:
        datetime: timezone-aware datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt
