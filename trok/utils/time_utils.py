"""
trok/utils/time_utils.py

Purpose: Time and expiry helpers

- Staging record expiry calculations
- Day counts between unix timestamps
- Date formatting for responses
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from trok.utils.constants import TWENTY_FOUR_HOURS


def utcnow() -> datetime:
    """Naive UTC now, matching what Motor returns for stored datetimes."""
    return datetime.utcnow()


def calculate_expiry(ttl_seconds: int, start: Optional[datetime] = None) -> datetime:
    """
    Calculates an absolute expiry timestamp from a TTL.
    """
    return (start or utcnow()) + timedelta(seconds=ttl_seconds)


def days_between(start_unix: int, end_unix: int) -> float:
    """
    Returns the number of days between two unix timestamps.
    """
    return (end_unix - start_unix) / TWENTY_FOUR_HOURS


def format_http_date(dt: Optional[datetime] = None) -> str:
    """
    Formats a datetime the way Date.toUTCString() does
    (e.g. "Mon, 19 Oct 2026 14:00:00 GMT").
    """
    dt = dt or datetime.now(timezone.utc)
    return dt.strftime("%a, %d %b %Y %H:%M:%S GMT")
