"""Timestamp utilities for UTC handling and calendar-day arithmetic.

This module provides utilities for working with timestamps in UTC:
- Getting current UTC time
- Converting timezone-naive to timezone-aware UTC
- Parsing and formatting ISO 8601 strings for storage
- Counting calendar days between two instants (used by the throttle)
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Supports various ISO 8601 formats:
    - 2025-11-04T12:00:00.000000Z
    - 2025-11-04T12:00:00Z
    - 2025-11-04T12:00:00+00:00
    - 2025-11-04

    Args:
        iso_string: ISO 8601 formatted datetime string

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    try:
        return ensure_utc(datetime.strptime(iso_string.strip(), "%Y-%m-%d"))
    except ValueError:
        return None


def format_timestamp(dt: datetime, include_microseconds: bool = False) -> str:
    """Format a datetime as ISO 8601 string in UTC.

    Args:
        dt: Datetime to format
        include_microseconds: Whether to include microseconds in output

    Returns:
        ISO 8601 formatted string with 'Z' suffix

    Example:
        >>> dt = datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)
        >>> format_timestamp(dt)
        '2025-11-04T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""

    if include_microseconds:
        return dt_utc.strftime(STORAGE_FORMAT)
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def utc_date(value: Union[datetime, date]) -> date:
    """Return the UTC calendar date of a datetime (dates pass through)."""
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


def calendar_days_between(later: Union[datetime, date], earlier: Union[datetime, date]) -> int:
    """Count calendar days between two instants, midnight to midnight in UTC.

    Wall-clock hours are ignored: 23:59 on one day and 00:01 on the next are
    one day apart.

    Args:
        later: The more recent instant (typically "now")
        earlier: The older instant (typically the last send time)

    Returns:
        Whole number of calendar days; negative if ``earlier`` is after ``later``

    Example:
        >>> calendar_days_between(
        ...     datetime(2025, 1, 2, 0, 1, tzinfo=timezone.utc),
        ...     datetime(2025, 1, 1, 23, 59, tzinfo=timezone.utc),
        ... )
        1
    """
    return (utc_date(later) - utc_date(earlier)).days
