"""Utility functions for time handling."""

from .timestamps import (
    calendar_days_between,
    ensure_utc,
    format_timestamp,
    parse_iso_datetime,
    utc_date,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "utc_date",
    "calendar_days_between",
    "parse_iso_datetime",
    "format_timestamp",
]
