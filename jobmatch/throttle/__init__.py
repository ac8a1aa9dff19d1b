"""Notification throttle deciding when a match may be (re-)notified."""

from .policy import (
    DEFAULT_EXPERIENCED_COOLDOWN_DAYS,
    DEFAULT_STUDENT_COOLDOWN_DAYS,
    NotificationThrottle,
)

__all__ = [
    "NotificationThrottle",
    "DEFAULT_STUDENT_COOLDOWN_DAYS",
    "DEFAULT_EXPERIENCED_COOLDOWN_DAYS",
]
