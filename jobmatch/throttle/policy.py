"""Notification cooldown policy.

A (user, job) pair is notified the first time it matches. After that it is
only re-notified once a status-dependent cooldown, counted in whole UTC
calendar days, has strictly elapsed since the most recent send. History is
never reset; every resend simply appends a newer timestamp.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from jobmatch.domain.models import UserStatus
from jobmatch.logging import get_logger
from jobmatch.utils.timestamps import calendar_days_between, utc_now

if TYPE_CHECKING:
    from jobmatch.matching.models import MatchCandidate

logger = get_logger(__name__, component="throttle")

DEFAULT_STUDENT_COOLDOWN_DAYS = 3
DEFAULT_EXPERIENCED_COOLDOWN_DAYS = 14


class NotificationThrottle:
    """Decides whether a match candidate should be (re-)notified now."""

    def __init__(
        self,
        student_cooldown_days: int = DEFAULT_STUDENT_COOLDOWN_DAYS,
        experienced_cooldown_days: int = DEFAULT_EXPERIENCED_COOLDOWN_DAYS,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize NotificationThrottle.

        Args:
            student_cooldown_days: Cooldown for student and no-experience users
            experienced_cooldown_days: Cooldown for experienced users
            clock: Source of "now" when should_notify() is not given one
            logger_instance: Optional logger instance (defaults to module logger)
        """
        if student_cooldown_days < 0 or experienced_cooldown_days < 0:
            raise ValueError("Cooldown days must be non-negative")
        self.student_cooldown_days = student_cooldown_days
        self.experienced_cooldown_days = experienced_cooldown_days
        self.clock = clock
        self.logger = logger_instance or logger

    def cooldown_days(self, status: UserStatus) -> int:
        """Cooldown, in calendar days, for a user status."""
        if UserStatus(status) is UserStatus.EXPERIENCE_POSITION:
            return self.experienced_cooldown_days
        return self.student_cooldown_days

    def should_notify(
        self,
        candidate: "MatchCandidate",
        last_sent_at: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> bool:
        """Decide whether to notify a candidate now.

        Args:
            candidate: Match candidate (its user_status selects the cooldown)
            last_sent_at: Most recent prior send for this exact pair, or None
            now: Evaluation instant (defaults to the configured clock)

        Returns:
            True on first contact or once the cooldown has strictly elapsed
        """
        if last_sent_at is None:
            return True

        days_since = calendar_days_between(now or self.clock(), last_sent_at)
        cooldown = self.cooldown_days(candidate.user_status)
        allowed = days_since > cooldown

        if not allowed:
            self.logger.debug(
                f"Notification suppressed: {candidate.user_id} / {candidate.job_id}",
                extra={
                    "event": "throttle.suppressed",
                    "user_id": candidate.user_id,
                    "job_id": candidate.job_id,
                    "days_since": days_since,
                    "cooldown_days": cooldown,
                },
            )

        return allowed
