"""Set-oriented matching strategy expressed as one SQL query.

The BulkMatcher stages a run's normalized users and jobs into scratch tables
and evaluates every (user, job) pair with a single SQLAlchemy Core SELECT
that restates the predicates in ``jobmatch.matching.criteria``:

- domain: open on either empty side, else any shared domain id
- location: open on either empty side, ``remote`` on either side, else overlap
- experience: student flag, zero-acceptable, or range/level overlap
- leadership: management interest table, forced to ``none`` for
  non-experience users

The throttle variant LEFT JOINs the most recent ``match_history`` send per
pair and compares its UTC date against per-status cutoff dates, so the
query is dialect neutral (ISO dates compare lexicographically).
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, ContextManager, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, delete, exists, func, insert, literal, not_, or_, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobmatch.domain.models import (
    UNBOUNDED_EXPERIENCE,
    ManagementInterest,
    NormalizedJob,
    UserPreference,
    UserStatus,
)
from jobmatch.logging import get_logger
from jobmatch.persistence.database import get_session
from jobmatch.persistence.exceptions import PersistenceError
from jobmatch.persistence.schema import (
    BULK_TABLES,
    NotificationHistoryModel,
    bulk_job_domains,
    bulk_job_experience_levels,
    bulk_job_locations,
    bulk_jobs,
    bulk_user_domains,
    bulk_user_locations,
    bulk_user_management_levels,
    bulk_users,
)
from jobmatch.throttle.policy import (
    DEFAULT_EXPERIENCED_COOLDOWN_DAYS,
    DEFAULT_STUDENT_COOLDOWN_DAYS,
)
from jobmatch.utils.timestamps import utc_date, utc_now

from .criteria import REMOTE
from .models import MatchCandidate

logger = get_logger(__name__, component="matching")

SessionFactory = Callable[[], ContextManager[Session]]

u = bulk_users
j = bulk_jobs

# Job bounds never exceed UNBOUNDED_EXPERIENCE, so any user bound above it
# compares the same as one just past it and still fits an SQL INTEGER.
USER_EXPERIENCE_CEILING = UNBOUNDED_EXPERIENCE + 1


def _user_years(value: Optional[int]) -> Optional[int]:
    return None if value is None else min(value, USER_EXPERIENCE_CEILING)


def _experience_clause():
    user_min = func.coalesce(u.c.min_experience, 0)
    level_in_user_range = exists(
        select(literal(1)).where(
            bulk_job_experience_levels.c.job_id == j.c.job_id,
            bulk_job_experience_levels.c.level >= user_min,
            or_(
                u.c.max_experience.is_(None),
                bulk_job_experience_levels.c.level <= u.c.max_experience,
            ),
        )
    )
    zero_level = exists(
        select(literal(1)).where(
            bulk_job_experience_levels.c.job_id == j.c.job_id,
            bulk_job_experience_levels.c.level == 0,
        )
    )

    return or_(
        and_(
            u.c.status == UserStatus.STUDENT_POSITION.value,
            j.c.is_student_job.is_(True),
        ),
        and_(
            u.c.status == UserStatus.NO_EXPERIENCE_POSITION.value,
            or_(
                and_(j.c.discrete_experience.is_(False), j.c.min_exp <= 0, j.c.max_exp >= 0),
                and_(j.c.discrete_experience.is_(True), zero_level),
            ),
        ),
        and_(
            u.c.status == UserStatus.EXPERIENCE_POSITION.value,
            or_(
                and_(
                    j.c.discrete_experience.is_(False),
                    user_min <= j.c.max_exp,
                    or_(u.c.max_experience.is_(None), u.c.max_experience >= j.c.min_exp),
                ),
                and_(j.c.discrete_experience.is_(True), level_in_user_range),
            ),
        ),
    )


def _domain_clause():
    user_has = exists(select(literal(1)).where(bulk_user_domains.c.user_id == u.c.user_id))
    job_has = exists(select(literal(1)).where(bulk_job_domains.c.job_id == j.c.job_id))
    shared = exists(
        select(literal(1))
        .select_from(
            bulk_user_domains.join(
                bulk_job_domains, bulk_user_domains.c.domain == bulk_job_domains.c.domain
            )
        )
        .where(bulk_user_domains.c.user_id == u.c.user_id, bulk_job_domains.c.job_id == j.c.job_id)
    )
    return or_(not_(user_has), not_(job_has), shared)


def _location_clause():
    user_has = exists(select(literal(1)).where(bulk_user_locations.c.user_id == u.c.user_id))
    job_has = exists(select(literal(1)).where(bulk_job_locations.c.job_id == j.c.job_id))
    user_remote = exists(
        select(literal(1)).where(
            bulk_user_locations.c.user_id == u.c.user_id,
            bulk_user_locations.c.location == REMOTE,
        )
    )
    job_remote = exists(
        select(literal(1)).where(
            bulk_job_locations.c.job_id == j.c.job_id,
            bulk_job_locations.c.location == REMOTE,
        )
    )
    shared = exists(
        select(literal(1))
        .select_from(
            bulk_user_locations.join(
                bulk_job_locations,
                bulk_user_locations.c.location == bulk_job_locations.c.location,
            )
        )
        .where(
            bulk_user_locations.c.user_id == u.c.user_id,
            bulk_job_locations.c.job_id == j.c.job_id,
        )
    )
    return or_(not_(user_has), not_(job_has), user_remote, job_remote, shared)


def _leadership_clause():
    no_level = j.c.leadership_level.is_(None)
    level_accepted = exists(
        select(literal(1)).where(
            bulk_user_management_levels.c.user_id == u.c.user_id,
            bulk_user_management_levels.c.level == j.c.leadership_level,
        )
    )
    is_experienced = u.c.status == UserStatus.EXPERIENCE_POSITION.value

    return or_(
        and_(
            or_(
                not_(is_experienced),
                u.c.management_interest.in_(
                    [ManagementInterest.NONE.value, ManagementInterest.NO_MANAGEMENT.value]
                ),
            ),
            no_level,
        ),
        and_(
            is_experienced,
            u.c.management_interest == ManagementInterest.MANAGEMENT_ONLY.value,
            not_(no_level),
            level_accepted,
        ),
        and_(
            is_experienced,
            u.c.management_interest == ManagementInterest.MANAGEMENT_AND_INDIVIDUAL.value,
            or_(no_level, level_accepted),
        ),
    )


def build_match_query():
    """SELECT of every compatible (user, job) pair in the staged tables."""
    return (
        select(
            u.c.user_id,
            u.c.status.label("user_status"),
            j.c.job_id,
            j.c.title,
            j.c.url,
        )
        .select_from(u.join(j, true()))
        .where(
            _domain_clause(),
            _location_clause(),
            _experience_clause(),
            _leadership_clause(),
        )
    )


def build_notify_query(student_cutoff: str, experienced_cutoff: str):
    """Compatible pairs that the cooldown allows notifying.

    Args:
        student_cutoff: ISO date; student/no-experience pairs last sent
            strictly before it may be re-notified
        experienced_cutoff: Same for experience_position users
    """
    matches = build_match_query().subquery("matches")
    history = NotificationHistoryModel.__table__
    last_sent = (
        select(
            history.c.user_id,
            history.c.job_id,
            func.max(history.c.sent_at).label("last_sent_at"),
        )
        .group_by(history.c.user_id, history.c.job_id)
        .subquery("last_sent")
    )
    last_date = func.substr(last_sent.c.last_sent_at, 1, 10)

    return (
        select(matches)
        .select_from(
            matches.outerjoin(
                last_sent,
                and_(
                    last_sent.c.user_id == matches.c.user_id,
                    last_sent.c.job_id == matches.c.job_id,
                ),
            )
        )
        .where(
            or_(
                last_sent.c.last_sent_at.is_(None),
                and_(
                    matches.c.user_status == UserStatus.EXPERIENCE_POSITION.value,
                    last_date < experienced_cutoff,
                ),
                and_(
                    matches.c.user_status != UserStatus.EXPERIENCE_POSITION.value,
                    last_date < student_cutoff,
                ),
            )
        )
        .order_by(matches.c.user_id, matches.c.job_id)
    )


class BulkMatcher:
    """Evaluates all staged (user, job) pairs in one SQL statement.

    Produces exactly the candidate set the row-at-a-time MatchEngine would
    produce for the same inputs. Requires the SQL-backed notification history
    when throttling.
    """

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        student_cooldown_days: int = DEFAULT_STUDENT_COOLDOWN_DAYS,
        experienced_cooldown_days: int = DEFAULT_EXPERIENCED_COOLDOWN_DAYS,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize BulkMatcher.

        Args:
            session_factory: Context manager factory yielding a Session
            student_cooldown_days: Cooldown for student and no-experience users
            experienced_cooldown_days: Cooldown for experienced users
            clock: Source of "now" for find_notifiable()
            logger_instance: Optional logger instance (defaults to module logger)
        """
        if student_cooldown_days < 0 or experienced_cooldown_days < 0:
            raise ValueError("Cooldown days must be non-negative")
        self.session_factory = session_factory
        self.student_cooldown_days = student_cooldown_days
        self.experienced_cooldown_days = experienced_cooldown_days
        self.clock = clock
        self.logger = logger_instance or logger

    def find_matches(
        self, users: Iterable[UserPreference], jobs: Iterable[NormalizedJob]
    ) -> List[MatchCandidate]:
        """Return every compatible (user, job) pair, ignoring history.

        Raises:
            PersistenceError: If the staging or the query fails
        """
        (matches,) = self._run(users, jobs, [self._match_statement()])
        return matches

    def find_notifiable(
        self,
        users: Iterable[UserPreference],
        jobs: Iterable[NormalizedJob],
        now: Optional[datetime] = None,
    ) -> List[MatchCandidate]:
        """Return compatible pairs whose cooldown allows a notification now.

        Raises:
            PersistenceError: If the staging or the query fails
        """
        (notifiable,) = self._run(users, jobs, [self._notify_statement(now)])
        return notifiable

    def match_and_throttle(
        self,
        users: Iterable[UserPreference],
        jobs: Iterable[NormalizedJob],
        now: Optional[datetime] = None,
    ) -> Tuple[List[MatchCandidate], List[MatchCandidate]]:
        """Stage once and return (all matches, notifiable matches).

        Raises:
            PersistenceError: If the staging or the query fails
        """
        matches, notifiable = self._run(
            users, jobs, [self._match_statement(), self._notify_statement(now)]
        )
        return matches, notifiable

    def _match_statement(self):
        return build_match_query().order_by(u.c.user_id, j.c.job_id)

    def _notify_statement(self, now: Optional[datetime]):
        today = utc_date(now or self.clock())
        student_cutoff = (today - timedelta(days=self.student_cooldown_days)).isoformat()
        experienced_cutoff = (today - timedelta(days=self.experienced_cooldown_days)).isoformat()
        return build_notify_query(student_cutoff, experienced_cutoff)

    def _run(self, users, jobs, statements) -> List[List[MatchCandidate]]:
        users = list(users)
        jobs = list(jobs)

        try:
            with self.session_factory() as session:
                self._stage(session, users, jobs)
                results = [session.execute(stmt).all() for stmt in statements]
                self._clear(session)
        except SQLAlchemyError as e:
            self.logger.error(f"Bulk match query failed: {e}", exc_info=True)
            raise PersistenceError(f"Bulk match query failed: {e}") from e

        candidate_lists = [
            [
                MatchCandidate(
                    user_id=row.user_id,
                    job_id=row.job_id,
                    job_title=row.title,
                    job_url=row.url,
                    user_status=UserStatus(row.user_status),
                )
                for row in rows
            ]
            for rows in results
        ]

        self.logger.info(
            "Bulk match completed",
            extra={
                "event": "matching.bulk.completed",
                "users": len(users),
                "jobs": len(jobs),
                "candidates": [len(c) for c in candidate_lists],
            },
        )
        return candidate_lists

    def _clear(self, session: Session) -> None:
        for table in BULK_TABLES:
            session.execute(delete(table))

    def _stage(self, session: Session, users: List[UserPreference], jobs: List[NormalizedJob]) -> None:
        self._clear(session)

        rows: Dict[object, list] = {table: [] for table in BULK_TABLES}

        for user in users:
            rows[bulk_users].append(
                {
                    "user_id": user.user_id,
                    "status": user.status.value,
                    "min_experience": _user_years(user.min_experience),
                    "max_experience": _user_years(user.max_experience),
                    "management_interest": user.management_interest.value,
                }
            )
            rows[bulk_user_domains].extend(
                {"user_id": user.user_id, "domain": d} for d in user.domains
            )
            rows[bulk_user_locations].extend(
                {"user_id": user.user_id, "location": loc} for loc in user.locations
            )
            rows[bulk_user_management_levels].extend(
                {"user_id": user.user_id, "level": level} for level in user.management_level
            )

        for job in jobs:
            rows[bulk_jobs].append(
                {
                    "job_id": job.id,
                    "title": job.title,
                    "url": job.url,
                    "min_exp": job.min_exp,
                    "max_exp": job.max_exp,
                    "is_student_job": job.is_student_job,
                    "leadership_level": job.leadership_level,
                    "discrete_experience": job.experience_levels is not None,
                }
            )
            rows[bulk_job_domains].extend({"job_id": job.id, "domain": d} for d in job.domains)
            rows[bulk_job_locations].extend(
                {"job_id": job.id, "location": loc} for loc in job.locations
            )
            rows[bulk_job_experience_levels].extend(
                {"job_id": job.id, "level": level} for level in (job.experience_levels or ())
            )

        for table, table_rows in rows.items():
            if table_rows:
                session.execute(insert(table), table_rows)

        self.logger.debug(
            "Staged bulk match inputs",
            extra={"event": "matching.bulk.staged", "users": len(users), "jobs": len(jobs)},
        )
