"""Data access layer (repositories) for persistence operations.

This module provides repository classes for user preferences, raw jobs,
notification history and match records. Repositories encapsulate database
operations and return domain models rather than ORM models.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobmatch.domain.models import MatchRecord, NotificationHistoryEntry, RawJob, UserPreference

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    COMPLETED_STATE,
    JobModel,
    MatchedJobModel,
    NotificationHistoryModel,
    UserModel,
    _dump_list,
    _format_datetime,
    _parse_datetime,
)

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]


class UserRepository:
    """Repository for user preference records."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_by_id(self, user_id: str) -> Optional[UserPreference]:
        """Retrieve a user's preferences regardless of profile state."""
        try:
            user_model = self.session.get(UserModel, user_id)
            return user_model.to_domain() if user_model else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user: {e}") from e

    def list_completed(self) -> List[UserPreference]:
        """Query every user whose profile is completed.

        Returns:
            List of UserPreference domain models ordered by user_id

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(UserModel)
                .where(UserModel.state == COMPLETED_STATE)
                .order_by(UserModel.user_id)
            )
            result = self.session.execute(stmt)
            return [user_model.to_domain() for user_model in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing completed users: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list users: {e}") from e

    def upsert(
        self,
        user: UserPreference,
        state: str = COMPLETED_STATE,
        updated_at: Optional[datetime] = None,
    ) -> UserPreference:
        """Insert a new user or replace an existing user's preferences.

        Args:
            user: UserPreference domain model to persist
            state: Profile state (only "completed" users are matched)
            updated_at: Optional modification timestamp

        Returns:
            Persisted UserPreference domain model

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            existing = self.session.get(UserModel, user.user_id)

            if existing:
                existing.state = state
                existing.full_name = user.full_name
                existing.status = user.status.value
                existing.min_experience = user.min_experience
                existing.max_experience = user.max_experience
                existing.degree = user.degree
                existing.management_interest = user.management_interest.value
                existing.management_level = _dump_list(user.management_level)
                existing.domains = _dump_list(user.domains)
                existing.locations = _dump_list(user.locations)
                existing.updated_at = _format_datetime(updated_at)

                self.session.flush()
                return existing.to_domain()

            user_model = UserModel.from_domain(user, state=state, updated_at=updated_at)
            self.session.add(user_model)
            self.session.flush()
            return user_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting user {user.user_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert user due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting user {user.user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert user: {e}") from e


class JobRepository:
    """Repository for raw job records."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def list_all(self, limit: Optional[int] = None) -> List[RawJob]:
        """Query raw jobs ordered by job_id.

        Args:
            limit: Optional maximum number of jobs to return

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(JobModel).order_by(JobModel.job_id)
            if limit is not None:
                stmt = stmt.limit(limit)
            result = self.session.execute(stmt)
            return [job_model.to_domain() for job_model in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list jobs: {e}") from e

    def upsert(self, raw_job: RawJob, ingested_at: Optional[datetime] = None) -> RawJob:
        """Insert a new raw job or replace the stored copy.

        Raises:
            DataIntegrityError: If the job has no identifier
            PersistenceError: If database error occurs
        """
        if raw_job.job_id is None:
            raise DataIntegrityError("Cannot store a job without source_url or url")

        try:
            existing = self.session.get(JobModel, raw_job.job_id)
            if existing:
                self.session.delete(existing)
                self.session.flush()

            job_model = JobModel.from_domain(raw_job, ingested_at=ingested_at)
            self.session.add(job_model)
            self.session.flush()
            return job_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting job {raw_job.job_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting job {raw_job.job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert job: {e}") from e

    def bulk_upsert(self, raw_jobs: Iterable[RawJob]) -> List[RawJob]:
        """Upsert multiple raw jobs in a single transaction."""
        return [self.upsert(raw_job) for raw_job in raw_jobs]


class HistoryRepository:
    """Repository for the append-only notification history."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def last_sent_for(self, pairs: Iterable[Pair]) -> Dict[Pair, datetime]:
        """Look up the most recent send for each requested (user_id, job_id).

        Pairs without history are absent from the result.

        Args:
            pairs: (user_id, job_id) tuples

        Returns:
            Mapping of pair to its latest sent_at (UTC)

        Raises:
            PersistenceError: If database error occurs
        """
        wanted: Set[Pair] = set(pairs)
        if not wanted:
            return {}

        user_ids = {user_id for user_id, _ in wanted}
        job_ids = {job_id for _, job_id in wanted}

        try:
            stmt = (
                select(
                    NotificationHistoryModel.user_id,
                    NotificationHistoryModel.job_id,
                    func.max(NotificationHistoryModel.sent_at),
                )
                .where(
                    NotificationHistoryModel.user_id.in_(user_ids),
                    NotificationHistoryModel.job_id.in_(job_ids),
                )
                .group_by(NotificationHistoryModel.user_id, NotificationHistoryModel.job_id)
            )
            result = self.session.execute(stmt)

            last_sent: Dict[Pair, datetime] = {}
            for user_id, job_id, sent_at in result.all():
                if (user_id, job_id) in wanted:
                    last_sent[(user_id, job_id)] = _parse_datetime(sent_at)
            return last_sent

        except SQLAlchemyError as e:
            logger.error(f"Error reading notification history: {e}", exc_info=True)
            raise PersistenceError(f"Failed to read notification history: {e}") from e

    def append(self, entry: NotificationHistoryEntry) -> NotificationHistoryEntry:
        """Append one history entry.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            history_model = NotificationHistoryModel.from_domain(entry)
            self.session.add(history_model)
            self.session.flush()

            logger.debug(
                f"Recorded notification for {entry.user_id} / {entry.job_id}",
                extra={
                    "event": "history.appended",
                    "user_id": entry.user_id,
                    "job_id": entry.job_id,
                },
            )
            return history_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error appending history: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to append history due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error appending history: {e}", exc_info=True)
            raise PersistenceError(f"Failed to append history: {e}") from e

    def get_history(self, user_id: str, job_id: str) -> List[NotificationHistoryEntry]:
        """Get every send for a pair, oldest first."""
        try:
            stmt = (
                select(NotificationHistoryModel)
                .where(
                    NotificationHistoryModel.user_id == user_id,
                    NotificationHistoryModel.job_id == job_id,
                )
                .order_by(NotificationHistoryModel.sent_at.asc())
            )
            result = self.session.execute(stmt)
            return [model.to_domain() for model in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving history for {user_id} / {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve history: {e}") from e


class MatchRepository:
    """Repository for per-user match records."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def upsert(self, record: MatchRecord) -> MatchRecord:
        """Create or merge a match record keyed by (user_id, job_id).

        An existing record keeps its identity; title, url, status and
        matched_at are overwritten.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            existing = self.session.get(MatchedJobModel, (record.user_id, record.job_id))

            if existing:
                existing.title = record.title
                existing.url = record.url
                existing.status = record.status
                existing.matched_at = _format_datetime(record.matched_at)
                self.session.flush()
                return existing.to_domain()

            match_model = MatchedJobModel.from_domain(record)
            self.session.add(match_model)
            self.session.flush()
            return match_model.to_domain()

        except IntegrityError as e:
            logger.error(
                f"Integrity error upserting match {record.user_id} / {record.job_id}: {e}",
                exc_info=True,
            )
            raise DataIntegrityError(f"Failed to upsert match due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting match {record.user_id} / {record.job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert match: {e}") from e

    def get(self, user_id: str, job_id: str) -> MatchRecord:
        """Retrieve a match record.

        Raises:
            RecordNotFoundError: If the pair has never matched
            PersistenceError: If database error occurs
        """
        try:
            match_model = self.session.get(MatchedJobModel, (user_id, job_id))
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving match {user_id} / {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve match: {e}") from e

        if match_model is None:
            raise RecordNotFoundError(f"No match recorded for {user_id} / {job_id}")
        return match_model.to_domain()

    def list_for_user(self, user_id: str) -> List[MatchRecord]:
        """List a user's match records, newest first."""
        try:
            stmt = (
                select(MatchedJobModel)
                .where(MatchedJobModel.user_id == user_id)
                .order_by(MatchedJobModel.matched_at.desc())
            )
            result = self.session.execute(stmt)
            return [model.to_domain() for model in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing matches for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list matches: {e}") from e
