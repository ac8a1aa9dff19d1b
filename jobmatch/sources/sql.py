"""SQL-backed sources and stores built on the persistence repositories.

Each call opens its own session through ``get_session()`` so a failed write
rolls back only that write.
"""

from datetime import datetime
from typing import Callable, ContextManager, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobmatch.domain.models import (
    ExperienceRepresentation,
    MatchRecord,
    NotificationHistoryEntry,
    RawJob,
    UserPreference,
)
from jobmatch.persistence.database import get_session
from jobmatch.persistence.exceptions import PersistenceError
from jobmatch.persistence.repositories import (
    HistoryRepository,
    JobRepository,
    MatchRepository,
    UserRepository,
)

from .base import HistoryStore, JobSource, MatchStore, Pair, UserSource
from .exceptions import SourceUnavailableError, StoreWriteError

SessionFactory = Callable[[], ContextManager[Session]]


class SqlUserSource(UserSource):
    """Completed user profiles from the ``users`` table."""

    def __init__(self, session_factory: SessionFactory = get_session):
        self.session_factory = session_factory

    def iter_users(self) -> List[UserPreference]:
        try:
            with self.session_factory() as session:
                return UserRepository(session).list_completed()
        except (PersistenceError, SQLAlchemyError) as e:
            raise SourceUnavailableError(f"Cannot read users: {e}", source=self.name) from e


class SqlJobSource(JobSource):
    """Raw jobs from the ``jobs`` table."""

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        experience_representation: ExperienceRepresentation = ExperienceRepresentation.RANGE,
        limit: Optional[int] = None,
    ):
        """Initialize SqlJobSource.

        Args:
            session_factory: Context manager factory yielding a Session
            experience_representation: Encoding of experience in stored jobs
            limit: Maximum jobs read per run (None = unlimited)
        """
        self.session_factory = session_factory
        self.experience_representation = ExperienceRepresentation(experience_representation)
        self.limit = limit

    def iter_jobs(self) -> List[RawJob]:
        try:
            with self.session_factory() as session:
                return JobRepository(session).list_all(limit=self.limit)
        except (PersistenceError, SQLAlchemyError) as e:
            raise SourceUnavailableError(f"Cannot read jobs: {e}", source=self.name) from e


class SqlHistoryStore(HistoryStore):
    """Notification history in the ``match_history`` table."""

    def __init__(self, session_factory: SessionFactory = get_session):
        self.session_factory = session_factory

    def last_sent_for(self, pairs: Iterable[Pair]) -> Dict[Pair, datetime]:
        try:
            with self.session_factory() as session:
                return HistoryRepository(session).last_sent_for(pairs)
        except (PersistenceError, SQLAlchemyError) as e:
            raise SourceUnavailableError(f"Cannot read history: {e}", source=self.name) from e

    def append(self, entries: Iterable[NotificationHistoryEntry]) -> int:
        entries = list(entries)
        try:
            with self.session_factory() as session:
                repo = HistoryRepository(session)
                for entry in entries:
                    repo.append(entry)
        except (PersistenceError, SQLAlchemyError) as e:
            raise StoreWriteError(f"Cannot append history: {e}", source=self.name) from e
        return len(entries)


class SqlMatchStore(MatchStore):
    """Match records in the ``matched_jobs`` table."""

    def __init__(self, session_factory: SessionFactory = get_session):
        self.session_factory = session_factory

    def upsert(self, record: MatchRecord) -> None:
        try:
            with self.session_factory() as session:
                MatchRepository(session).upsert(record)
        except (PersistenceError, SQLAlchemyError) as e:
            raise StoreWriteError(
                f"Cannot upsert match {record.user_id} / {record.job_id}: {e}",
                source=self.name,
            ) from e
