"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for the user, job, match and
notification-history tables, the scratch tables used by the bulk matcher, and
conversion methods between ORM models and domain models.
"""

import json
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import Boolean, Column, Index, Integer, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobmatch.domain.models import MatchRecord, NotificationHistoryEntry, RawJob, UserPreference
from jobmatch.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()

COMPLETED_STATE = "completed"


class UserModel(Base):
    """ORM model for users table.

    Stores user preferences together with the profile state; only
    ``completed`` profiles are handed to the matcher.
    """

    __tablename__ = "users"

    user_id = Column(String(255), primary_key=True, nullable=False)
    state = Column(String(50), nullable=False, default=COMPLETED_STATE)
    full_name = Column(String(255), nullable=True)

    status = Column(String(50), nullable=False)
    min_experience = Column(Integer, nullable=True)
    max_experience = Column(Integer, nullable=True)
    degree = Column(String(255), nullable=True)
    management_interest = Column(String(50), nullable=True)

    # Set-valued preferences stored as JSON arrays
    management_level = Column(Text, nullable=True)
    domains = Column(Text, nullable=True)
    locations = Column(Text, nullable=True)

    updated_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_users_state", "state"),)

    def to_domain(self) -> UserPreference:
        """Convert ORM model to domain model."""
        return UserPreference(
            user_id=self.user_id,
            status=self.status,
            min_experience=self.min_experience,
            max_experience=self.max_experience,
            degree=self.degree,
            management_interest=self.management_interest,
            management_level=_load_list(self.management_level),
            domains=_load_list(self.domains),
            locations=_load_list(self.locations),
            full_name=self.full_name,
        )

    @classmethod
    def from_domain(
        cls, user: UserPreference, state: str = COMPLETED_STATE, updated_at: Optional[datetime] = None
    ) -> "UserModel":
        """Create ORM model from domain model."""
        return cls(
            user_id=user.user_id,
            state=state,
            full_name=user.full_name,
            status=user.status.value,
            min_experience=user.min_experience,
            max_experience=user.max_experience,
            degree=user.degree,
            management_interest=user.management_interest.value,
            management_level=_dump_list(user.management_level),
            domains=_dump_list(user.domains),
            locations=_dump_list(user.locations),
            updated_at=_format_datetime(updated_at),
        )


class JobModel(Base):
    """ORM model for jobs table.

    Stores raw job records exactly as the job feed delivered them.
    """

    __tablename__ = "jobs"

    job_id = Column(String(512), primary_key=True, nullable=False)

    title = Column(Text, nullable=True)
    source_url = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    locations = Column(Text, nullable=True)
    job_scope = Column(Text, nullable=True)
    experience_level = Column(Text, nullable=True)
    leadership_level = Column(Text, nullable=True)
    experience_levels = Column(Text, nullable=True)

    ingested_at = Column(String(50), nullable=True)

    def to_domain(self) -> RawJob:
        """Convert ORM model to domain model."""
        levels = _load_list(self.experience_levels) if self.experience_levels else None
        return RawJob(
            title=self.title,
            source_url=self.source_url,
            url=self.url,
            locations=self.locations,
            job_scope=self.job_scope,
            experience_level=self.experience_level,
            leadership_level=self.leadership_level,
            experience_levels=levels,
        )

    @classmethod
    def from_domain(cls, raw_job: RawJob, ingested_at: Optional[datetime] = None) -> "JobModel":
        """Create ORM model from domain model."""
        return cls(
            job_id=raw_job.job_id,
            title=raw_job.title,
            source_url=raw_job.source_url,
            url=raw_job.url,
            locations=raw_job.locations,
            job_scope=raw_job.job_scope,
            experience_level=raw_job.experience_level,
            leadership_level=raw_job.leadership_level,
            experience_levels=(
                json.dumps(list(raw_job.experience_levels))
                if raw_job.experience_levels is not None
                else None
            ),
            ingested_at=_format_datetime(ingested_at),
        )


class NotificationHistoryModel(Base):
    """ORM model for match_history table.

    Append-only ledger of notifications; the matcher reads MAX(sent_at)
    per (user_id, job_id).
    """

    __tablename__ = "match_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    job_id = Column(String(512), nullable=False)

    # Timestamp (stored as ISO 8601 string, fixed width so MAX() is chronological)
    sent_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_match_history_pair", "user_id", "job_id"),)

    def to_domain(self) -> NotificationHistoryEntry:
        """Convert ORM model to domain model."""
        return NotificationHistoryEntry(
            user_id=self.user_id,
            job_id=self.job_id,
            sent_at=_parse_datetime(self.sent_at),
        )

    @classmethod
    def from_domain(cls, entry: NotificationHistoryEntry) -> "NotificationHistoryModel":
        """Create ORM model from domain model."""
        return cls(
            user_id=entry.user_id,
            job_id=entry.job_id,
            sent_at=_format_datetime(entry.sent_at),
        )


class MatchedJobModel(Base):
    """ORM model for matched_jobs table.

    One row per (user_id, job_id); re-matches merge into the existing row.
    """

    __tablename__ = "matched_jobs"

    user_id = Column(String(255), primary_key=True, nullable=False)
    job_id = Column(String(512), primary_key=True, nullable=False)

    title = Column(Text, nullable=False, default="")
    url = Column(Text, nullable=False, default="")
    status = Column(String(50), nullable=False, default="new")
    matched_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_matched_jobs_user", "user_id"),)

    def to_domain(self) -> MatchRecord:
        """Convert ORM model to domain model."""
        return MatchRecord(
            user_id=self.user_id,
            job_id=self.job_id,
            title=self.title,
            url=self.url,
            status=self.status,
            matched_at=_parse_datetime(self.matched_at),
        )

    @classmethod
    def from_domain(cls, record: MatchRecord) -> "MatchedJobModel":
        """Create ORM model from domain model."""
        return cls(
            user_id=record.user_id,
            job_id=record.job_id,
            title=record.title,
            url=record.url,
            status=record.status,
            matched_at=_format_datetime(record.matched_at),
        )


# Scratch tables for the bulk matcher. They hold one run's normalized users
# and jobs and are cleared at the start of every bulk evaluation.

bulk_users = Table(
    "bulk_users",
    Base.metadata,
    Column("user_id", String(255), primary_key=True),
    Column("status", String(50), nullable=False),
    Column("min_experience", Integer, nullable=True),
    Column("max_experience", Integer, nullable=True),
    Column("management_interest", String(50), nullable=False),
)

bulk_user_domains = Table(
    "bulk_user_domains",
    Base.metadata,
    Column("user_id", String(255), primary_key=True),
    Column("domain", String(255), primary_key=True),
)

bulk_user_locations = Table(
    "bulk_user_locations",
    Base.metadata,
    Column("user_id", String(255), primary_key=True),
    Column("location", String(255), primary_key=True),
)

bulk_user_management_levels = Table(
    "bulk_user_management_levels",
    Base.metadata,
    Column("user_id", String(255), primary_key=True),
    Column("level", String(255), primary_key=True),
)

bulk_jobs = Table(
    "bulk_jobs",
    Base.metadata,
    Column("job_id", String(512), primary_key=True),
    Column("title", Text, nullable=False),
    Column("url", Text, nullable=False),
    Column("min_exp", Integer, nullable=False),
    Column("max_exp", Integer, nullable=False),
    Column("is_student_job", Boolean, nullable=False),
    Column("leadership_level", String(255), nullable=True),
    Column("discrete_experience", Boolean, nullable=False),
)

bulk_job_domains = Table(
    "bulk_job_domains",
    Base.metadata,
    Column("job_id", String(512), primary_key=True),
    Column("domain", String(255), primary_key=True),
)

bulk_job_locations = Table(
    "bulk_job_locations",
    Base.metadata,
    Column("job_id", String(512), primary_key=True),
    Column("location", String(255), primary_key=True),
)

bulk_job_experience_levels = Table(
    "bulk_job_experience_levels",
    Base.metadata,
    Column("job_id", String(512), primary_key=True),
    Column("level", Integer, primary_key=True),
)

BULK_TABLES = (
    bulk_users,
    bulk_user_domains,
    bulk_user_locations,
    bulk_user_management_levels,
    bulk_jobs,
    bulk_job_domains,
    bulk_job_locations,
    bulk_job_experience_levels,
)


def _dump_list(values: Iterable) -> str:
    """Serialize a set-valued preference as a sorted JSON array."""
    return json.dumps(sorted(values))


def _load_list(raw: Optional[str]) -> List:
    """Deserialize a JSON array column; blank or malformed becomes []."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed JSON list column: {raw!r}")
        return []
    return value if isinstance(value, list) else []


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 string for database storage.

    Args:
        dt: Datetime object (naive values are treated as UTC)

    Returns:
        ISO 8601 formatted string or None
    """
    if dt is None:
        return None
    return format_timestamp(dt, include_microseconds=True)


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse ISO 8601 string to datetime object.

    Args:
        dt_str: ISO 8601 formatted string

    Returns:
        Timezone-aware datetime in UTC, or None if blank or unparseable
    """
    return parse_iso_datetime(dt_str)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        from sqlalchemy import inspect

        inspector = inspect(engine)
        tables = inspector.get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
