"""Capability interfaces injected into the reconciliation pipeline.

The pipeline only ever talks to these four abstractions; concrete backends
(SQL repositories, YAML files, in-memory test doubles) are chosen at
construction time.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, Tuple

from jobmatch.domain.models import (
    ExperienceRepresentation,
    MatchRecord,
    NotificationHistoryEntry,
    RawJob,
    UserPreference,
)

Pair = Tuple[str, str]


class UserSource(ABC):
    """Read-only access to user preferences."""

    name = "users"

    @abstractmethod
    def iter_users(self) -> Iterable[UserPreference]:
        """Yield every user whose profile is completed.

        Raises:
            SourceUnavailableError: If the backing store cannot be read
        """


class JobSource(ABC):
    """Read-only access to raw job records.

    Attributes:
        experience_representation: How this source encodes acceptable
            experience (range parsed from text, or discrete levels)
    """

    name = "jobs"
    experience_representation: ExperienceRepresentation = ExperienceRepresentation.RANGE

    @abstractmethod
    def iter_jobs(self) -> Iterable[RawJob]:
        """Yield raw jobs.

        Raises:
            SourceUnavailableError: If the backing store cannot be read
        """


class HistoryStore(ABC):
    """Append-only notification history."""

    name = "history"

    @abstractmethod
    def last_sent_for(self, pairs: Iterable[Pair]) -> Dict[Pair, datetime]:
        """Most recent sent_at for each requested pair; pairs never sent are absent.

        Raises:
            SourceUnavailableError: If history cannot be read
        """

    @abstractmethod
    def append(self, entries: Iterable[NotificationHistoryEntry]) -> int:
        """Append entries atomically and return how many were committed.

        Raises:
            StoreWriteError: If nothing could be committed
        """


class MatchStore(ABC):
    """Per-user match records keyed by (user_id, job_id)."""

    name = "matches"

    @abstractmethod
    def upsert(self, record: MatchRecord) -> None:
        """Create or merge a match record.

        Raises:
            StoreWriteError: If the write fails
        """
