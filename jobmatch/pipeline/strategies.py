"""Matching strategies used by the reconciliation pipeline.

Both strategies take the same inputs and return the same Selection:

- RowStrategy evaluates pairs in-process with MatchEngine and applies
  NotificationThrottle against a bulk-loaded history snapshot.
- BulkStrategy delegates matching and throttling to BulkMatcher's SQL.
"""

from datetime import datetime
from typing import List

from jobmatch.domain.models import NormalizedJob, UserPreference
from jobmatch.logging import get_logger
from jobmatch.matching.bulk import BulkMatcher
from jobmatch.matching.engine import MatchEngine
from jobmatch.matching.models import MatchCandidate
from jobmatch.sources.base import HistoryStore
from jobmatch.throttle.policy import NotificationThrottle

from .models import Selection

logger = get_logger(__name__, component="pipeline")


class RowStrategy:
    """Row-at-a-time matching followed by the in-process throttle."""

    name = "row"

    def __init__(self, engine: MatchEngine, throttle: NotificationThrottle):
        self.engine = engine
        self.throttle = throttle

    def select(
        self,
        users: List[UserPreference],
        jobs: List[NormalizedJob],
        history_store: HistoryStore,
        now: datetime,
    ) -> Selection:
        """Evaluate every pair, then throttle the matches.

        History is read once, for the matched pairs only, before anything
        is written.

        Raises:
            SourceUnavailableError: If history cannot be read
        """
        selection = Selection()
        matches: List[MatchCandidate] = []

        for user in users:
            for job in jobs:
                selection.candidates_evaluated += 1
                candidate = self.engine.evaluate_normalized(user, job)
                if candidate is not None:
                    matches.append(candidate)

        last_sent = history_store.last_sent_for(c.key for c in matches)

        selection.matches = matches
        selection.to_notify = [
            c for c in matches if self.throttle.should_notify(c, last_sent.get(c.key), now=now)
        ]
        return selection


class BulkStrategy:
    """One staged SQL evaluation; history comes from the ``match_history`` table."""

    name = "bulk"

    def __init__(self, matcher: BulkMatcher):
        self.matcher = matcher

    def select(
        self,
        users: List[UserPreference],
        jobs: List[NormalizedJob],
        history_store: HistoryStore,
        now: datetime,
    ) -> Selection:
        """Match and throttle in SQL.

        ``history_store`` is unused: the notify query joins the history table
        directly, so it must be the SQL-backed store of the same database.

        Raises:
            PersistenceError: If staging or the query fails
        """
        matches, to_notify = self.matcher.match_and_throttle(users, jobs, now=now)
        return Selection(
            candidates_evaluated=len(users) * len(jobs),
            matches=matches,
            to_notify=to_notify,
        )
