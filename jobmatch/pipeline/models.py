"""Data models for reconciliation run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from jobmatch.matching.models import MatchCandidate


class RunStatus(str, Enum):
    """Outcome of a reconciliation run."""

    SUCCESS = "success"
    PARTIAL = "partial"  # some writes failed, counts show attempted vs committed
    FAILED = "failed"  # nothing was written
    SKIPPED = "skipped"  # a previous run still held the lock


@dataclass
class Selection:
    """What a matching strategy decided for one run.

    Attributes:
        candidates_evaluated: Number of (user, job) pairs evaluated
        matches: Pairs that passed every predicate
        to_notify: Subset of matches the throttle allows notifying now
    """

    candidates_evaluated: int = 0
    matches: List[MatchCandidate] = field(default_factory=list)
    to_notify: List[MatchCandidate] = field(default_factory=list)


@dataclass
class RunResult:
    """
    Summary of one reconciliation run.

    Attributes:
        run_id: Unique identifier of the run (also bound into log context)
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        status: success, partial, failed or skipped
        strategy: Matching strategy used ("row" or "bulk")
        users_loaded: Completed user profiles read
        jobs_loaded: Identifiable jobs after normalization
        candidates_evaluated: (user, job) pairs evaluated
        matches_accepted: Pairs that passed every predicate
        notifications_attempted: Accepted pairs the throttle let through
        matches_committed: Match records successfully upserted
        history_committed: History entries successfully appended
        error: First error message, for failed or partial runs
        total_duration_seconds: Wall-clock duration of the run
    """

    run_id: str
    run_started_at: datetime
    run_finished_at: datetime
    status: RunStatus = RunStatus.SUCCESS
    strategy: str = "row"
    users_loaded: int = 0
    jobs_loaded: int = 0
    candidates_evaluated: int = 0
    matches_accepted: int = 0
    notifications_attempted: int = 0
    matches_committed: int = 0
    history_committed: int = 0
    error: Optional[str] = None
    total_duration_seconds: float = 0.0

    def __post_init__(self):
        """Compute duration if not set."""
        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    @property
    def notifications_sent(self) -> int:
        """Notifications recorded in history during this run."""
        return self.history_committed

    @property
    def skipped(self) -> bool:
        return self.status is RunStatus.SKIPPED

    @property
    def had_errors(self) -> bool:
        return self.status in (RunStatus.FAILED, RunStatus.PARTIAL)
