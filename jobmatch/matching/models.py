"""Data models for the matching engine.

This module defines the candidate produced for a compatible (user, job) pair
and the per-predicate diagnostic result used for logging.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jobmatch.domain.models import UserStatus


@dataclass(frozen=True)
class MatchCandidate:
    """A (user, job) pair that passed every compatibility predicate.

    Ephemeral: consumed immediately by the notification throttle.

    Attributes:
        user_id: Matched user
        job_id: Matched job (canonical URL)
        job_title: Job title for the persisted match
        job_url: Job link for the persisted match
        user_status: The user's status, which selects the throttle cooldown
    """

    user_id: str
    job_id: str
    job_title: str
    job_url: str
    user_status: UserStatus

    @property
    def key(self) -> tuple:
        """(user_id, job_id) key used by history lookups."""
        return (self.user_id, self.job_id)


@dataclass
class MatchResult:
    """Per-predicate outcome of evaluating a (user, job) pair.

    Attributes:
        user_id: Evaluated user
        job_id: Evaluated job
        outcomes: Predicate name -> pass/fail, in evaluation order. When
            evaluation short-circuits, predicates after the first failure are absent.
        candidate: The MatchCandidate when every predicate passed
    """

    user_id: str
    job_id: str
    outcomes: Dict[str, bool] = field(default_factory=dict)
    candidate: Optional[MatchCandidate] = None

    @property
    def is_match(self) -> bool:
        """True if every predicate passed."""
        return self.candidate is not None

    @property
    def failed_predicates(self) -> List[str]:
        """Names of predicates that failed."""
        return [name for name, passed in self.outcomes.items() if not passed]
