"""Match engine combining the compatibility predicates.

This module implements the row-at-a-time matching strategy that:
1. Normalizes a raw job (once) or accepts an already normalized job
2. Applies the domain, location, experience and leadership predicates with
   short-circuit AND
3. Emits a MatchCandidate when all of them pass
"""

import logging
from typing import Dict, Optional

from jobmatch.domain.models import NormalizedJob, RawJob, UserPreference
from jobmatch.logging import get_logger
from jobmatch.normalization.service import JobNormalizer

from .criteria import PREDICATES, Predicate
from .models import MatchCandidate, MatchResult

logger = get_logger(__name__, component="matching")


class MatchEngine:
    """Evaluates (user, job) pairs against the compatibility predicates.

    Responsibilities:
    - Normalize raw jobs through the shared JobNormalizer
    - Apply every predicate (logical AND, short-circuit)
    - Produce a MatchCandidate for compatible pairs
    - Log the per-predicate outcome for diagnostics
    """

    def __init__(
        self,
        normalizer: Optional[JobNormalizer] = None,
        predicates: Optional[Dict[str, Predicate]] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize MatchEngine.

        Args:
            normalizer: JobNormalizer used by evaluate() (defaults to range encoding)
            predicates: Ordered predicate mapping (defaults to PREDICATES)
            logger_instance: Optional logger instance (defaults to module logger)
        """
        self.normalizer = normalizer or JobNormalizer()
        self.predicates = predicates or PREDICATES
        self.logger = logger_instance or logger

    def evaluate(self, user: UserPreference, raw_job: RawJob) -> Optional[MatchCandidate]:
        """Normalize a raw job and evaluate it for a user.

        Args:
            user: User preferences
            raw_job: Raw job record

        Returns:
            MatchCandidate if every predicate passes, None otherwise
        """
        job = self.normalizer.normalize(raw_job)
        return self.evaluate_normalized(user, job)

    def evaluate_normalized(self, user: UserPreference, job: NormalizedJob) -> Optional[MatchCandidate]:
        """Evaluate an already normalized job for a user."""
        return self.explain(user, job).candidate

    def explain(self, user: UserPreference, job: NormalizedJob) -> MatchResult:
        """Evaluate a pair and report each predicate's outcome.

        Evaluation stops at the first failing predicate.

        Args:
            user: User preferences
            job: Normalized job

        Returns:
            MatchResult with outcomes and the candidate (if matched)
        """
        result = MatchResult(user_id=user.user_id, job_id=job.id)

        for name, predicate in self.predicates.items():
            passed = predicate(user, job)
            result.outcomes[name] = passed
            if not passed:
                self.logger.debug(
                    f"Pair rejected: {user.user_id} / {job.id}",
                    extra={
                        "event": "matching.pair.rejected",
                        "user_id": user.user_id,
                        "job_id": job.id,
                        "failed_predicate": name,
                    },
                )
                return result

        result.candidate = MatchCandidate(
            user_id=user.user_id,
            job_id=job.id,
            job_title=job.title,
            job_url=job.url,
            user_status=user.status,
        )

        self.logger.debug(
            f"Pair matched: {user.user_id} / {job.id}",
            extra={
                "event": "matching.pair.matched",
                "user_id": user.user_id,
                "job_id": job.id,
            },
        )
        return result
