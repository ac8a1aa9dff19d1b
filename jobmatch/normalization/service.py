"""Job normalization service for converting RawJob to NormalizedJob.

This module implements the normalization logic that:
1. Splits location text into canonical location tokens
2. Resolves free-text job scopes against the canonical domain vocabulary
3. Parses the experience requirement (bounds, degree marker)
4. Canonicalizes the leadership level
"""

import logging
from typing import Iterable, Iterator, Optional

from jobmatch.domain.models import (
    UNBOUNDED_EXPERIENCE,
    ExperienceRepresentation,
    NormalizedJob,
    RawJob,
)
from jobmatch.domain.vocabulary import resolve_domain
from jobmatch.logging import get_logger

from .experience import parse_experience
from .text import canonical_token, split_raw, split_tokens

logger = get_logger(__name__, component="normalization")


class JobNormalizer:
    """Normalizes RawJob instances into canonical NormalizedJob models.

    Responsibilities:
    - Derive the stable job id (canonical URL)
    - Produce canonical location and domain sets
    - Parse experience bounds and the student-job flag
    - Canonicalize the leadership level
    - Never fail: malformed fields fall back to documented defaults
    """

    def __init__(
        self,
        experience_representation: ExperienceRepresentation = ExperienceRepresentation.RANGE,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize JobNormalizer.

        Args:
            experience_representation: How the job source encodes experience
            logger_instance: Logger instance (defaults to module logger)
        """
        self.experience_representation = ExperienceRepresentation(experience_representation)
        self.logger = logger_instance or logger

    def normalize(self, raw_job: RawJob) -> NormalizedJob:
        """Normalize a single RawJob.

        Args:
            raw_job: Raw job from a job source

        Returns:
            NormalizedJob with defaults applied to anything unparseable
        """
        job_id = raw_job.job_id or ""

        domains = set()
        unresolved = []
        for scope in split_raw(raw_job.job_scope):
            domain_id = resolve_domain(scope)
            if domain_id:
                domains.add(domain_id)
            else:
                unresolved.append(scope)

        if unresolved:
            self.logger.debug(
                f"Dropped unresolved job scopes for {job_id}",
                extra={
                    "event": "normalization.scope.unresolved",
                    "job_id": job_id,
                    "scopes": unresolved,
                },
            )

        experience = parse_experience(raw_job.experience_level)

        experience_levels = None
        if self.experience_representation is ExperienceRepresentation.DISCRETE:
            experience_levels = frozenset(
                min(level, UNBOUNDED_EXPERIENCE)
                for level in (raw_job.experience_levels or [])
                if level >= 0
            )

        job = NormalizedJob(
            id=job_id,
            title=raw_job.title or "",
            url=raw_job.url or raw_job.source_url or "",
            locations=split_tokens(raw_job.locations),
            domains=frozenset(domains),
            min_exp=experience.min_exp,
            max_exp=experience.max_exp,
            is_student_job=experience.is_student_job,
            leadership_level=canonical_token(raw_job.leadership_level),
            experience_levels=experience_levels,
        )

        self.logger.debug(
            "Normalized job",
            extra={
                "event": "normalization.job.normalized",
                "job_id": job_id,
                "experience_rule": experience.rule.value,
                "min_exp": job.min_exp,
                "max_exp": job.max_exp,
                "is_student_job": job.is_student_job,
                "domain_count": len(job.domains),
                "location_count": len(job.locations),
            },
        )

        return job

    def process_batch(self, raw_jobs: Iterable[RawJob]) -> Iterator[NormalizedJob]:
        """Normalize a batch of raw jobs, skipping records without an identifier.

        Jobs are de-duplicated by id; the first occurrence wins.

        Args:
            raw_jobs: Iterable of RawJob records

        Yields:
            NormalizedJob for each identifiable job
        """
        seen = set()
        for raw_job in raw_jobs:
            job = self.normalize(raw_job)
            if not job.id:
                self.logger.warning(
                    "Skipping job without source_url or url",
                    extra={
                        "event": "normalization.job.missing_id",
                        "title": raw_job.title,
                    },
                )
                continue
            if job.id in seen:
                self.logger.debug(
                    f"Skipping duplicate job {job.id}",
                    extra={"event": "normalization.job.duplicate", "job_id": job.id},
                )
                continue
            seen.add(job.id)
            yield job
