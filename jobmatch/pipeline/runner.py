"""Reconciliation driver: load, match, throttle, persist."""

import threading
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import uuid4

from jobmatch.config.models import AppConfig, MatchingStrategy, SourceBackend
from jobmatch.domain.models import MatchRecord, NotificationHistoryEntry
from jobmatch.logging import get_logger
from jobmatch.logging.context import log_context
from jobmatch.matching.bulk import BulkMatcher
from jobmatch.matching.engine import MatchEngine
from jobmatch.matching.models import MatchCandidate
from jobmatch.normalization.service import JobNormalizer
from jobmatch.persistence.exceptions import PersistenceError
from jobmatch.sources.base import HistoryStore, JobSource, MatchStore, UserSource
from jobmatch.sources.exceptions import SourceError, StoreWriteError
from jobmatch.sources.files import YamlJobSource, YamlUserSource
from jobmatch.sources.memory import InMemoryHistoryStore, InMemoryMatchStore
from jobmatch.sources.sql import SqlHistoryStore, SqlJobSource, SqlMatchStore, SqlUserSource
from jobmatch.throttle.policy import NotificationThrottle
from jobmatch.utils.timestamps import utc_now

from .models import RunResult, RunStatus, Selection
from .strategies import BulkStrategy, RowStrategy

logger = get_logger(__name__, component="pipeline")

Strategy = Union[RowStrategy, BulkStrategy]


class ReconciliationPipeline:
    """
    Runs one reconciliation pass over injected sources and stores.

    A pass:
    1. Reads every completed user and every job (any read failure fails the
       run before anything is written)
    2. Normalizes each job exactly once
    3. Selects matches and the subset the throttle lets through, using the
       row or bulk strategy
    4. For each notifiable match upserts the match record, then appends the
       history entry
    """

    def __init__(
        self,
        user_source: UserSource,
        job_source: JobSource,
        history_store: HistoryStore,
        match_store: MatchStore,
        strategy: Optional[Strategy] = None,
        normalizer: Optional[JobNormalizer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the reconciliation pipeline.

        Args:
            user_source: Source of completed user preferences
            job_source: Source of raw jobs (declares its experience representation)
            history_store: Notification history
            match_store: Match record store
            strategy: RowStrategy (default) or BulkStrategy
            normalizer: Job normalizer (defaults to the job source's representation)
            clock: Source of the run's "now"
        """
        self.user_source = user_source
        self.job_source = job_source
        self.history_store = history_store
        self.match_store = match_store
        self.normalizer = normalizer or JobNormalizer(
            experience_representation=job_source.experience_representation
        )
        self.strategy = strategy or RowStrategy(
            MatchEngine(normalizer=self.normalizer), NotificationThrottle(clock=clock)
        )
        self.clock = clock
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, app_config: AppConfig) -> "ReconciliationPipeline":
        """
        Build a pipeline wired to the configured backends.

        The database must already be initialized (``init_database``) for the
        database backend, the bulk strategy, and non-dry-run stores.
        """
        matching = app_config.matching
        storage = app_config.storage
        throttle_cfg = app_config.throttle

        if storage.backend == SourceBackend.YAML:
            user_source: UserSource = YamlUserSource(storage.users_file)
            job_source: JobSource = YamlJobSource(
                storage.jobs_file, experience_representation=matching.experience_representation
            )
        else:
            user_source = SqlUserSource()
            job_source = SqlJobSource(
                experience_representation=matching.experience_representation,
                limit=matching.max_jobs_per_run or None,
            )

        if storage.dry_run:
            history_store: HistoryStore = InMemoryHistoryStore()
            match_store: MatchStore = InMemoryMatchStore()
        else:
            history_store = SqlHistoryStore()
            match_store = SqlMatchStore()

        normalizer = JobNormalizer(experience_representation=matching.experience_representation)

        if matching.strategy == MatchingStrategy.BULK:
            strategy: Strategy = BulkStrategy(
                BulkMatcher(
                    student_cooldown_days=throttle_cfg.student_cooldown_days,
                    experienced_cooldown_days=throttle_cfg.experienced_cooldown_days,
                )
            )
        else:
            strategy = RowStrategy(
                MatchEngine(normalizer=normalizer),
                NotificationThrottle(
                    student_cooldown_days=throttle_cfg.student_cooldown_days,
                    experienced_cooldown_days=throttle_cfg.experienced_cooldown_days,
                ),
            )

        return cls(
            user_source=user_source,
            job_source=job_source,
            history_store=history_store,
            match_store=match_store,
            strategy=strategy,
            normalizer=normalizer,
        )

    def run_once(self, trigger: str = "manual") -> RunResult:
        """
        Execute one reconciliation pass.

        Overlapping calls are skipped rather than queued.

        Args:
            trigger: Label for logs ("manual" or "scheduled")

        Returns:
            RunResult with counts and status; source and persistence failures
            are reported in the result, never raised
        """
        run_started_at = self.clock()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id, trigger=trigger):
                logger.warning(
                    "Reconciliation run skipped: previous run still in progress",
                    extra={"event": "pipeline.run.skipped", "reason": "lock_held"},
                )
            return RunResult(
                run_id=run_id,
                run_started_at=run_started_at,
                run_finished_at=self.clock(),
                status=RunStatus.SKIPPED,
                strategy=self.strategy.name,
            )

        try:
            with log_context(run_id=run_id, trigger=trigger):
                result = RunResult(
                    run_id=run_id,
                    run_started_at=run_started_at,
                    run_finished_at=run_started_at,
                    strategy=self.strategy.name,
                )

                logger.info(
                    "Reconciliation run started",
                    extra={"event": "pipeline.run.started", "strategy": self.strategy.name},
                )

                self._execute(result, now=run_started_at)

                result.run_finished_at = self.clock()
                result.total_duration_seconds = (
                    result.run_finished_at - result.run_started_at
                ).total_seconds()

                log = logger.info if result.status is RunStatus.SUCCESS else logger.error
                log(
                    f"Reconciliation run {result.status.value}",
                    extra={
                        "event": "pipeline.run.completed",
                        "status": result.status.value,
                        "duration_ms": int(result.total_duration_seconds * 1000),
                        "users_loaded": result.users_loaded,
                        "jobs_loaded": result.jobs_loaded,
                        "candidates_evaluated": result.candidates_evaluated,
                        "matches_accepted": result.matches_accepted,
                        "notifications_attempted": result.notifications_attempted,
                        "matches_committed": result.matches_committed,
                        "history_committed": result.history_committed,
                        "error": result.error,
                    },
                )
                return result

        finally:
            self._lock.release()

    def _execute(self, result: RunResult, now: datetime) -> None:
        # Reads: nothing has been written if any of these fail
        try:
            users = list(self.user_source.iter_users())
            raw_jobs = list(self.job_source.iter_jobs())
            jobs = list(self.normalizer.process_batch(raw_jobs))

            result.users_loaded = len(users)
            result.jobs_loaded = len(jobs)
            logger.info(
                f"Loaded {len(users)} users and {len(jobs)} jobs",
                extra={
                    "event": "pipeline.inputs.loaded",
                    "users": len(users),
                    "raw_jobs": len(raw_jobs),
                    "jobs": len(jobs),
                },
            )

            selection: Selection = self.strategy.select(users, jobs, self.history_store, now)

        except (SourceError, PersistenceError) as e:
            result.status = RunStatus.FAILED
            result.error = str(e)
            logger.error(
                f"Reconciliation inputs unavailable: {e}",
                extra={
                    "event": "pipeline.inputs.failed",
                    "error_type": type(e).__name__,
                    "failed_source": getattr(e, "source", None),
                },
                exc_info=True,
            )
            return

        result.candidates_evaluated = selection.candidates_evaluated
        result.matches_accepted = len(selection.matches)
        result.notifications_attempted = len(selection.to_notify)

        # Writes: each pair is independent; failures make the run partial
        for candidate in selection.to_notify:
            error = self._persist(candidate, result, now)
            if error is not None and result.error is None:
                result.error = error

        if result.error is not None:
            result.status = RunStatus.PARTIAL

    def _persist(self, candidate: MatchCandidate, result: RunResult, now: datetime) -> Optional[str]:
        """Upsert the match, then append history. Returns an error message on failure."""
        with log_context(user_id=candidate.user_id, job_id=candidate.job_id):
            record = MatchRecord(
                user_id=candidate.user_id,
                job_id=candidate.job_id,
                title=candidate.job_title,
                url=candidate.job_url,
                matched_at=now,
            )
            try:
                self.match_store.upsert(record)
            except StoreWriteError as e:
                # No history without a match record: the pair stays notifiable next run
                logger.error(
                    f"Match upsert failed: {e}",
                    extra={"event": "pipeline.match.failed", "error_type": type(e).__name__},
                )
                return str(e)
            result.matches_committed += 1

            entry = NotificationHistoryEntry(
                user_id=candidate.user_id, job_id=candidate.job_id, sent_at=now
            )
            try:
                result.history_committed += self.history_store.append([entry])
            except StoreWriteError as e:
                logger.error(
                    f"History append failed: {e}",
                    extra={"event": "pipeline.history.failed", "error_type": type(e).__name__},
                )
                return str(e)

            logger.info(
                "Match notified",
                extra={"event": "pipeline.match.notified", "user_status": candidate.user_status},
            )
            return None
