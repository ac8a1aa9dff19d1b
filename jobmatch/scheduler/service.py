"""Scheduler service for periodic reconciliation runs."""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobmatch.logging import get_logger

logger = get_logger(__name__, component="scheduler")

JOB_ID = "reconciliation"


class SchedulerService:
    """
    Wraps APScheduler to trigger reconciliation at the configured interval.

    Uses BackgroundScheduler so the main thread stays free for signal
    handling; at most one run is in flight and delayed runs are coalesced.
    """

    def __init__(
        self,
        run_callable: Callable[..., Any],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
        run_immediately: bool = True,
    ):
        """
        Initialize the scheduler service.

        Args:
            run_callable: Called with ``trigger="scheduled"`` on each run
                (e.g. ReconciliationPipeline.run_once)
            interval_seconds: Interval between runs in seconds
            shutdown_event: Optional event set on shutdown for coordination
            run_immediately: Whether the first run starts at startup
        """
        self.run_callable = run_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event
        self.run_immediately = run_immediately

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )
        self.scheduler.add_listener(self._on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MISSED)

    def _scheduled_run(self) -> None:
        self.run_callable(trigger="scheduled")

    def _on_job_event(self, event: JobExecutionEvent) -> None:
        if event.exception is not None:
            logger.error(
                f"Scheduled run raised: {event.exception}",
                extra={
                    "event": "scheduler.job.failed",
                    "error_type": type(event.exception).__name__,
                },
            )
        else:
            logger.warning(
                "Scheduled run missed its start time",
                extra={
                    "event": "scheduler.job.missed",
                    "scheduled_run_time": event.scheduled_run_time,
                },
            )

    def start(self) -> None:
        """Register the reconciliation job and start the scheduler."""
        next_run = datetime.now(timezone.utc) if self.run_immediately else None

        job_kwargs = {}
        if next_run is not None:
            job_kwargs["next_run_time"] = next_run

        self.scheduler.add_job(
            func=self._scheduled_run,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=JOB_ID,
            name="Job match reconciliation",
            replace_existing=True,
            **job_kwargs,
        )

        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": self.get_next_run_time(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler.

        Args:
            wait: If True, wait for a running reconciliation to finish
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> Any:
        """Run reconciliation synchronously in the calling thread and return its result."""
        logger.info("Triggering immediate run", extra={"event": "scheduler.trigger_now"})
        return self.run_callable(trigger="manual")

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """Next scheduled run time, or None if the job is not scheduled."""
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
