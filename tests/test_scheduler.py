"""Unit tests for the scheduler service.

Tests the SchedulerService including:
- Job registration with correct configuration
- Immediate first run (next_run_time set to now)
- Prevents overlapping runs (max_instances=1) and coalesces missed runs
- Start/shutdown lifecycle
- Trigger now functionality
- Error and missed-run listeners
"""

import threading
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock, patch

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, JobExecutionEvent

from jobmatch.scheduler import SchedulerService
from jobmatch.scheduler.service import JOB_ID


class TestSchedulerService:
    """Test suite for SchedulerService."""

    def test_scheduler_initialization(self):
        """Test that scheduler initializes with correct parameters."""
        mock_callable = Mock()
        shutdown_event = threading.Event()

        scheduler = SchedulerService(
            run_callable=mock_callable,
            interval_seconds=3600,
            shutdown_event=shutdown_event,
        )

        assert scheduler.interval_seconds == 3600
        assert scheduler.run_callable == mock_callable
        assert scheduler.shutdown_event == shutdown_event
        assert not scheduler.is_running()
        assert scheduler.get_next_run_time() is None

    def test_job_defaults_prevent_overlap(self):
        scheduler = SchedulerService(run_callable=Mock(), interval_seconds=3600)

        defaults = scheduler.scheduler._job_defaults
        assert defaults["max_instances"] == 1
        assert defaults["coalesce"] is True
        assert defaults["misfire_grace_time"] == 3600

    def test_scheduler_start_and_shutdown(self):
        """Test scheduler start and shutdown lifecycle."""
        shutdown_event = threading.Event()
        scheduler = SchedulerService(
            run_callable=Mock(),
            interval_seconds=3600,
            shutdown_event=shutdown_event,
            run_immediately=False,
        )

        scheduler.start()
        assert scheduler.is_running()

        job = scheduler.scheduler.get_job(JOB_ID)
        assert job is not None
        assert job.trigger.interval == timedelta(seconds=3600)

        scheduler.shutdown(wait=False)

        assert not scheduler.is_running()
        assert shutdown_event.is_set()

    def test_next_run_time_without_immediate_run(self):
        scheduler = SchedulerService(run_callable=Mock(), interval_seconds=3600, run_immediately=False)
        before = datetime.now(timezone.utc)

        scheduler.start()
        try:
            next_run = scheduler.get_next_run_time()
        finally:
            scheduler.shutdown(wait=False)

        assert next_run >= before + timedelta(seconds=3599)

    def test_immediate_first_run(self):
        """The first run starts right away with trigger="scheduled"."""
        called = threading.Event()
        mock_callable = Mock(side_effect=lambda **kwargs: called.set())
        scheduler = SchedulerService(run_callable=mock_callable, interval_seconds=3600)

        scheduler.start()
        try:
            assert called.wait(timeout=5)
        finally:
            scheduler.shutdown(wait=True)

        mock_callable.assert_called_with(trigger="scheduled")

    def test_shutdown_when_not_started(self):
        shutdown_event = threading.Event()
        scheduler = SchedulerService(
            run_callable=Mock(), interval_seconds=3600, shutdown_event=shutdown_event
        )

        scheduler.shutdown()

        assert shutdown_event.is_set()

    def test_trigger_now_runs_synchronously(self):
        mock_callable = Mock(return_value="result")
        scheduler = SchedulerService(run_callable=mock_callable, interval_seconds=3600)

        assert scheduler.trigger_now() == "result"
        mock_callable.assert_called_once_with(trigger="manual")

    def test_listener_registered_for_errors_and_misses(self):
        with patch("jobmatch.scheduler.service.BackgroundScheduler") as mock_scheduler_cls:
            scheduler = SchedulerService(run_callable=Mock(), interval_seconds=3600)

        mock_scheduler_cls.return_value.add_listener.assert_called_once_with(
            scheduler._on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MISSED
        )

    def test_job_error_is_logged(self):
        scheduler = SchedulerService(run_callable=Mock(), interval_seconds=3600)
        event = JobExecutionEvent(
            EVENT_JOB_ERROR, JOB_ID, "default", datetime.now(timezone.utc), exception=RuntimeError("boom")
        )

        with patch("jobmatch.scheduler.service.logger") as mock_logger:
            scheduler._on_job_event(event)

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["extra"]["error_type"] == "RuntimeError"

    def test_missed_run_is_logged(self):
        scheduler = SchedulerService(run_callable=Mock(), interval_seconds=3600)
        event = JobExecutionEvent(EVENT_JOB_MISSED, JOB_ID, "default", datetime.now(timezone.utc))

        with patch("jobmatch.scheduler.service.logger") as mock_logger:
            scheduler._on_job_event(event)

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["extra"]["event"] == "scheduler.job.missed"

    def test_overlapping_run_is_not_started(self):
        """A slow run blocks the next trigger instead of running twice."""
        release = threading.Event()
        calls = []

        def slow_run(trigger):
            calls.append(trigger)
            release.wait(timeout=5)

        scheduler = SchedulerService(run_callable=slow_run, interval_seconds=3600)
        scheduler.start()
        try:
            deadline = time.time() + 5
            while not calls and time.time() < deadline:
                time.sleep(0.01)

            scheduler.scheduler.get_job(JOB_ID).modify(next_run_time=datetime.now(timezone.utc))
            time.sleep(0.2)
        finally:
            release.set()
            scheduler.shutdown(wait=True)

        assert calls == ["scheduled"]


class TestSchedulerWithPipeline:
    """SchedulerService driving a pipeline-like callable."""

    def test_run_callable_receives_trigger(self):
        pipeline = MagicMock()
        scheduler = SchedulerService(run_callable=pipeline.run_once, interval_seconds=3600)

        scheduler._scheduled_run()
        scheduler.trigger_now()

        assert [c.kwargs["trigger"] for c in pipeline.run_once.call_args_list] == ["scheduled", "manual"]
