"""Main entry point for the job-match reconciliation service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from jobmatch.config.environment import EnvironmentConfig
from jobmatch.config.exceptions import ConfigurationError
from jobmatch.config.loader import load_config, validate_config_file
from jobmatch.config.models import AppConfig, SourceBackend
from jobmatch.logging import get_logger
from jobmatch.logging.config import configure_logging
from jobmatch.persistence.database import close_database, init_database
from jobmatch.pipeline import ReconciliationPipeline, RunResult, RunStatus
from jobmatch.scheduler import SchedulerService

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Path, log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def needs_database(app_config: AppConfig) -> bool:
    """Whether this configuration reads or writes the database."""
    return app_config.storage.backend == SourceBackend.DATABASE or not app_config.storage.dry_run


def exit_code_for(result: RunResult) -> int:
    """0 for success or skipped runs, 1 for failed or partial runs."""
    return 1 if result.status in (RunStatus.FAILED, RunStatus.PARTIAL) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job match reconciliation - matches users to jobs and records notifications"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--manual-run",
        action="store_true",
        help="Run a single reconciliation pass immediately and exit",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    if args.check_config:
        return 0 if validate_config_file(args.config) else 1

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Reconciliation service starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "manual_run": args.manual_run,
            },
        )

        if needs_database(app_config):
            init_database(env_config.database_url)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "strategy": app_config.matching.strategy,
                "experience_representation": app_config.matching.experience_representation,
                "backend": app_config.storage.backend,
                "dry_run": app_config.storage.dry_run,
                "run_interval_seconds": app_config.run_interval_seconds,
                "student_cooldown_days": app_config.throttle.student_cooldown_days,
                "experienced_cooldown_days": app_config.throttle.experienced_cooldown_days,
            },
        )

        pipeline = ReconciliationPipeline.from_config(app_config)

        if args.manual_run:
            result = pipeline.run_once(trigger="manual")

            logger.info(
                f"Manual run {result.status.value}: "
                f"{result.candidates_evaluated} evaluated, "
                f"{result.matches_accepted} matched, "
                f"{result.notifications_sent} notified",
                extra={
                    "event": "service.manual_run.completed",
                    "status": result.status.value,
                    "duration_seconds": result.total_duration_seconds,
                },
            )

            close_database()
            logger.info(
                "Reconciliation service stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )
            return exit_code_for(result)

        # Daemon mode
        shutdown_event = threading.Event()
        scheduler_service = SchedulerService(
            run_callable=pipeline.run_once,
            interval_seconds=app_config.run_interval_seconds,
            shutdown_event=shutdown_event,
        )

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            scheduler_service.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler_service.start()
        logger.info(
            "Scheduler started. Press Ctrl+C to stop",
            extra={"event": "service.daemon_mode.started"},
        )

        try:
            shutdown_event.wait()
        except KeyboardInterrupt:
            logger.info(
                "Keyboard interrupt received, shutting down",
                extra={"event": "service.keyboard_interrupt"},
            )
            scheduler_service.shutdown(wait=False)

        close_database()
        logger.info(
            "Reconciliation service stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        close_database()
        return 1


if __name__ == "__main__":
    sys.exit(main())
