#!/usr/bin/env python3
"""Sample reconciliation harness.

Seeds a SQLite database from a YAML dataset, runs one reconciliation pass
and prints a summary. Running it again against the same database shows the
throttle at work: pairs notified earlier today are not notified again.

Usage:
    # Seed and run with the bundled test dataset
    python scripts/run_sample.py

    # Use the bulk SQL strategy on a custom database
    python scripts/run_sample.py --strategy bulk --database /tmp/sample.db

    # Reuse an existing database without re-seeding
    python scripts/run_sample.py --no-seed
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from jobmatch.config.models import AppConfig
from jobmatch.logging.config import configure_logging
from jobmatch.persistence.database import close_database, init_database
from jobmatch.pipeline import ReconciliationPipeline
from jobmatch.sources import SourceError, seed_database


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_summary_table(result):
    """Print a formatted summary table of run results."""
    print_header("Reconciliation Summary")

    metrics = [
        ("Status", result.status.value),
        ("Strategy", result.strategy),
        ("Users Loaded", result.users_loaded),
        ("Jobs Loaded", result.jobs_loaded),
        ("Pairs Evaluated", result.candidates_evaluated),
        ("Matches Accepted", result.matches_accepted),
        ("Notifications Attempted", result.notifications_attempted),
        ("Matches Committed", result.matches_committed),
        ("History Committed", result.history_committed),
        ("Duration (seconds)", f"{result.total_duration_seconds:.2f}"),
    ]
    if result.error:
        metrics.append(("Error", result.error))

    max_label_width = max(len(label) for label, _ in metrics)

    print("┌" + "─" * (max_label_width + 2) + "┬" + "─" * 22 + "┐")
    print(f"│ {'Metric':<{max_label_width}} │ {'Value':<20} │")
    print("├" + "─" * (max_label_width + 2) + "┼" + "─" * 22 + "┤")

    for label, value in metrics:
        print(f"│ {label:<{max_label_width}} │ {str(value):<20} │")

    print("└" + "─" * (max_label_width + 2) + "┴" + "─" * 22 + "┘")


def main():
    """Main entry point for the sample harness."""
    parser = argparse.ArgumentParser(
        description="Seed a sample database and run one reconciliation pass",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--dataset",
        type=Path,
        default=Path("tests/fixtures/sample_dataset.yaml"),
        help="YAML file with 'users' and 'jobs' lists (default: tests/fixtures/sample_dataset.yaml)",
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=Path("data/sample.db"),
        help="Path to SQLite database (default: data/sample.db)",
    )
    parser.add_argument(
        "--strategy",
        default="row",
        choices=["row", "bulk"],
        help="Matching strategy (default: row)",
    )
    parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Skip seeding and run against the existing database",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )

    args = parser.parse_args()

    load_dotenv()
    configure_logging(level=args.log_level, format_type="key-value", environment="sample")

    print_header("Job Match Reconciliation - Sample Harness")
    print(f"Dataset: {args.dataset}")
    print(f"Database: {args.database}")
    print(f"Strategy: {args.strategy}")

    database_url = f"sqlite:///{args.database.absolute()}"

    try:
        init_database(database_url)

        if not args.no_seed:
            if not args.dataset.exists():
                print(f"\n❌ Error: Dataset not found: {args.dataset}")
                return 1
            users, jobs = seed_database(args.dataset)
            print(f"\n✓ Seeded {users} users and {jobs} jobs")

        pipeline = ReconciliationPipeline.from_config(AppConfig(matching={"strategy": args.strategy}))
        result = pipeline.run_once(trigger="manual")

        print_summary_table(result)

        print_header("Output Locations")
        print(f"Database: {args.database.absolute()}")
        print(f"  sqlite3 {args.database.absolute()} 'SELECT * FROM matched_jobs;'")
        print(f"  sqlite3 {args.database.absolute()} 'SELECT * FROM match_history;'")
        print(f"\nTo clean up: rm {args.database.absolute()}")

        return 1 if result.had_errors else 0

    except SourceError as e:
        print(f"\n❌ Error: {e}")
        return 1
    finally:
        close_database()


if __name__ == "__main__":
    sys.exit(main())
