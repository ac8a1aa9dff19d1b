"""End-to-end tests for reconciliation over a file-backed database.

These tests demonstrate:
- Seeding a SQLite file from the YAML sample dataset
- Successive runs re-notifying only after each status' cooldown
- Row and bulk strategies writing the same matches and history
- CLI manual mode (``--manual-run``) against the database and YAML backends
"""

import logging

import pytest

from jobmatch.main import main
from jobmatch.matching import BulkMatcher
from jobmatch.persistence import (
    HistoryRepository,
    MatchRepository,
    UserRepository,
    close_database,
    get_session,
    init_database,
)
from jobmatch.pipeline import BulkStrategy, ReconciliationPipeline, RunStatus
from jobmatch.sources import (
    SqlHistoryStore,
    SqlJobSource,
    SqlMatchStore,
    SqlUserSource,
    SourceUnavailableError,
    seed_database,
)

from tests.helpers import FIXTURES_DIR, FrozenClock

DATASET = FIXTURES_DIR / "sample_dataset.yaml"
USER_IDS = ("u-student", "u-junior", "u-backend", "u-lead", "u-onboarding")

EXPECTED_PAIRS = {
    ("u-student", "https://careers.example.com/jobs/student-sw"),
    ("u-junior", "https://careers.example.com/jobs/junior-analyst"),
    ("u-backend", "https://careers.example.com/jobs/backend"),
    ("u-lead", "https://careers.example.com/jobs/team-lead"),
}


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'jobmatch.db'}"


@pytest.fixture
def seeded_database(database_url):
    """File database seeded with the sample dataset."""
    init_database(database_url)
    seed_database(DATASET)
    yield database_url
    close_database()


@pytest.fixture
def restore_root_logger():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def sql_pipeline(clock, strategy=None):
    return ReconciliationPipeline(
        user_source=SqlUserSource(),
        job_source=SqlJobSource(),
        history_store=SqlHistoryStore(),
        match_store=SqlMatchStore(),
        strategy=strategy,
        clock=clock,
    )


def stored_pairs():
    with get_session() as session:
        repo = MatchRepository(session)
        return {(user_id, record.job_id) for user_id in USER_IDS for record in repo.list_for_user(user_id)}


def history_count():
    with get_session() as session:
        repo = HistoryRepository(session)
        return sum(len(repo.get_history(user_id, job_id)) for user_id, job_id in EXPECTED_PAIRS)


class TestSeedDatabase:
    """Tests for loading a YAML dataset into the database."""

    def test_seed_counts(self, database_url):
        init_database(database_url)
        try:
            assert seed_database(DATASET) == (5, 5)

            with get_session() as session:
                users = UserRepository(session)
                assert [u.user_id for u in users.list_completed()] == [
                    "u-backend",
                    "u-junior",
                    "u-lead",
                    "u-student",
                ]
                assert users.get_by_id("u-onboarding") is not None
        finally:
            close_database()

    def test_seed_is_idempotent(self, seeded_database):
        assert seed_database(DATASET) == (5, 5)
        assert len(list(SqlJobSource().iter_jobs())) == 5

    def test_missing_file(self, seeded_database, tmp_path):
        with pytest.raises(SourceUnavailableError):
            seed_database(tmp_path / "missing.yaml")

    def test_invalid_record(self, seeded_database, tmp_path):
        dataset = tmp_path / "bad.yaml"
        dataset.write_text("users:\n  - user_id: u-1\n    status: astronaut\njobs: []\n")

        with pytest.raises(SourceUnavailableError):
            seed_database(dataset)


class TestSuccessiveRuns:
    """Re-notification over several days against the file database."""

    def test_cooldowns_across_runs(self, seeded_database):
        clock = FrozenClock()
        pipeline = sql_pipeline(clock)

        first = pipeline.run_once()
        assert first.status is RunStatus.SUCCESS
        assert first.users_loaded == 4
        assert first.jobs_loaded == 5
        assert first.notifications_sent == 4
        assert stored_pairs() == EXPECTED_PAIRS

        assert pipeline.run_once().notifications_sent == 0  # same day

        clock.advance(days=4)
        assert pipeline.run_once().notifications_sent == 2  # student and no-experience users

        clock.advance(days=11)
        assert pipeline.run_once().notifications_sent == 4  # day 15

        assert history_count() == 10
        assert stored_pairs() == EXPECTED_PAIRS

    def test_bulk_strategy_continues_row_history(self, seeded_database):
        clock = FrozenClock()
        assert sql_pipeline(clock).run_once().notifications_sent == 4

        clock.advance(days=4)
        bulk = sql_pipeline(clock, BulkStrategy(BulkMatcher(clock=clock)))
        result = bulk.run_once()

        assert result.strategy == "bulk"
        assert result.matches_accepted == 4
        assert result.notifications_sent == 2
        assert history_count() == 6


class TestManualRunCli:
    """Tests for ``--manual-run`` through main()."""

    def test_manual_run_against_database(self, seeded_database, tmp_path, monkeypatch, restore_root_logger):
        close_database()
        config_file = tmp_path / "config.yaml"
        config_file.write_text("run_interval: 1d\nlogging:\n  level: WARNING\n")
        monkeypatch.setenv("DATABASE_URL", seeded_database)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        assert main(["--manual-run", "--config", str(config_file)]) == 0
        assert main(["--manual-run", "--config", str(config_file)]) == 0

        init_database(seeded_database)
        assert stored_pairs() == EXPECTED_PAIRS
        assert history_count() == 4

    def test_manual_run_bulk(self, seeded_database, tmp_path, monkeypatch, restore_root_logger):
        close_database()
        config_file = tmp_path / "config.yaml"
        config_file.write_text("matching:\n  strategy: bulk\nlogging:\n  level: WARNING\n")
        monkeypatch.setenv("DATABASE_URL", seeded_database)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        assert main(["--manual-run", "--config", str(config_file)]) == 0

        init_database(seeded_database)
        assert stored_pairs() == EXPECTED_PAIRS

    def test_manual_run_yaml_dry_run(self, tmp_path, monkeypatch, restore_root_logger):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "storage:\n"
            "  backend: yaml\n"
            f"  users_file: {DATASET}\n"
            f"  jobs_file: {DATASET}\n"
            "  dry_run: true\n"
            "logging:\n"
            "  level: WARNING\n"
        )
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        with pytest.warns(UserWarning, match="dry_run"):
            assert main(["--manual-run", "--config", str(config_file)]) == 0

    def test_manual_run_with_missing_dataset_fails(self, tmp_path, monkeypatch, restore_root_logger):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "storage:\n"
            "  backend: yaml\n"
            f"  users_file: {tmp_path / 'missing.yaml'}\n"
            f"  jobs_file: {tmp_path / 'missing.yaml'}\n"
            "  dry_run: true\n"
            "logging:\n"
            "  level: WARNING\n"
        )
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        with pytest.warns(UserWarning):
            assert main(["--manual-run", "--config", str(config_file)]) == 1
