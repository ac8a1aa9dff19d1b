"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing
- Configuration loading with priority (CLI > env > config)
- Logging configuration
- Database initialization only when needed
- Manual run mode vs daemon mode
- Exit code handling
- Error handling
"""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from jobmatch.config.environment import EnvironmentConfig
from jobmatch.config.exceptions import ConfigurationError
from jobmatch.config.models import AppConfig, LoggingConfig, StorageConfig
from jobmatch.main import build_parser, exit_code_for, load_runtime_config, main, needs_database
from jobmatch.pipeline import RunResult, RunStatus
from jobmatch.utils.timestamps import utc_now

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_result(status=RunStatus.SUCCESS):
    now = utc_now()
    return RunResult(run_id="run-1", run_started_at=now, run_finished_at=now, status=status)


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    def test_load_runtime_config_computes_run_interval(self, monkeypatch):
        """Test that run_interval is parsed and stored."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        app_config, env_config = load_runtime_config(FIXTURES_DIR / "valid_config.yaml", None)

        assert app_config.run_interval_seconds == 12 * 3600
        assert env_config.log_level == "DEBUG"

    def test_load_runtime_config_log_level_priority(self, tmp_path):
        """Test log level priority: CLI > env > config."""
        config_file = tmp_path / "config.yaml"

        with patch("jobmatch.main.load_config") as mock_load:
            mock_app_config = AppConfig(logging=LoggingConfig(level="WARNING", format="key-value"))
            mock_env_config = EnvironmentConfig(log_level="INFO")
            mock_load.return_value = (mock_app_config, mock_env_config)

            # CLI override takes precedence
            _, env_config = load_runtime_config(config_file, "DEBUG")
            assert env_config.log_level == "DEBUG"

            # Env override takes precedence over config
            mock_env_config.log_level = "INFO"
            _, env_config = load_runtime_config(config_file, None)
            assert env_config.log_level == "INFO"

            # Config value used when no overrides
            mock_env_config.log_level = None
            _, env_config = load_runtime_config(config_file, None)
            assert env_config.log_level == "WARNING"

    def test_load_runtime_config_propagates_errors(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_runtime_config(tmp_path / "missing.yaml", None)


class TestHelpers:
    """Test the small decision helpers used by main()."""

    def test_needs_database_for_database_backend(self):
        assert needs_database(AppConfig()) is True

    def test_needs_database_for_dry_run_database_backend(self):
        assert needs_database(AppConfig(storage=StorageConfig(dry_run=True))) is True

    def test_yaml_dry_run_skips_database(self):
        storage = StorageConfig(backend="yaml", users_file="u.yaml", jobs_file="j.yaml", dry_run=True)
        assert needs_database(AppConfig(storage=storage)) is False

    def test_yaml_backend_persisting_results_needs_database(self):
        storage = StorageConfig(backend="yaml", users_file="u.yaml", jobs_file="j.yaml")
        assert needs_database(AppConfig(storage=storage)) is True

    @pytest.mark.parametrize(
        "status,code",
        [
            (RunStatus.SUCCESS, 0),
            (RunStatus.SKIPPED, 0),
            (RunStatus.PARTIAL, 1),
            (RunStatus.FAILED, 1),
        ],
    )
    def test_exit_code_for(self, status, code):
        assert exit_code_for(make_result(status)) == code

    def test_parser_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.manual_run is False
        assert args.check_config is False
        assert args.log_level is None

    def test_parser_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "LOUD"])


class TestMain:
    """Test suite for main() function."""

    @patch("jobmatch.main.ReconciliationPipeline")
    @patch("jobmatch.main.init_database")
    @patch("jobmatch.main.close_database")
    @patch("jobmatch.main.configure_logging")
    @patch("jobmatch.main.load_runtime_config")
    def test_main_manual_run_success(
        self,
        mock_load_config,
        mock_configure_logging,
        mock_close_db,
        mock_init_db,
        mock_pipeline_cls,
    ):
        """Test main() in manual run mode with successful execution."""
        mock_load_config.return_value = (AppConfig(), EnvironmentConfig(log_level="INFO"))
        mock_pipeline = Mock()
        mock_pipeline.run_once.return_value = make_result()
        mock_pipeline_cls.from_config.return_value = mock_pipeline

        exit_code = main(["--manual-run", "--config", "config.yaml"])

        assert exit_code == 0
        mock_load_config.assert_called_once_with(Path("config.yaml"), None)
        mock_configure_logging.assert_called_once()
        mock_init_db.assert_called_once()
        mock_close_db.assert_called_once()
        mock_pipeline.run_once.assert_called_once_with(trigger="manual")

    @patch("jobmatch.main.ReconciliationPipeline")
    @patch("jobmatch.main.init_database")
    @patch("jobmatch.main.close_database")
    @patch("jobmatch.main.configure_logging")
    @patch("jobmatch.main.load_runtime_config")
    def test_main_manual_run_partial(
        self,
        mock_load_config,
        mock_configure_logging,
        mock_close_db,
        mock_init_db,
        mock_pipeline_cls,
    ):
        """A partial run exits non-zero."""
        mock_load_config.return_value = (AppConfig(), EnvironmentConfig(log_level="INFO"))
        mock_pipeline = Mock()
        mock_pipeline.run_once.return_value = make_result(RunStatus.PARTIAL)
        mock_pipeline_cls.from_config.return_value = mock_pipeline

        assert main(["--manual-run"]) == 1

    @patch("jobmatch.main.ReconciliationPipeline")
    @patch("jobmatch.main.init_database")
    @patch("jobmatch.main.close_database")
    @patch("jobmatch.main.configure_logging")
    @patch("jobmatch.main.load_runtime_config")
    def test_main_yaml_dry_run_skips_database(
        self,
        mock_load_config,
        mock_configure_logging,
        mock_close_db,
        mock_init_db,
        mock_pipeline_cls,
    ):
        storage = StorageConfig(backend="yaml", users_file="u.yaml", jobs_file="j.yaml", dry_run=True)
        mock_load_config.return_value = (AppConfig(storage=storage), EnvironmentConfig())
        mock_pipeline_cls.from_config.return_value.run_once.return_value = make_result()

        assert main(["--manual-run"]) == 0
        mock_init_db.assert_not_called()

    @patch("jobmatch.main.SchedulerService")
    @patch("jobmatch.main.ReconciliationPipeline")
    @patch("jobmatch.main.init_database")
    @patch("jobmatch.main.close_database")
    @patch("jobmatch.main.configure_logging")
    @patch("jobmatch.main.load_runtime_config")
    @patch("signal.signal")
    def test_main_daemon_mode(
        self,
        mock_signal,
        mock_load_config,
        mock_configure_logging,
        mock_close_db,
        mock_init_db,
        mock_pipeline_cls,
        mock_scheduler_service,
    ):
        """Test main() in daemon mode."""
        mock_load_config.return_value = (AppConfig(), EnvironmentConfig(log_level="INFO"))
        mock_pipeline = mock_pipeline_cls.from_config.return_value

        # start() sets the shutdown event so wait() returns immediately
        def start():
            mock_scheduler_service.call_args.kwargs["shutdown_event"].set()

        mock_scheduler_service.return_value.start.side_effect = start

        exit_code = main([])

        assert exit_code == 0
        kwargs = mock_scheduler_service.call_args.kwargs
        assert kwargs["run_callable"] == mock_pipeline.run_once
        assert kwargs["interval_seconds"] == 86400
        assert mock_signal.call_count == 2
        mock_scheduler_service.return_value.start.assert_called_once()
        mock_close_db.assert_called_once()

    @patch("jobmatch.main.SchedulerService")
    @patch("jobmatch.main.ReconciliationPipeline")
    @patch("jobmatch.main.init_database")
    @patch("jobmatch.main.close_database")
    @patch("jobmatch.main.configure_logging")
    @patch("jobmatch.main.load_runtime_config")
    @patch("signal.signal")
    def test_main_daemon_keyboard_interrupt(
        self,
        mock_signal,
        mock_load_config,
        mock_configure_logging,
        mock_close_db,
        mock_init_db,
        mock_pipeline_cls,
        mock_scheduler_service,
    ):
        mock_load_config.return_value = (AppConfig(), EnvironmentConfig(log_level="INFO"))
        mock_scheduler_service.return_value.start.side_effect = KeyboardInterrupt()

        assert main([]) == 0

    @patch("jobmatch.main.load_runtime_config")
    def test_main_configuration_error(self, mock_load_config):
        """Test main() handles ConfigurationError gracefully."""
        mock_load_config.side_effect = ConfigurationError(
            "Config file not found",
            suggestions=["Create config.yaml"],
        )

        assert main(["--config", "nonexistent.yaml"]) == 1

    @patch("jobmatch.main.close_database")
    @patch("jobmatch.main.init_database")
    @patch("jobmatch.main.configure_logging")
    @patch("jobmatch.main.load_runtime_config")
    def test_main_startup_failure(
        self, mock_load_config, mock_configure_logging, mock_init_db, mock_close_db
    ):
        mock_load_config.return_value = (AppConfig(), EnvironmentConfig(log_level="INFO"))
        mock_init_db.side_effect = RuntimeError("disk full")

        assert main(["--manual-run"]) == 1
        mock_close_db.assert_called_once()

    @patch("jobmatch.main.load_runtime_config")
    def test_main_keyboard_interrupt(self, mock_load_config):
        """Test main() handles KeyboardInterrupt gracefully."""
        mock_load_config.side_effect = KeyboardInterrupt()

        assert main([]) == 0

    @patch("jobmatch.main.configure_logging")
    @patch("jobmatch.main.load_runtime_config")
    def test_main_log_level_override(self, mock_load_config, mock_configure_logging):
        """Test that --log-level is passed to load_runtime_config."""
        mock_load_config.return_value = (AppConfig(), EnvironmentConfig(log_level="DEBUG"))
        mock_configure_logging.side_effect = RuntimeError("exit early")

        with patch("jobmatch.main.close_database"):
            main(["--log-level", "DEBUG"])

        call_args = mock_load_config.call_args[0]
        assert call_args[1] == "DEBUG"

    def test_check_config_valid(self, capsys):
        assert main(["--check-config", "--config", str(FIXTURES_DIR / "valid_config.yaml")]) == 0
        assert "is valid" in capsys.readouterr().out

    def test_check_config_invalid(self, tmp_path, capsys):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("throttle:\n  student_cooldown_days: -1\n")

        assert main(["--check-config", "--config", str(config_file)]) == 1

    def test_check_config_finds_config_directory(self, tmp_path, monkeypatch, capsys):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("run_interval: 6h\n")
        monkeypatch.chdir(tmp_path)

        assert main(["--check-config"]) == 0
        assert "config/config.yaml is valid" in capsys.readouterr().out.replace("\\", "/")

    def test_check_config_without_any_file(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)

        assert main(["--check-config"]) == 1
        assert "not found" in capsys.readouterr().out
