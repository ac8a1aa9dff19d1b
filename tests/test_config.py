"""Integration tests for configuration module."""

from pathlib import Path

import pytest

from jobmatch.config import (
    AppConfig,
    ConfigurationError,
    MatchingStrategy,
    SourceBackend,
    load_config,
    validate_config_file,
)
from jobmatch.config.duration import (
    DurationParseError,
    format_duration,
    parse_duration,
    validate_duration_range,
)
from jobmatch.config.environment import DEFAULT_DATABASE_URL, load_environment_config
from jobmatch.config.validators import check_for_warnings

# Test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment variables read by the loader."""
    for name in ("DATABASE_URL", "LOG_LEVEL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, clean_env):
        """Test loading a configuration that sets every section."""
        app_config, env_config = load_config(FIXTURES_DIR / "valid_config.yaml")

        assert app_config.run_interval == "12h"
        assert app_config.run_interval_seconds == 12 * 3600
        assert app_config.throttle.student_cooldown_days == 2
        assert app_config.throttle.experienced_cooldown_days == 10
        assert app_config.matching.strategy == MatchingStrategy.BULK
        assert app_config.matching.experience_representation == "discrete"
        assert app_config.matching.max_jobs_per_run == 5000
        assert app_config.storage.backend == SourceBackend.DATABASE
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

        assert env_config.database_url == DEFAULT_DATABASE_URL
        assert env_config.log_level is None
        assert env_config.environment == "local"

    def test_load_minimal_config(self, clean_env):
        """Test that defaults are applied to omitted sections."""
        app_config, _ = load_config(FIXTURES_DIR / "minimal_config.yaml")

        assert app_config.run_interval_seconds == 86400
        assert app_config.throttle.student_cooldown_days == 3
        assert app_config.throttle.experienced_cooldown_days == 14
        assert app_config.matching.strategy == "row"
        assert app_config.matching.experience_representation == "range"
        assert app_config.storage.dry_run is False
        assert app_config.logging.level == "INFO"
        assert app_config.logging.format == "key-value"

    def test_load_iso8601_duration_config(self, clean_env):
        app_config, _ = load_config(FIXTURES_DIR / "iso8601_duration_config.yaml")

        assert app_config.run_interval == "PT6H"
        assert app_config.run_interval_seconds == 21600

    def test_load_yaml_backend(self, clean_env):
        with pytest.warns(UserWarning, match="dry_run"):
            app_config, _ = load_config(FIXTURES_DIR / "yaml_backend_config.yaml")

        assert app_config.storage.backend == "yaml"
        assert app_config.storage.users_file.endswith("sample_dataset.yaml")

    def test_empty_file_yields_defaults(self, tmp_path, clean_env):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        app_config, _ = load_config(config_file)

        assert app_config == AppConfig()

    def test_config_file_not_found(self, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value)

    def test_default_locations_searched(self, tmp_path, monkeypatch, clean_env):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("run_interval: 2h\n")

        app_config, _ = load_config()

        assert app_config.run_interval_seconds == 7200

    def test_no_config_anywhere(self, tmp_path, monkeypatch, clean_env):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        assert "Tried: config.yaml" in str(exc_info.value)

    def test_invalid_yaml_syntax(self, tmp_path, clean_env):
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text("throttle:\n  student_cooldown_days: [3\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert "Failed to parse YAML" in str(exc_info.value)

    def test_top_level_must_be_mapping(self, tmp_path, clean_env):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- run_interval\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(config_file)


class TestConfigurationValidation:
    """Test configuration validation rules."""

    def write(self, tmp_path, text):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(text)
        return config_file

    def test_negative_cooldown(self, tmp_path, clean_env):
        config_file = self.write(tmp_path, "throttle:\n  student_cooldown_days: -1\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert any("student_cooldown_days" in error for error in exc_info.value.errors)

    def test_unknown_strategy(self, tmp_path, clean_env):
        config_file = self.write(tmp_path, "matching:\n  strategy: quantum\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert any("matching -> strategy" in error for error in exc_info.value.errors)

    def test_yaml_backend_requires_files(self, tmp_path, clean_env):
        config_file = self.write(tmp_path, "storage:\n  backend: yaml\n  users_file: users.yaml\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert "jobs_file" in str(exc_info.value)

    def test_bulk_with_dry_run_rejected(self, tmp_path, clean_env):
        config_file = self.write(
            tmp_path, "matching:\n  strategy: bulk\nstorage:\n  dry_run: true\n"
        )

        with pytest.warns(UserWarning):
            with pytest.raises(ConfigurationError) as exc_info:
                load_config(config_file)

        assert "dry_run" in str(exc_info.value)

    def test_run_interval_too_short(self, tmp_path, clean_env):
        config_file = self.write(tmp_path, "run_interval: 1m\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert "too short" in str(exc_info.value)

    def test_invalid_type(self, tmp_path, clean_env):
        config_file = self.write(tmp_path, "matching:\n  max_jobs_per_run: lots\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert any("expected int" in error for error in exc_info.value.errors)


class TestConfigurationWarnings:
    """Test non-fatal configuration warnings."""

    def test_unknown_keys(self):
        warnings = check_for_warnings({"sources": [], "run_interval": "1d"})

        assert warnings == ["Unknown configuration keys are ignored: sources"]

    def test_zero_cooldown(self):
        warnings = check_for_warnings({"throttle": {"experienced_cooldown_days": 0}})

        assert any("experienced_cooldown_days is 0" in w for w in warnings)

    def test_student_longer_than_experienced(self):
        warnings = check_for_warnings(
            {"throttle": {"student_cooldown_days": 20, "experienced_cooldown_days": 14}}
        )

        assert any("longer than" in w for w in warnings)

    def test_large_job_limit(self):
        warnings = check_for_warnings({"matching": {"max_jobs_per_run": 100000}})

        assert any("bulk" in w for w in warnings)

    def test_defaults_are_quiet(self):
        assert check_for_warnings({}) == []

    def test_warnings_emitted_on_load(self, tmp_path, clean_env):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("unexpected: true\n")

        with pytest.warns(UserWarning, match="unexpected"):
            load_config(config_file)


class TestDurationParsing:
    """Test duration parsing utilities."""

    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("30s", 30),
            ("15m", 900),
            ("6h", 21600),
            ("1d", 86400),
            ("1w", 604800),
            ("1d12h", 129600),
            ("1h 30m", 5400),
            ("PT15M", 900),
            ("PT6H", 21600),
            ("P1D", 86400),
            ("P1W", 604800),
            ("P1DT12H", 129600),
        ],
    )
    def test_parse(self, text, seconds):
        assert parse_duration(text) == seconds

    @pytest.mark.parametrize("text", ["", "   ", "abc", "1x", "1d foo", "P", "PT", "0s", "P0D"])
    def test_parse_invalid(self, text):
        with pytest.raises(DurationParseError):
            parse_duration(text)

    def test_parse_non_string(self):
        with pytest.raises(DurationParseError):
            parse_duration(60)

    def test_validate_duration_range_too_short(self):
        with pytest.raises(DurationParseError, match="too short"):
            validate_duration_range(60)

    def test_validate_duration_range_too_long(self):
        with pytest.raises(DurationParseError, match="too long"):
            validate_duration_range(8 * 86400)

    def test_validate_duration_range_valid(self):
        validate_duration_range(300)
        validate_duration_range(86400)
        validate_duration_range(7 * 86400)

    def test_format_duration(self):
        assert format_duration(86400) == "1 day"
        assert format_duration(2 * 86400) == "2 days"
        assert format_duration(5400) == "1 hour"
        assert format_duration(300) == "5 minutes"
        assert format_duration(1) == "1 second"


class TestEnvironmentVariables:
    """Test environment variable loading."""

    def test_defaults(self, clean_env):
        env_config = load_environment_config()

        assert env_config.database_url == DEFAULT_DATABASE_URL
        assert env_config.log_level is None
        assert env_config.environment == "local"

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ENVIRONMENT", " production ")

        env_config = load_environment_config()

        assert env_config.database_url == "sqlite:///:memory:"
        assert env_config.log_level == "DEBUG"
        assert env_config.environment == "production"

    def test_invalid_values_collected(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "jobs.db")
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("ENVIRONMENT", "  ")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 3


class TestConfigurationHelpers:
    """Test helper utilities."""

    def test_validate_config_file_utility(self, capsys):
        assert validate_config_file(FIXTURES_DIR / "valid_config.yaml") is True
        assert "is valid" in capsys.readouterr().out

    def test_validate_config_file_reports_errors(self, tmp_path, capsys):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("throttle:\n  experienced_cooldown_days: -5\n")

        assert validate_config_file(config_file) is False
        assert "validation failed" in capsys.readouterr().out

    def test_validate_config_file_searches_default_locations(self, tmp_path, monkeypatch):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("matching:\n  strategy: bulk\n")
        monkeypatch.chdir(tmp_path)

        assert validate_config_file() is True

    def test_configuration_error_formatting(self):
        error = ConfigurationError("Broken", errors=["first"], suggestions=["fix it"])
        error.add_error("second")

        text = str(error)

        assert "1. first" in text
        assert "2. second" in text
        assert "- fix it" in text
