"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jobmatch.domain.models import ExperienceRepresentation

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingStrategy(str, Enum):
    """How (user, job) pairs are evaluated."""

    ROW = "row"
    BULK = "bulk"


class SourceBackend(str, Enum):
    """Where users and jobs are read from."""

    DATABASE = "database"
    YAML = "yaml"


class ThrottleConfig(BaseModel):
    """Re-notification cooldowns, in whole UTC calendar days."""

    student_cooldown_days: int = Field(
        3, ge=0, le=365, description="Cooldown for student and no-experience users"
    )
    experienced_cooldown_days: int = Field(
        14, ge=0, le=365, description="Cooldown for experienced users"
    )


class MatchingConfig(BaseModel):
    """Matching strategy settings."""

    strategy: MatchingStrategy = Field(
        MatchingStrategy.ROW, description="row (in-process) or bulk (one SQL query)"
    )
    experience_representation: ExperienceRepresentation = Field(
        ExperienceRepresentation.RANGE,
        description="How the job source encodes experience (range or discrete)",
    )
    max_jobs_per_run: int = Field(0, ge=0, description="Maximum jobs read per run (0 = unlimited)")

    model_config = {"use_enum_values": True}


class StorageConfig(BaseModel):
    """Where users and jobs come from and whether results are persisted."""

    backend: SourceBackend = Field(SourceBackend.DATABASE, description="database or yaml")
    users_file: Optional[str] = Field(None, description="YAML file with a 'users' list")
    jobs_file: Optional[str] = Field(None, description="YAML file with a 'jobs' list")
    dry_run: bool = Field(
        False, description="Keep matches and history in memory instead of the database"
    )

    @field_validator("users_file", "jobs_file")
    @classmethod
    def strip_path(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; blank becomes None."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @model_validator(mode="after")
    def validate_files(self):
        """The yaml backend needs both files."""
        if self.backend == SourceBackend.YAML:
            missing = [name for name in ("users_file", "jobs_file") if not getattr(self, name)]
            if missing:
                raise ValueError(f"storage.backend 'yaml' requires: {', '.join(missing)}")
        return self

    model_config = {"use_enum_values": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the reconciliation service.

    Every section is optional; an empty mapping yields the defaults.
    """

    run_interval: str = Field("1d", description="Interval between scheduled runs")
    throttle: ThrottleConfig = Field(default_factory=ThrottleConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    # Computed field
    run_interval_seconds: Optional[int] = None

    @field_validator("run_interval")
    @classmethod
    def validate_run_interval(cls, v: str) -> str:
        """Validate and parse run interval."""
        try:
            validate_duration_range(parse_duration(v))
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def validate_combination_and_compute_fields(self):
        """Reject unsupported combinations and compute derived fields."""
        if self.matching.strategy == MatchingStrategy.BULK and self.storage.dry_run:
            raise ValueError(
                "matching.strategy 'bulk' reads notification history from the database "
                "and cannot be combined with storage.dry_run"
            )

        self.run_interval_seconds = parse_duration(self.run_interval)
        return self
