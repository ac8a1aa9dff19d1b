"""Configuration management module for the reconciliation service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    AppConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MatchingConfig,
    MatchingStrategy,
    SourceBackend,
    StorageConfig,
    ThrottleConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ThrottleConfig",
    "MatchingConfig",
    "StorageConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "MatchingStrategy",
    "SourceBackend",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
