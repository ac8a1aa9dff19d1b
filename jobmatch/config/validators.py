"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

KNOWN_SECTIONS = {"run_interval", "throttle", "matching", "storage", "logging"}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for settings that are valid but probably unintended.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    unknown = sorted(set(config_dict) - KNOWN_SECTIONS)
    if unknown:
        warning_messages.append(f"Unknown configuration keys are ignored: {', '.join(unknown)}")

    throttle = config_dict.get("throttle") or {}
    if isinstance(throttle, dict):
        student = throttle.get("student_cooldown_days", 3)
        experienced = throttle.get("experienced_cooldown_days", 14)

        for key, value in (("student_cooldown_days", student), ("experienced_cooldown_days", experienced)):
            if value == 0:
                warning_messages.append(
                    f"throttle.{key} is 0: matches will be re-notified on every run after the first day"
                )

        if isinstance(student, int) and isinstance(experienced, int) and student > experienced:
            warning_messages.append(
                f"throttle.student_cooldown_days ({student}) is longer than "
                f"experienced_cooldown_days ({experienced})"
            )

    matching = config_dict.get("matching") or {}
    if isinstance(matching, dict):
        max_jobs = matching.get("max_jobs_per_run", 0)
        if isinstance(max_jobs, int) and max_jobs > 50000:
            warning_messages.append(
                f"Large max_jobs_per_run ({max_jobs}); consider matching.strategy 'bulk'"
            )

    storage = config_dict.get("storage") or {}
    if isinstance(storage, dict) and storage.get("dry_run"):
        warning_messages.append("storage.dry_run is enabled: matches and history are not persisted")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
