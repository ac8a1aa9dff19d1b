"""Duration parsing utilities for configuration."""

import re

# Reconciliation runs are daily by default; anything between five minutes
# and a week is accepted.
MIN_RUN_INTERVAL_SECONDS = 300
MAX_RUN_INTERVAL_SECONDS = 7 * 86400

_UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 7 * 86400,
}

_ISO8601_PATTERN = re.compile(
    r"^P(?:(\d+)W)?(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$"
)
_HUMAN_PART_PATTERN = re.compile(r"(\d+)\s*([smhdw])")


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to seconds.

    Supports both human-readable formats and ISO-8601 durations:
    - Human-readable: "30s", "15m", "6h", "1d", "1w", or combinations like "1d12h"
    - ISO-8601: "PT15M", "PT6H", "P1D", "P1W"

    Args:
        duration_str: Duration string to parse

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the duration string is invalid or zero

    Examples:
        >>> parse_duration("1d")
        86400
        >>> parse_duration("PT6H")
        21600
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got {type(duration_str).__name__}")

    duration_str = duration_str.strip()
    if not duration_str:
        raise DurationParseError("Duration string cannot be empty")

    if duration_str.upper().startswith("P"):
        total_seconds = _parse_iso8601_duration(duration_str)
    else:
        total_seconds = _parse_human_readable_duration(duration_str)

    if total_seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total_seconds


def _parse_iso8601_duration(duration_str: str) -> int:
    match = _ISO8601_PATTERN.match(duration_str.upper())
    if not match or duration_str.upper() in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{duration_str}'. "
            "Expected format like 'P1D', 'P1W', 'PT6H' or 'PT30M'"
        )

    weeks, days, hours, minutes, seconds = match.groups()
    return (
        int(weeks or 0) * _UNIT_SECONDS["w"]
        + int(days or 0) * _UNIT_SECONDS["d"]
        + int(hours or 0) * _UNIT_SECONDS["h"]
        + int(minutes or 0) * _UNIT_SECONDS["m"]
        + int(float(seconds or 0))
    )


def _parse_human_readable_duration(duration_str: str) -> int:
    lowered = duration_str.lower()
    parts = _HUMAN_PART_PATTERN.findall(lowered)

    if not parts:
        raise DurationParseError(
            f"Invalid duration format: '{duration_str}'. "
            "Expected format like '30m', '6h', '1d', '1w', or combinations like '1d12h'"
        )

    # Reject leftovers such as "1d foo" or "1x"
    if "".join(f"{num}{unit}" for num, unit in parts) != re.sub(r"\s+", "", lowered):
        raise DurationParseError(
            f"Invalid characters in duration: '{duration_str}'. "
            "Use only digits and units: s, m, h, d, w"
        )

    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in parts)


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = MIN_RUN_INTERVAL_SECONDS,
    max_seconds: int = MAX_RUN_INTERVAL_SECONDS,
    label: str = "Run interval",
) -> None:
    """
    Validate that a duration is within acceptable range.

    Args:
        duration_seconds: Duration in seconds to validate
        min_seconds: Minimum allowed duration (default: 5 minutes)
        max_seconds: Maximum allowed duration (default: 7 days)
        label: Name used in error messages

    Raises:
        DurationParseError: If duration is outside the valid range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {format_duration(duration_seconds)}. "
            f"Minimum is {format_duration(min_seconds)}."
        )

    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {format_duration(duration_seconds)}. "
            f"Maximum is {format_duration(max_seconds)}."
        )


def format_duration(seconds: int) -> str:
    """
    Convert seconds to the largest whole human-readable unit.

    Examples:
        >>> format_duration(86400)
        '1 day'
        >>> format_duration(5400)
        '1 hour'
    """
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
