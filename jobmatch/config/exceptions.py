"""Custom exceptions for configuration management."""

from typing import List, Optional


class ConfigurationError(Exception):
    """
    Raised when the YAML configuration or the environment is invalid.

    Carries the individual validation errors and suggested fixes so the CLI
    can print them as a numbered list.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]

        if self.errors:
            parts.append("\nValidation Errors:")
            parts.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            parts.append("\nSuggestions:")
            parts.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(parts)

    def add_error(self, error: str) -> None:
        """Add a validation error; reflected in str() immediately."""
        self.errors.append(error)

    def add_suggestion(self, suggestion: str) -> None:
        """Add a suggested fix; reflected in str() immediately."""
        self.suggestions.append(suggestion)
