"""Exceptions raised by user/job sources and history/match stores."""

from typing import Optional


class SourceError(Exception):
    """Base exception for all source and store errors.

    Catching this at the pipeline level covers every failure of an injected
    capability, whatever backend it wraps.
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        """Initialize source error.

        Args:
            message: Human-readable error message
            source: Name of the failing capability (e.g. "users", "history")
        """
        super().__init__(message)
        self.source = source


class SourceUnavailableError(SourceError):
    """A source or store could not be read.

    Raised before the pipeline has written anything, so the run can fail
    cleanly with no partial effects.
    """

    pass


class StoreWriteError(SourceError):
    """A write to the match store or the notification history failed."""

    pass
