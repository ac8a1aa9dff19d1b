"""Context propagation for structured logging.

Fields bound here (run_id, trigger, user_id, job_id, ...) are injected into
every log record emitted inside the scope by ``ContextualFilter``. Context
lives in a ContextVar, so scheduler threads never see each other's fields.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterator

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields bound in the current scope."""
    return LogContextVar.get().copy()


def push_log_context(**fields: Any) -> Token:
    """Bind additional fields on top of the current context.

    Fields set to None are dropped rather than logged as null.

    Returns:
        Token for pop_log_context()

    Example:
        >>> token = push_log_context(run_id="3f2a", trigger="scheduled")
        >>> pop_log_context(token)
    """
    merged = {**LogContextVar.get(), **{k: v for k, v in fields.items() if v is not None}}
    return LogContextVar.set(merged)


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every bound field (used by tests)."""
    LogContextVar.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Bind fields for the duration of a ``with`` block.

    The previous context is restored on exit, including when the block raises.

    Example:
        >>> with log_context(run_id="3f2a"):
        ...     logger.info("Reconciliation started")
    """
    token = push_log_context(**fields)
    try:
        yield get_log_context()
    finally:
        pop_log_context(token)
