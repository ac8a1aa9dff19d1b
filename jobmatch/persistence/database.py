"""Database connection and session management.

This module provides database initialization, engine creation, and session lifecycle
management for the persistence layer.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from jobmatch.logging import get_logger

from .exceptions import DatabaseConnectionError

# Module-level engine and session factory
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None

logger = get_logger(__name__, component="database")


def init_database(database_url: str) -> None:
    """Initialize database connection and create schema if tables don't exist.

    Called once during application startup (and by tests with
    ``sqlite:///:memory:``, which is pinned to a single shared connection so
    every session sees the same tables).

    Args:
        database_url: Database connection URL (e.g., "sqlite:///./data/jobmatch.db")

    Raises:
        DatabaseConnectionError: If database initialization fails

    Example:
        >>> init_database("sqlite:///./data/jobmatch.db")
    """
    global _engine, _session_factory

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    logger.info(
        "Initializing database",
        extra={
            "event": "database.initializing",
            "database_url": url.render_as_string(hide_password=True),
        },
    )

    try:
        is_sqlite = url.get_backend_name() == "sqlite"
        in_memory = is_sqlite and url.database in (None, "", ":memory:")

        if is_sqlite and not in_memory:
            db_file = Path(url.database)
            if not db_file.parent.exists():
                logger.info(f"Creating database directory: {db_file.parent}")
                db_file.parent.mkdir(parents=True, exist_ok=True)

        engine_kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if in_memory:
            engine_kwargs["poolclass"] = StaticPool

        _engine = create_engine(url, **engine_kwargs)

        if is_sqlite:
            _configure_sqlite(_engine, wal=not in_memory)

        _validate_connection(_engine)

        _session_factory = sessionmaker(
            bind=_engine,
            autoflush=True,
            expire_on_commit=False,  # Keep objects accessible after commit
        )

        from .schema import create_schema

        create_schema(_engine)

        logger.info(
            "Database initialized successfully",
            extra={"event": "database.initialised", "in_memory": in_memory},
        )

    except DatabaseConnectionError:
        raise
    except Exception as e:
        error_msg = f"Failed to initialize database: {e}"
        logger.error(error_msg, exc_info=True)
        raise DatabaseConnectionError(error_msg) from e


def _configure_sqlite(engine: Engine, wal: bool = True) -> None:
    """Enable foreign keys (and WAL for file databases) on every connection."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def _validate_connection(engine: Engine) -> None:
    """Validate database connection by executing a test query.

    Raises:
        DatabaseConnectionError: If connection test fails
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.debug("Database connection validated successfully")
    except Exception as e:
        raise DatabaseConnectionError(f"Failed to validate database connection: {e}") from e


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Provide a database session with automatic transaction management.

    Commits on successful exit, rolls back on exception, always closes.

    Yields:
        Session: SQLAlchemy session for database operations

    Raises:
        DatabaseConnectionError: If database not initialized
        Exception: Any exception from operations within the context

    Example:
        >>> with get_session() as session:
        ...     repo = UserRepository(session)
        ...     users = repo.list_completed()
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_session()"
        )

    session = _session_factory()
    try:
        yield session
        session.commit()
        logger.debug(
            "Database session committed",
            extra={"event": "database.session.committed"}
        )
    except Exception as e:
        session.rollback()
        logger.warning(
            f"Database session rolled back due to exception: {e}",
            extra={
                "event": "database.session.rolled_back",
                "error_type": type(e).__name__,
            }
        )
        raise
    finally:
        session.close()


def get_engine() -> Engine:
    """Get the database engine instance.

    Raises:
        DatabaseConnectionError: If database not initialized
    """
    if _engine is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_engine()"
        )

    return _engine


def close_database() -> None:
    """Dispose of the engine; called during shutdown and between tests."""
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing database connections")
        _engine.dispose()
        _engine = None
        _session_factory = None
