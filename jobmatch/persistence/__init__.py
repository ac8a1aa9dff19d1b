"""Persistence layer for database operations using SQLite.

This module provides the public API for database operations including:
- Database initialization and connection management
- Repository classes for users, jobs, notification history and match records
- Custom exceptions for error handling

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - UserRepository: user preferences (completed profiles feed the matcher)
    - JobRepository: raw job records
    - HistoryRepository: append-only notification history
    - MatchRepository: per-user match records

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError: Required record not found
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from jobmatch.persistence import init_database, get_session, UserRepository
    >>>
    >>> # Initialize database (once at startup)
    >>> init_database("sqlite:///./data/jobmatch.db")
    >>>
    >>> # Use repository within session context
    >>> with get_session() as session:
    ...     users = UserRepository(session).list_completed()
"""

# Database initialization and session management
from .database import close_database, get_engine, get_session, init_database

# Repository classes
from .repositories import HistoryRepository, JobRepository, MatchRepository, UserRepository

# Exceptions
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)

# Public API exports
__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "UserRepository",
    "JobRepository",
    "HistoryRepository",
    "MatchRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
