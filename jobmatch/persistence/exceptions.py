"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError. Sources and stores
wrap them into ``jobmatch.sources`` errors at the capability boundary.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialized or reached.

    Examples:
    - Invalid DATABASE_URL
    - SQLite file or directory not writable
    - get_session() called before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a lookup that must succeed finds nothing.

    Optional lookups return None instead.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised on constraint violations or records that cannot be keyed.

    Examples:
    - Duplicate (user_id, job_id) insert racing an upsert
    - A job with neither source_url nor url
    """

    pass
