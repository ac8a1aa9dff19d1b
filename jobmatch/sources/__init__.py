"""Sources of users and jobs, and stores for history and matches.

This module provides:
- UserSource / JobSource / HistoryStore / MatchStore: capability interfaces
- Sql*: implementations over the persistence repositories
- Yaml*: file-backed user and job sources
- InMemory*: volatile stores for dry runs and tests
- seed_database: load a YAML dataset into the database
"""

from .base import HistoryStore, JobSource, MatchStore, UserSource
from .exceptions import SourceError, SourceUnavailableError, StoreWriteError
from .files import YamlJobSource, YamlUserSource, load_yaml_records
from .memory import InMemoryHistoryStore, InMemoryMatchStore
from .seed import seed_database
from .sql import SqlHistoryStore, SqlJobSource, SqlMatchStore, SqlUserSource

__all__ = [
    "UserSource",
    "JobSource",
    "HistoryStore",
    "MatchStore",
    "SourceError",
    "SourceUnavailableError",
    "StoreWriteError",
    "SqlUserSource",
    "SqlJobSource",
    "SqlHistoryStore",
    "SqlMatchStore",
    "YamlUserSource",
    "YamlJobSource",
    "load_yaml_records",
    "InMemoryHistoryStore",
    "InMemoryMatchStore",
    "seed_database",
]
