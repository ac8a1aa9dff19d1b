"""Test helper utilities for job-match reconciliation tests."""

from .fixture_sources import (
    FIXTURES_DIR,
    FailingHistoryStore,
    FailingJobSource,
    FailingMatchStore,
    FailingUserSource,
    FrozenClock,
    RecordingMatchStore,
    StaticJobSource,
    StaticUserSource,
    UnreadableHistoryStore,
    make_job,
    make_raw_job,
    make_user,
)

__all__ = [
    "FIXTURES_DIR",
    "FailingHistoryStore",
    "FailingJobSource",
    "FailingMatchStore",
    "FailingUserSource",
    "FrozenClock",
    "RecordingMatchStore",
    "StaticJobSource",
    "StaticUserSource",
    "UnreadableHistoryStore",
    "make_job",
    "make_raw_job",
    "make_user",
]
