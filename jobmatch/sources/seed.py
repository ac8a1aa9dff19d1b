"""Load a YAML dataset into the database."""

from pathlib import Path
from typing import Callable, ContextManager, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from jobmatch.domain.models import RawJob, UserPreference
from jobmatch.logging import get_logger
from jobmatch.persistence.database import get_session
from jobmatch.persistence.repositories import JobRepository, UserRepository
from jobmatch.persistence.schema import COMPLETED_STATE

from .exceptions import SourceUnavailableError
from .files import load_yaml_records

logger = get_logger(__name__, component="sources")


def seed_database(
    users_file: Union[str, Path],
    jobs_file: Optional[Union[str, Path]] = None,
    session_factory: Callable[[], ContextManager[Session]] = get_session,
) -> Tuple[int, int]:
    """
    Upsert the users and jobs of a YAML dataset in one transaction.

    Users keep their ``state`` (default ``completed``) so onboarding profiles
    are stored but never matched. Jobs without a link cannot be stored and
    are skipped.

    Args:
        users_file: YAML file with a ``users`` list
        jobs_file: YAML file with a ``jobs`` list (defaults to ``users_file``)
        session_factory: Session context manager factory

    Returns:
        (users seeded, jobs seeded)

    Raises:
        SourceUnavailableError: If a file is unreadable or holds an invalid record
        PersistenceError: If the database write fails
    """
    jobs_file = jobs_file or users_file

    try:
        users = []
        for record in load_yaml_records(users_file, "users"):
            record = dict(record)
            state = record.pop("state", COMPLETED_STATE)
            users.append((UserPreference(**record), state))
        jobs = [RawJob(**record) for record in load_yaml_records(jobs_file, "jobs")]
    except ValidationError as e:
        raise SourceUnavailableError(f"Invalid record in dataset: {e}", source="seed") from e

    skipped = [job for job in jobs if job.job_id is None]
    jobs = [job for job in jobs if job.job_id is not None]

    with session_factory() as session:
        user_repo = UserRepository(session)
        for user, state in users:
            user_repo.upsert(user, state=state)
        JobRepository(session).bulk_upsert(jobs)

    logger.info(
        f"Seeded {len(users)} users and {len(jobs)} jobs",
        extra={
            "event": "sources.seed.completed",
            "users": len(users),
            "jobs": len(jobs),
            "jobs_skipped": len(skipped),
        },
    )
    return len(users), len(jobs)
