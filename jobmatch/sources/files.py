"""YAML file sources for users and jobs.

File layout::

    users:
      - user_id: u-1
        status: experience_position
        min_experience: 2
        state: completed        # optional, defaults to completed
        domains: [software]
    jobs:
      - title: Backend Engineer
        source_url: https://careers.example.com/jobs/42
        experience_level: "3-5 years"

Useful for seeding a database and for deterministic local runs.
"""

from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import ValidationError

from jobmatch.domain.models import ExperienceRepresentation, RawJob, UserPreference
from jobmatch.logging import get_logger
from jobmatch.persistence.schema import COMPLETED_STATE

from .base import JobSource, UserSource
from .exceptions import SourceUnavailableError

logger = get_logger(__name__, component="sources")


def load_yaml_records(path: Union[str, Path], key: str) -> List[Dict[str, Any]]:
    """Load the list stored under ``key`` in a YAML file.

    Raises:
        SourceUnavailableError: If the file is missing, unparseable, or the
            key does not hold a list
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise SourceUnavailableError(f"Cannot read {path}: {e}", source=key) from e
    except yaml.YAMLError as e:
        raise SourceUnavailableError(f"Invalid YAML in {path}: {e}", source=key) from e

    records = data.get(key, []) if isinstance(data, dict) else None
    if not isinstance(records, list):
        raise SourceUnavailableError(f"'{key}' in {path} must be a list", source=key)
    return records


class YamlUserSource(UserSource):
    """Users read from the ``users`` list of a YAML file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def iter_users(self) -> List[UserPreference]:
        users = []
        for record in load_yaml_records(self.path, "users"):
            record = dict(record)
            state = record.pop("state", COMPLETED_STATE)
            if state != COMPLETED_STATE:
                continue
            try:
                users.append(UserPreference(**record))
            except ValidationError as e:
                raise SourceUnavailableError(
                    f"Invalid user record in {self.path}: {e}", source=self.name
                ) from e

        logger.debug(
            f"Loaded {len(users)} users from {self.path}",
            extra={"event": "sources.users.loaded", "count": len(users)},
        )
        return users


class YamlJobSource(JobSource):
    """Raw jobs read from the ``jobs`` list of a YAML file."""

    def __init__(
        self,
        path: Union[str, Path],
        experience_representation: ExperienceRepresentation = ExperienceRepresentation.RANGE,
    ):
        self.path = Path(path)
        self.experience_representation = ExperienceRepresentation(experience_representation)

    def iter_jobs(self) -> List[RawJob]:
        try:
            jobs = [RawJob(**record) for record in load_yaml_records(self.path, "jobs")]
        except ValidationError as e:
            raise SourceUnavailableError(
                f"Invalid job record in {self.path}: {e}", source=self.name
            ) from e

        logger.debug(
            f"Loaded {len(jobs)} jobs from {self.path}",
            extra={"event": "sources.jobs.loaded", "count": len(jobs)},
        )
        return jobs
