"""Compatibility predicates between a user's preferences and a normalized job.

Each predicate is a pure, total function ``(UserPreference, NormalizedJob) ->
bool``. The bulk SQL matcher in ``jobmatch.matching.bulk`` restates exactly
these rules and is tested against them.
"""

import math
from typing import Callable, Dict, FrozenSet

from jobmatch.domain.models import ManagementInterest, NormalizedJob, UserPreference, UserStatus

REMOTE = "remote"

Predicate = Callable[[UserPreference, NormalizedJob], bool]


def _open_or_intersects(left: FrozenSet[str], right: FrozenSet[str]) -> bool:
    # An empty preference on either side is open, not closed
    if not left or not right:
        return True
    return not left.isdisjoint(right)


def matches_experience(user: UserPreference, job: NormalizedJob) -> bool:
    """Experience/status compatibility.

    - student_position: the job must signal a degree requirement
    - no_experience_position: zero years must be acceptable for the job
    - experience_position: the user's range must overlap the job's
    """
    if user.status is UserStatus.STUDENT_POSITION:
        return job.is_student_job

    if user.status is UserStatus.NO_EXPERIENCE_POSITION:
        return job.accepts_no_experience

    user_min = user.min_experience if user.min_experience is not None else 0
    user_max = user.max_experience if user.max_experience is not None else math.inf

    if job.experience_levels is not None:
        return any(user_min <= level <= user_max for level in job.experience_levels)

    return user_min <= job.max_exp and user_max >= job.min_exp


def matches_domains(user: UserPreference, job: NormalizedJob) -> bool:
    """Domain compatibility: open on either empty side, else any shared id."""
    return _open_or_intersects(user.domains, job.domains)


def matches_location(user: UserPreference, job: NormalizedJob) -> bool:
    """Location compatibility with the remote wildcard.

    Open on either empty side; ``remote`` on either side always passes;
    otherwise the sets must share a token.
    """
    if not user.locations or not job.locations:
        return True
    if REMOTE in user.locations or REMOTE in job.locations:
        return True
    return not user.locations.isdisjoint(job.locations)


def effective_management_interest(user: UserPreference) -> ManagementInterest:
    """Management interest used for matching.

    Users not looking for experienced positions can never be matched to
    leadership roles, whatever they declared.
    """
    if user.status is not UserStatus.EXPERIENCE_POSITION:
        return ManagementInterest.NONE
    return user.management_interest


def matches_leadership(user: UserPreference, job: NormalizedJob) -> bool:
    """Leadership compatibility keyed by management interest.

    | interest                  | job has level L       | job has no level |
    |---------------------------|-----------------------|------------------|
    | none / no_management      | reject                | accept           |
    | management_only           | L in management_level | reject           |
    | management_and_individual | L in management_level | accept           |
    """
    interest = effective_management_interest(user)
    level = job.leadership_level

    if interest in (ManagementInterest.NONE, ManagementInterest.NO_MANAGEMENT):
        return level is None

    if interest is ManagementInterest.MANAGEMENT_ONLY:
        return level is not None and level in user.management_level

    # management_and_individual
    return level is None or level in user.management_level


# Cheapest and most selective first; order never changes the outcome.
PREDICATES: Dict[str, Predicate] = {
    "domain": matches_domains,
    "location": matches_location,
    "experience": matches_experience,
    "leadership": matches_leadership,
}
