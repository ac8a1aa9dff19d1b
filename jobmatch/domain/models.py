"""Core domain models for users, jobs, matches and notification history.

This module defines the data structures used throughout the application:
- UserPreference: a job seeker's matching preferences (read-only to the core)
- RawJob: free-text job record as delivered by a job source
- NormalizedJob: canonical, structured view of a RawJob (ephemeral)
- NotificationHistoryEntry: append-only record of a sent notification
- MatchRecord: persisted match, upserted by (user_id, job_id)
"""

from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jobmatch.utils.timestamps import ensure_utc

UNBOUNDED_EXPERIENCE = 99


class UserStatus(str, Enum):
    """Kind of position a user is looking for."""

    STUDENT_POSITION = "student_position"
    NO_EXPERIENCE_POSITION = "no_experience_position"
    EXPERIENCE_POSITION = "experience_position"


class ManagementInterest(str, Enum):
    """How a user feels about roles with a leadership level."""

    NONE = "none"
    NO_MANAGEMENT = "no_management"
    MANAGEMENT_ONLY = "management_only"
    MANAGEMENT_AND_INDIVIDUAL = "management_and_individual"


class ExperienceRepresentation(str, Enum):
    """How a job source encodes acceptable experience.

    RANGE: continuous [min_exp, max_exp] interval parsed from free text.
    DISCRETE: explicit set of acceptable integer levels.
    """

    RANGE = "range"
    DISCRETE = "discrete"


def _to_token_set(value: Any) -> FrozenSet[str]:
    """Coerce None, a list, or a set of strings into a frozenset of stripped strings."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    tokens = set()
    for item in value:
        if item is None:
            continue
        # Exported preference arrays sometimes keep JSON quoting around items
        stripped = str(item).strip().strip('"').strip()
        if stripped:
            tokens.add(stripped)
    return frozenset(tokens)


class UserPreference(BaseModel):
    """A job seeker's matching preferences.

    Owned by the external user-profile store. The core never mutates a
    preference; swapped experience bounds are reordered on construction so
    that ``min_experience <= max_experience`` always holds.
    """

    user_id: str = Field(..., min_length=1, description="Opaque unique user identifier")
    status: UserStatus = Field(..., description="Kind of position the user is looking for")
    min_experience: Optional[int] = Field(None, ge=0, description="Lower bound in years")
    max_experience: Optional[int] = Field(None, ge=0, description="Upper bound in years")
    degree: Optional[str] = Field(None, description="Degree, relevant for student positions")
    management_interest: ManagementInterest = Field(
        ManagementInterest.NONE, description="Attitude towards leadership roles"
    )
    management_level: FrozenSet[str] = Field(
        default_factory=frozenset, description="Acceptable leadership levels (canonical tokens)"
    )
    domains: FrozenSet[str] = Field(
        default_factory=frozenset, description="Canonical domain ids (empty = open to all)"
    )
    locations: FrozenSet[str] = Field(
        default_factory=frozenset, description="Canonical location tokens (empty = open to all)"
    )
    full_name: Optional[str] = Field(None, description="Display name, diagnostics only")

    @field_validator("management_interest", mode="before")
    @classmethod
    def default_management_interest(cls, v: Any) -> Any:
        """Treat an absent or blank interest as ``none``."""
        if v is None or (isinstance(v, str) and not v.strip().strip('"')):
            return ManagementInterest.NONE
        if isinstance(v, str):
            return v.strip().strip('"')
        return v

    @field_validator("management_level", "domains", "locations", mode="before")
    @classmethod
    def coerce_token_sets(cls, v: Any) -> FrozenSet[str]:
        """Accept None, lists, or sets and strip stray quoting."""
        return _to_token_set(v)

    @field_validator("degree")
    @classmethod
    def strip_degree(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace from degree; blank becomes None."""
        if v is None:
            return None
        stripped = v.strip().strip('"').strip()
        return stripped or None

    @model_validator(mode="after")
    def order_experience_bounds(self) -> "UserPreference":
        """Reorder swapped experience bounds instead of rejecting them."""
        if (
            self.min_experience is not None
            and self.max_experience is not None
            and self.min_experience > self.max_experience
        ):
            self.min_experience, self.max_experience = self.max_experience, self.min_experience
        return self

    model_config = {"json_schema_extra": {"example": {
        "user_id": "u-123",
        "status": "experience_position",
        "min_experience": 2,
        "max_experience": 5,
        "management_interest": "no_management",
        "management_level": [],
        "domains": ["software", "devops"],
        "locations": ["tel_aviv", "remote"],
    }}}


class RawJob(BaseModel):
    """Raw job record from a job source, before normalization.

    All attributes are free text exactly as the source delivers them. The
    optional ``experience_levels`` list is only read for sources that declare
    the discrete experience representation.
    """

    title: Optional[str] = Field(None, description="Job title")
    source_url: Optional[str] = Field(None, description="Canonical URL, stable job identifier")
    url: Optional[str] = Field(None, description="Link shown to the user")
    locations: Optional[str] = Field(None, description="Comma-separated locations")
    job_scope: Optional[str] = Field(None, description="Comma-separated domain titles")
    experience_level: Optional[str] = Field(None, description="Free-text experience requirement")
    leadership_level: Optional[str] = Field(None, description="Free-text leadership level")
    experience_levels: Optional[List[int]] = Field(
        None, description="Discrete acceptable experience levels (discrete sources only)"
    )

    @field_validator(
        "title", "source_url", "url", "locations", "job_scope",
        "experience_level", "leadership_level",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        """Coerce scalars to stripped text; blank becomes None."""
        if v is None:
            return None
        stripped = str(v).strip()
        return stripped if stripped else None

    @property
    def job_id(self) -> Optional[str]:
        """Stable identifier: the canonical source URL, falling back to the display URL."""
        return self.source_url or self.url

    model_config = {"json_schema_extra": {"example": {
        "title": "Backend Engineer",
        "source_url": "https://careers.example.com/jobs/42",
        "url": "https://careers.example.com/jobs/42?ref=feed",
        "locations": "Tel Aviv, Remote",
        "job_scope": "Software, DevOps",
        "experience_level": "3-5 years",
        "leadership_level": "",
    }}}


class NormalizedJob(BaseModel):
    """Canonical, structured view of a job posting.

    Derived every run from a RawJob and never persisted by the core itself
    (the bulk matcher stages it in scratch tables for the duration of a query).
    """

    id: str = Field(..., description="Stable job identifier (canonical URL)")
    title: str = Field("", description="Job title")
    url: str = Field("", description="Link shown to the user")
    locations: FrozenSet[str] = Field(default_factory=frozenset)
    domains: FrozenSet[str] = Field(default_factory=frozenset)
    min_exp: int = Field(0, ge=0, le=UNBOUNDED_EXPERIENCE)
    max_exp: int = Field(UNBOUNDED_EXPERIENCE, ge=0, le=UNBOUNDED_EXPERIENCE)
    is_student_job: bool = False
    leadership_level: Optional[str] = None
    experience_levels: Optional[FrozenSet[int]] = Field(
        None, description="Discrete acceptable levels; None for range-encoded jobs"
    )

    @property
    def accepts_no_experience(self) -> bool:
        """Whether zero years of experience is acceptable for this job."""
        if self.experience_levels is not None:
            return 0 in self.experience_levels
        return self.min_exp <= 0 <= self.max_exp


class NotificationHistoryEntry(BaseModel):
    """Append-only record of a notification sent for a (user, job) pair."""

    user_id: str = Field(..., description="User notified")
    job_id: str = Field(..., description="Job the user was notified about")
    sent_at: datetime = Field(..., description="When the notification was recorded (UTC)")

    @field_validator("sent_at")
    @classmethod
    def normalize_sent_at(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)


class MatchRecord(BaseModel):
    """A match handed to persistence; merged by (user_id, job_id)."""

    user_id: str = Field(..., description="Matched user")
    job_id: str = Field(..., description="Matched job")
    title: str = Field("", description="Job title at match time")
    url: str = Field("", description="Job link at match time")
    status: str = Field("new", description="Review status shown to the user")
    matched_at: datetime = Field(..., description="When the match was recorded (UTC)")

    @field_validator("matched_at")
    @classmethod
    def normalize_matched_at(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)
