"""Domain models for the job match reconciler."""

from .models import (
    UNBOUNDED_EXPERIENCE,
    ExperienceRepresentation,
    ManagementInterest,
    MatchRecord,
    NormalizedJob,
    NotificationHistoryEntry,
    RawJob,
    UserPreference,
    UserStatus,
)
from .vocabulary import DomainEntry, all_domain_ids, categories, resolve_domain

__all__ = [
    "UserPreference",
    "RawJob",
    "NormalizedJob",
    "NotificationHistoryEntry",
    "MatchRecord",
    "UserStatus",
    "ManagementInterest",
    "ExperienceRepresentation",
    "UNBOUNDED_EXPERIENCE",
    "DomainEntry",
    "resolve_domain",
    "all_domain_ids",
    "categories",
]
