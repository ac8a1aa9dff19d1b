"""Compatibility matching between user preferences and jobs.

This module provides:
- Predicates: matches_experience, matches_domains, matches_location, matches_leadership
- MatchEngine: Row-at-a-time evaluation of (user, job) pairs
- BulkMatcher: Set-oriented SQL restatement of the same rules
- MatchCandidate / MatchResult: Outputs of evaluation
"""

from .bulk import BulkMatcher
from .criteria import (
    PREDICATES,
    REMOTE,
    effective_management_interest,
    matches_domains,
    matches_experience,
    matches_leadership,
    matches_location,
)
from .engine import MatchEngine
from .models import MatchCandidate, MatchResult

__all__ = [
    "MatchEngine",
    "BulkMatcher",
    "MatchCandidate",
    "MatchResult",
    "PREDICATES",
    "REMOTE",
    "matches_experience",
    "matches_domains",
    "matches_location",
    "matches_leadership",
    "effective_management_interest",
]
