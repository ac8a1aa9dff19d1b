"""Normalization layer for converting raw job records to canonical form.

This module provides:
- JobNormalizer: Service to convert RawJob to NormalizedJob
- parse_experience: Priority grammar for free-text experience requirements
- canonical_token / split_tokens: Shared token canonicalization
"""

from .experience import ExperienceParse, ExperienceRule, has_degree_marker, parse_experience, tokenize
from .service import JobNormalizer
from .text import canonical_token, split_tokens

__all__ = [
    "JobNormalizer",
    "ExperienceParse",
    "ExperienceRule",
    "parse_experience",
    "has_degree_marker",
    "tokenize",
    "canonical_token",
    "split_tokens",
]
