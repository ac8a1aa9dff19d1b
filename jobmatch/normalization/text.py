"""Canonical token helpers shared by job and user normalization."""

import re
from typing import FrozenSet, List, Optional

_WHITESPACE = re.compile(r"\s+")


def canonical_token(text: Optional[str]) -> Optional[str]:
    """Convert free text into a canonical token.

    Trims, lowercases, and replaces internal whitespace runs with a single
    underscore. Already-canonical tokens are returned unchanged.

    Args:
        text: Free text such as "Tel Aviv" or "Team Lead"

    Returns:
        Canonical token ("tel_aviv", "team_lead"), or None for blank input

    Example:
        >>> canonical_token("  New   York ")
        'new_york'
    """
    if text is None:
        return None
    stripped = text.strip()
    if not stripped:
        return None
    return _WHITESPACE.sub("_", stripped.lower())


def split_raw(text: Optional[str]) -> List[str]:
    """Split a comma-separated field into trimmed, non-empty raw parts."""
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def split_tokens(text: Optional[str]) -> FrozenSet[str]:
    """Split a comma-separated field into a set of canonical tokens.

    Example:
        >>> sorted(split_tokens("Tel Aviv, Remote"))
        ['remote', 'tel_aviv']
    """
    tokens = set()
    for part in split_raw(text):
        token = canonical_token(part)
        if token:
            tokens.add(token)
    return frozenset(tokens)
