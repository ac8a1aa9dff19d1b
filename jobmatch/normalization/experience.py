"""Tokenizer and priority grammar for free-text experience requirements.

Experience text arrives in many shapes ("3-5 years", "5+ yrs", "B.Sc in CS",
"2 years, M.Sc an advantage"). The text is tokenized once and then matched by
an ordered list of rules; the first numeric rule that matches wins:

    1. degree marker  -> is_student_job (independent of the numeric rules)
    2. NUMBER DASH NUMBER  -> [low, high]
    3. NUMBER PLUS         -> [n, unbounded]
    4. standalone digit    -> [n, n]
    5. otherwise           -> [0, unbounded]

Parsed years are capped at UNBOUNDED_EXPERIENCE.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from jobmatch.domain.models import UNBOUNDED_EXPERIENCE

DEGREE_MARKER = re.compile(
    r"\b(?:[bm]\.?\s?sc|(?:bachelor|master)(?:'?s)?\s+degree)\b", re.IGNORECASE
)

_TOKEN_PATTERN = re.compile(
    r"(?P<number>\d+)|(?P<dash>[-–—])|(?P<plus>\+)|(?P<word>[^\W\d_]+)|(?P<space>\s+)|(?P<other>.)",
    re.UNICODE,
)


class TokenKind(str, Enum):
    NUMBER = "number"
    DASH = "dash"
    PLUS = "plus"
    WORD = "word"
    OTHER = "other"


@dataclass(frozen=True)
class Token:
    """A lexical token with its span in the source text."""

    kind: TokenKind
    text: str
    start: int
    end: int


class ExperienceRule(str, Enum):
    """Which grammar rule produced the numeric bounds."""

    RANGE = "range"
    OPEN_ENDED = "open_ended"
    SINGLE = "single"
    DEFAULT = "default"


@dataclass(frozen=True)
class ExperienceParse:
    """Result of parsing an experience requirement."""

    min_exp: int = 0
    max_exp: int = UNBOUNDED_EXPERIENCE
    is_student_job: bool = False
    rule: ExperienceRule = ExperienceRule.DEFAULT


def tokenize(text: str) -> List[Token]:
    """Split experience text into tokens, dropping whitespace."""
    tokens = []
    for match in _TOKEN_PATTERN.finditer(text):
        kind = match.lastgroup
        if kind == "space":
            continue
        tokens.append(Token(TokenKind(kind), match.group(), match.start(), match.end()))
    return tokens


def has_degree_marker(text: Optional[str]) -> bool:
    """Whether the text signals a bachelor's or master's requirement."""
    if not text:
        return False
    return DEGREE_MARKER.search(text) is not None


def _years(token: Token) -> int:
    # Clamp to the open-ended ceiling
    return min(int(token.text), UNBOUNDED_EXPERIENCE)


def _match_range(tokens: List[Token]) -> Optional[ExperienceParse]:
    for i in range(len(tokens) - 2):
        low, dash, high = tokens[i], tokens[i + 1], tokens[i + 2]
        if (
            low.kind is TokenKind.NUMBER
            and dash.kind is TokenKind.DASH
            and high.kind is TokenKind.NUMBER
        ):
            first, second = _years(low), _years(high)
            return ExperienceParse(
                min_exp=min(first, second),
                max_exp=max(first, second),
                rule=ExperienceRule.RANGE,
            )
    return None


def _match_open_ended(tokens: List[Token]) -> Optional[ExperienceParse]:
    for i in range(len(tokens) - 1):
        number, plus = tokens[i], tokens[i + 1]
        # "5 +" is not an open-ended bound; the plus must touch the number
        if number.kind is TokenKind.NUMBER and plus.kind is TokenKind.PLUS and number.end == plus.start:
            return ExperienceParse(
                min_exp=_years(number),
                max_exp=UNBOUNDED_EXPERIENCE,
                rule=ExperienceRule.OPEN_ENDED,
            )
    return None


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _match_single(tokens: List[Token], text: str) -> Optional[ExperienceParse]:
    for token in tokens:
        if token.kind is not TokenKind.NUMBER or len(token.text) != 1:
            continue
        before = text[token.start - 1] if token.start > 0 else ""
        after = text[token.end] if token.end < len(text) else ""
        if (before and _is_word_char(before)) or (after and _is_word_char(after)):
            continue
        value = _years(token)
        return ExperienceParse(min_exp=value, max_exp=value, rule=ExperienceRule.SINGLE)
    return None


def parse_experience(text: Optional[str]) -> ExperienceParse:
    """Parse a free-text experience requirement.

    Total: unparseable or missing text yields the defaults (0, unbounded).

    Args:
        text: Raw ``experience_level`` text

    Returns:
        ExperienceParse with bounds, student flag, and the rule that fired

    Example:
        >>> parse_experience("3-5 years").max_exp
        5
        >>> parse_experience("B.Sc, 2+ years").is_student_job
        True
    """
    if not text or not text.strip():
        return ExperienceParse()

    is_student_job = has_degree_marker(text)
    tokens = tokenize(text)

    parsed = _match_range(tokens) or _match_open_ended(tokens) or _match_single(tokens, text)
    if parsed is None:
        parsed = ExperienceParse()

    return ExperienceParse(
        min_exp=parsed.min_exp,
        max_exp=parsed.max_exp,
        is_student_job=is_student_job,
        rule=parsed.rule,
    )
