"""
Text and date normalization used by the matcher.

Token sets are cached per input string so a candidate scored against
many queries is only tokenized once.
"""

import functools
from datetime import date, datetime
from typing import FrozenSet, Optional, Union

MIN_TOKEN_LENGTH = 4
TOKEN_STRIP_CHARS = ".,;:!?\"'()[]{}<>-_/\\#*"


def normalize_text(s: Optional[str]) -> str:
    if not s:
        return ""
    return " ".join(s.strip().lower().split())


def normalize_category(category: Optional[str]) -> str:
    return normalize_text(category)


def normalize_location(location: Optional[str]) -> str:
    return normalize_text(location)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@functools.lru_cache(maxsize=4096)
def tokenize(text: Optional[str]) -> FrozenSet[str]:
    """
    Split text on whitespace into a set of lowercase tokens.

    Surrounding punctuation is stripped and tokens shorter than
    MIN_TOKEN_LENGTH characters are dropped ("the", "a", "of", "red").
    """
    if not text:
        return frozenset()
    tokens = set()
    for raw in text.lower().split():
        token = raw.strip(TOKEN_STRIP_CHARS)
        if len(token) >= MIN_TOKEN_LENGTH:
            tokens.add(token)
    return frozenset(tokens)


def shared_tokens(a: Optional[str], b: Optional[str]) -> FrozenSet[str]:
    return tokenize(a) & tokenize(b)


def location_contains(a: Optional[str], b: Optional[str]) -> bool:
    """True when either normalized location is a substring of the other."""
    la = normalize_location(a)
    lb = normalize_location(b)
    if not la or not lb:
        return False
    return la in lb or lb in la


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse a calendar date, returning None when it cannot be read.

    Accepts date/datetime objects, YYYY-MM-DD strings and full ISO
    timestamps (including a trailing Z).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def days_between(a, b) -> Optional[int]:
    """Absolute difference in calendar days, or None if either date is unreadable."""
    da = parse_date(a)
    db = parse_date(b)
    if da is None or db is None:
        return None
    return abs((da - db).days)
