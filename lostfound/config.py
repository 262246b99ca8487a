"""
Matching configuration.

Every knob can be set from the environment (or a .env file loaded by
lostfound.env.load_env):

    LOSTFOUND_DB_PATH          SQLite file for the record store
    LOSTFOUND_MIN_CONFIDENCE   inclusion floor for ranked matches (0-100)
    LOSTFOUND_MATCH_LIMIT      maximum matches returned per query
    LOSTFOUND_DATE_RULE        "linear" or "stepped" date proximity
    LOSTFOUND_LOG_LEVEL        DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOSTFOUND_LOG_DIR          write dated log files here when set
    LOSTFOUND_IGNORE_GENERIC_TAGS  "true" to stop fallback tags counting as agreement

The minimum confidence and the date rule are knobs rather than constants:
earlier revisions of the matcher used both 40 and 50 as the floor, and
both a linear and a stepped date formula.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DATE_RULE_LINEAR = "linear"
DATE_RULE_STEPPED = "stepped"
DATE_RULES = (DATE_RULE_LINEAR, DATE_RULE_STEPPED)

DEFAULT_MIN_CONFIDENCE = 40
DEFAULT_MATCH_LIMIT = 5
DEFAULT_DB_PATH = "data/lostfound.db"


@dataclass(frozen=True)
class ScoringWeights:
    """Points contributed by each signal, and the caps on the counted ones."""

    category: int = 30
    object_type: int = 15
    label_each: int = 5
    label_cap: int = 20
    color_profile: int = 10
    title_token_each: int = 10
    title_token_cap: int = 30
    description_token_each: int = 5
    description_token_cap: int = 20
    location: int = 15
    date_max: int = 10
    # Stepped rule only
    date_near_days: int = 3
    date_far_days: int = 7
    date_far_points: int = 5
    # When set, generic fallback tags (item, unknown, mixed) never count as agreement
    ignore_generic_tags: bool = False

    def max_score(self) -> int:
        """Highest raw total these weights can produce (before clamping)."""
        return (
            self.category
            + self.object_type
            + self.label_cap
            + self.color_profile
            + self.title_token_cap
            + self.description_token_cap
            + self.location
            + self.date_max
        )


@dataclass(frozen=True)
class MatchConfig:
    min_confidence: int = DEFAULT_MIN_CONFIDENCE
    limit: int = DEFAULT_MATCH_LIMIT
    date_rule: str = DATE_RULE_LINEAR
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    db_path: Path = Path(DEFAULT_DB_PATH)
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    def __post_init__(self):
        if not 0 <= self.min_confidence <= 100:
            raise ValueError(f"min_confidence must be within 0-100, got {self.min_confidence}")
        if self.limit < 1:
            raise ValueError(f"limit must be at least 1, got {self.limit}")
        if self.date_rule not in DATE_RULES:
            raise ValueError(f"date_rule must be one of {DATE_RULES}, got {self.date_rule!r}")


def _int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")


def _bool_env(env: Mapping[str, str], key: str) -> bool:
    return env.get(key, "").strip().lower() in ("1", "true", "yes", "on")


def load_config(env: Optional[Mapping[str, str]] = None) -> MatchConfig:
    """Build a MatchConfig from environment variables."""
    env = os.environ if env is None else env
    log_dir = env.get("LOSTFOUND_LOG_DIR")
    return MatchConfig(
        min_confidence=_int_env(env, "LOSTFOUND_MIN_CONFIDENCE", DEFAULT_MIN_CONFIDENCE),
        limit=_int_env(env, "LOSTFOUND_MATCH_LIMIT", DEFAULT_MATCH_LIMIT),
        date_rule=env.get("LOSTFOUND_DATE_RULE", DATE_RULE_LINEAR).strip().lower(),
        weights=ScoringWeights(ignore_generic_tags=_bool_env(env, "LOSTFOUND_IGNORE_GENERIC_TAGS")),
        db_path=Path(env.get("LOSTFOUND_DB_PATH", DEFAULT_DB_PATH)),
        log_level=env.get("LOSTFOUND_LOG_LEVEL", "INFO").upper(),
        log_dir=Path(log_dir) if log_dir else None,
    )
