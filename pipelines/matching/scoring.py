"""
Scoring Logic for Matching.

Responsibilities:
- Compute a deterministic 0-100 confidence between a query item and a
  candidate item from weighted features.
- Emit a score breakdown and explanation.

Non-Responsibilities:
- No database access.
- No candidate selection.
- No threshold decisions.

Invariant:
Given identical inputs, this module must always return the same score
and explanation. The formula is symmetric in its two items even though
callers give them different roles (lost vs found).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from lostfound.config import DATE_RULE_LINEAR, DATE_RULE_STEPPED, ScoringWeights
from lostfound.models import ItemRecord

from .features import MatchFeatures, compute_features

MIN_SCORE = 0
MAX_SCORE = 100

DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class ScoreBreakdown:
    total: int
    contributions: Dict[str, int] = field(default_factory=dict)
    explanation: List[str] = field(default_factory=list)


def clamp_score(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, int(value)))


def date_points(days_apart: Optional[int], weights: ScoringWeights, rule: str = DATE_RULE_LINEAR) -> int:
    """
    Points for how close the two reported dates are.

    linear:  max(0, date_max - days)
    stepped: date_max within date_near_days, date_far_points within date_far_days
    Unreadable dates (None) score 0.
    """
    if days_apart is None:
        return 0
    if rule == DATE_RULE_STEPPED:
        if days_apart <= weights.date_near_days:
            return weights.date_max
        if days_apart <= weights.date_far_days:
            return weights.date_far_points
        return 0
    if rule == DATE_RULE_LINEAR:
        return max(0, weights.date_max - days_apart)
    raise ValueError(f"Unknown date rule: {rule!r}")


def _counted(count: int, each: int, cap: int) -> int:
    return min(count * each, cap)


def weigh_features(
    features: MatchFeatures,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    date_rule: str = DATE_RULE_LINEAR,
) -> ScoreBreakdown:
    contributions: Dict[str, int] = {}
    explanation: List[str] = []

    if features.category_match:
        contributions["category"] = weights.category
        explanation.append("same category")

    if features.object_type_match:
        contributions["object_type"] = weights.object_type
        explanation.append("same object type")

    if features.shared_labels:
        contributions["labels"] = _counted(len(features.shared_labels), weights.label_each, weights.label_cap)
        explanation.append("shared labels: " + ", ".join(sorted(features.shared_labels)))

    if features.color_match:
        contributions["color_profile"] = weights.color_profile
        explanation.append("same color profile")

    if features.shared_title_tokens:
        contributions["title"] = _counted(
            len(features.shared_title_tokens), weights.title_token_each, weights.title_token_cap
        )
        explanation.append("title words: " + ", ".join(sorted(features.shared_title_tokens)))

    if features.shared_description_tokens:
        contributions["description"] = _counted(
            len(features.shared_description_tokens),
            weights.description_token_each,
            weights.description_token_cap,
        )
        explanation.append("description words: " + ", ".join(sorted(features.shared_description_tokens)))

    if features.location_match:
        contributions["location"] = weights.location
        explanation.append("overlapping location")

    points = date_points(features.days_apart, weights, date_rule)
    if points:
        contributions["date"] = points
        explanation.append(f"reported {features.days_apart} day(s) apart")

    return ScoreBreakdown(
        total=clamp_score(sum(contributions.values())),
        contributions=contributions,
        explanation=explanation,
    )


def score_breakdown(
    query: ItemRecord,
    candidate: ItemRecord,
    weights: Optional[ScoringWeights] = None,
    date_rule: str = DATE_RULE_LINEAR,
) -> ScoreBreakdown:
    weights = weights or DEFAULT_WEIGHTS
    features = compute_features(query, candidate, weights.ignore_generic_tags)
    return weigh_features(features, weights, date_rule)


def score(
    query: ItemRecord,
    candidate: ItemRecord,
    weights: Optional[ScoringWeights] = None,
    date_rule: str = DATE_RULE_LINEAR,
) -> int:
    """Confidence in [0, 100] that the two items describe the same object."""
    return score_breakdown(query, candidate, weights, date_rule).total
