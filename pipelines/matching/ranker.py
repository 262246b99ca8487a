"""
Ranking Logic for Matching.

Responsibilities:
- Score every candidate against a query.
- Drop candidates under the minimum confidence.
- Order by score and truncate to a bounded result.

Non-Responsibilities:
- No database access.
- No candidate selection (the pool arrives already filtered).
- No persistence of results.

Invariant:
Inputs are never mutated. Equal scores keep their input order, so the
same inputs always yield the same ordered result.
"""

from typing import Iterable, List, NamedTuple, Optional

from lostfound.config import DATE_RULE_LINEAR, DEFAULT_MATCH_LIMIT, DEFAULT_MIN_CONFIDENCE, ScoringWeights
from lostfound.errors import ItemValidationError
from lostfound.logger import get_logger
from lostfound.models import ItemRecord
from lostfound.schema import validate_query

from .metadata import tag_item
from .scoring import score


class RankedMatch(NamedTuple):
    item: ItemRecord
    score: int


def rank(
    query: ItemRecord,
    candidates: Iterable[ItemRecord],
    min_confidence: int = DEFAULT_MIN_CONFIDENCE,
    limit: int = DEFAULT_MATCH_LIMIT,
    weights: Optional[ScoringWeights] = None,
    date_rule: str = DATE_RULE_LINEAR,
) -> List[RankedMatch]:
    """
    Rank candidates for a query item.

    Args:
        query: Item to find counterparts for; tags are backfilled if absent
        candidates: Opposite-status items, in the order ties should keep
        min_confidence: Inclusion floor; scores strictly below it are dropped
        limit: Maximum number of matches returned
        weights: Signal weights (defaults to ScoringWeights())
        date_rule: "linear" or "stepped" date proximity

    Returns:
        New list of (item, score) pairs, highest score first

    Raises:
        ItemValidationError: If the query lacks category, title or description
        ValueError: If min_confidence is outside 0-100 or limit is below 1
    """
    if not 0 <= min_confidence <= 100:
        raise ValueError(f"min_confidence must be within 0-100, got {min_confidence}")
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    errors = validate_query(query)
    if errors:
        raise ItemValidationError(errors)

    query = tag_item(query)
    pool = list(candidates)

    scored = [RankedMatch(candidate, score(query, candidate, weights, date_rule)) for candidate in pool]
    kept = [match for match in scored if match.score >= min_confidence]
    # sorted() is stable: equal scores keep input order
    ranked = sorted(kept, key=lambda match: match.score, reverse=True)[:limit]

    logger = get_logger()
    logger.record_rank(candidates=len(pool), returned=len(ranked))
    logger.debug(
        "Ranked candidates",
        query_id=query.id,
        candidates=len(pool),
        above_threshold=len(kept),
        returned=len(ranked),
        min_confidence=min_confidence,
    )
    return ranked
