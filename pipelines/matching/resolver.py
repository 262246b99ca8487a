"""
Matching Orchestrator.

Responsibilities:
- Load the query item and the candidate pool from the record store.
- Backfill query tags once and persist them.
- Coordinate candidate selection and ranking.
- Optionally write matches and confidence back to the store.
- Record a confirmed pairing on both items.

Non-Responsibilities:
- No feature computation.
- No scoring formula.
- No retries (the repositories own those).

Invariant:
Given the same store contents and configuration, the same ranked
result is produced.
"""

from typing import Iterable, List, Optional, Tuple

from lostfound.config import MatchConfig
from lostfound.errors import ItemNotFoundError, ItemValidationError
from lostfound.logger import get_logger
from lostfound.models import ItemRecord, opposite_status

from .candidate_selector import select_candidates
from .metadata import tag_item
from .ranker import RankedMatch, rank


def match_item(
    query: ItemRecord,
    pool: Iterable[ItemRecord],
    config: Optional[MatchConfig] = None,
) -> List[RankedMatch]:
    """Rank an unfiltered pool for a query item snapshot."""
    config = config or MatchConfig()
    return rank(
        query,
        select_candidates(query, pool),
        min_confidence=config.min_confidence,
        limit=config.limit,
        weights=config.weights,
        date_rule=config.date_rule,
    )


def apply_matches(repository, item_id: str, ranked: List[RankedMatch]) -> Optional[ItemRecord]:
    """Persist ranking output: matched ids and the top score."""
    top = ranked[0].score if ranked else 0
    return repository.update(
        item_id,
        matches=[match.item.id for match in ranked],
        match_confidence=top,
    )


def find_matches(
    item_id: str,
    repository,
    config: Optional[MatchConfig] = None,
    persist: bool = False,
) -> List[RankedMatch]:
    """
    Find probable counterparts for a stored item.

    Args:
        item_id: Id of the query item
        repository: Item store exposing get_by_id, get_all and update
        config: Thresholds and weights (defaults to MatchConfig())
        persist: Write matches and match_confidence back to the query item

    Raises:
        ItemNotFoundError: If the id is not in the store
        ItemValidationError: If the stored item cannot be scored
    """
    config = config or MatchConfig()
    logger = get_logger()

    query = repository.get_by_id(item_id)
    if query is None:
        logger.warning("Query item not found", item_id=item_id)
        raise ItemNotFoundError(item_id)

    if not query.is_tagged:
        query = tag_item(query)
        repository.save_tags(query)
        logger.info(
            "Backfilled item tags",
            item_id=item_id,
            object_type=query.object_type,
            color_profile=query.color_profile,
        )

    pool = repository.get_all(opposite_status(query.status))
    ranked = match_item(query, pool, config)

    logger.info(
        "Matching complete",
        item_id=item_id,
        status=query.status,
        pool_size=len(pool),
        matches=len(ranked),
        top_score=ranked[0].score if ranked else 0,
    )

    if persist:
        apply_matches(repository, item_id, ranked)

    return ranked


def confirm_match(repository, item_id: str, match_id: str) -> Tuple[ItemRecord, ItemRecord]:
    """
    Mark a lost item and its found counterpart as matched.

    Raises:
        ItemNotFoundError: If either id is not in the store
        ItemValidationError: If both items share a status
    """
    item = repository.get_by_id(item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    other = repository.get_by_id(match_id)
    if other is None:
        raise ItemNotFoundError(match_id)
    if item.status == other.status:
        raise ItemValidationError([f"Items {item_id} and {match_id} are both {item.status}"])

    first = repository.update(item_id, is_matched=True)
    second = repository.update(match_id, is_matched=True)
    get_logger().info("Match confirmed", item_id=item_id, match_id=match_id)
    return first, second
