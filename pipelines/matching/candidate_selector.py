"""
Candidate Selection Logic.

Responsibilities:
- Narrow an unfiltered pool of items to those a query may match.
- Apply hard filters (opposite status, not the query itself).

Non-Responsibilities:
- No scoring.
- No similarity computation.
- No threshold decisions.

Invariant:
Selection never reorders the pool and never excludes an item of the
opposite status; ranking ties rely on input order.
"""

from typing import Iterable, List

from lostfound.models import ItemRecord, opposite_status


def select_candidates(query: ItemRecord, pool: Iterable[ItemRecord]) -> List[ItemRecord]:
    wanted = opposite_status(query.status)
    return [item for item in pool if item.status == wanted and item.id != query.id]
