"""Lost & found match engine: tag, score, rank."""

from .metadata import ImageMetadata, extract_metadata, tag_item
from .scoring import ScoreBreakdown, score, score_breakdown
from .ranker import RankedMatch, rank

__all__ = [
    "ImageMetadata",
    "RankedMatch",
    "ScoreBreakdown",
    "extract_metadata",
    "rank",
    "score",
    "score_breakdown",
    "tag_item",
]
