"""
Feature Extraction for Matching.

Responsibilities:
- Compare one query item against one candidate, signal by signal.
- Normalize fields before comparing (case, whitespace, tokens, dates).

Non-Responsibilities:
- No weighting logic.
- No threshold logic.
- No persistence.

Invariant:
Missing data must never be treated as agreement. Empty fields, absent
tags and unreadable dates all compare as "no signal", never as a match
and never as an error. Generic fallback tags compare like any other tag
unless the caller asks for them to be ignored.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional

from lostfound.models import ItemRecord
from lostfound.normalize import days_between, location_contains, normalize_category, shared_tokens

from .metadata import FALLBACK_LABELS, NON_INFORMATIVE_COLOR_PROFILES, NON_INFORMATIVE_OBJECT_TYPES


@dataclass(frozen=True)
class MatchFeatures:
    category_match: bool
    object_type_match: bool
    shared_labels: FrozenSet[str]
    color_match: bool
    shared_title_tokens: FrozenSet[str]
    shared_description_tokens: FrozenSet[str]
    location_match: bool
    days_apart: Optional[int]


def category_match(a: ItemRecord, b: ItemRecord) -> bool:
    ca = normalize_category(a.category)
    return bool(ca) and ca == normalize_category(b.category)


def object_type_match(a: ItemRecord, b: ItemRecord, ignore_generic: bool = False) -> bool:
    if not a.object_type:
        return False
    if ignore_generic and a.object_type in NON_INFORMATIVE_OBJECT_TYPES:
        return False
    return a.object_type == b.object_type


def color_match(a: ItemRecord, b: ItemRecord, ignore_generic: bool = False) -> bool:
    if not a.color_profile:
        return False
    if ignore_generic and a.color_profile in NON_INFORMATIVE_COLOR_PROFILES:
        return False
    return a.color_profile == b.color_profile


def shared_labels(a: ItemRecord, b: ItemRecord, ignore_generic: bool = False) -> FrozenSet[str]:
    shared = frozenset(a.labels or ()) & frozenset(b.labels or ())
    if ignore_generic:
        return shared - FALLBACK_LABELS
    return shared


def compute_features(query: ItemRecord, candidate: ItemRecord, ignore_generic_tags: bool = False) -> MatchFeatures:
    return MatchFeatures(
        category_match=category_match(query, candidate),
        object_type_match=object_type_match(query, candidate, ignore_generic_tags),
        shared_labels=shared_labels(query, candidate, ignore_generic_tags),
        color_match=color_match(query, candidate, ignore_generic_tags),
        shared_title_tokens=shared_tokens(query.title, candidate.title),
        shared_description_tokens=shared_tokens(query.description, candidate.description),
        location_match=location_contains(query.location, candidate.location),
        days_apart=days_between(query.date, candidate.date),
    )
