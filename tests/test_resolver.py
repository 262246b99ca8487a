"""
Tests for the matching workflow against a real SQLite store.
"""

from dataclasses import replace

import pytest

from lostfound.config import MatchConfig
from lostfound.errors import ItemNotFoundError, ItemValidationError
from pipelines.matching.candidate_selector import select_candidates
from pipelines.matching.ranker import RankedMatch
from pipelines.matching.resolver import apply_matches, confirm_match, find_matches, match_item
from conftest import make_item


@pytest.fixture
def stored_pool(item_repository, phone_candidate, unrelated_candidate, mid_candidate):
    """Untagged lost phone plus three found items and one other lost item."""
    query = make_item(image_ref="black-phone.jpg")
    other_lost = make_item(id="lost-phone-2", title="Lost black phone again")
    for item in (query, phone_candidate, unrelated_candidate, mid_candidate, other_lost):
        item_repository.insert(item)
    return query


class TestSelectCandidates:

    def test_keeps_only_opposite_status(self, phone_query, phone_candidate):
        lost = make_item(id="lost-2")
        assert select_candidates(phone_query, [lost, phone_candidate]) == [phone_candidate]

    def test_excludes_query_itself(self, phone_query):
        found_copy = replace(phone_query, status="found")
        assert select_candidates(phone_query, [found_copy]) == []

    def test_preserves_order(self, phone_query, phone_candidate, mid_candidate):
        assert select_candidates(phone_query, [mid_candidate, phone_candidate]) == [mid_candidate, phone_candidate]


class TestMatchItem:

    def test_unfiltered_pool(self, phone_query, phone_candidate):
        same_status = replace(phone_candidate, id="lost-copy", status="lost")
        result = match_item(phone_query, [same_status, phone_query, phone_candidate])
        assert [m.item.id for m in result] == ["found-phone"]

    def test_config_threshold(self, phone_query, phone_candidate, mid_candidate):
        result = match_item(phone_query, [phone_candidate, mid_candidate], MatchConfig(min_confidence=60))
        assert [m.item.id for m in result] == ["found-phone"]

    def test_config_limit(self, phone_query, phone_candidate, mid_candidate):
        result = match_item(phone_query, [mid_candidate, phone_candidate], MatchConfig(limit=1))
        assert [m.item.id for m in result] == ["found-phone"]


class TestFindMatches:

    def test_unknown_id(self, item_repository):
        with pytest.raises(ItemNotFoundError) as exc_info:
            find_matches("missing", item_repository)
        assert exc_info.value.item_id == "missing"

    def test_ranks_opposite_status_from_store(self, item_repository, stored_pool):
        result = find_matches(stored_pool.id, item_repository)

        assert [m.item.id for m in result] == ["found-phone", "found-laptop"]
        assert [m.score for m in result] == [99, 52]

    def test_backfills_and_stores_tags(self, item_repository, stored_pool):
        find_matches(stored_pool.id, item_repository)

        stored = item_repository.get_by_id(stored_pool.id)
        assert stored.is_tagged
        assert stored.object_type == "electronics"
        assert stored.color_profile == "dark"

    def test_does_not_persist_by_default(self, item_repository, stored_pool):
        find_matches(stored_pool.id, item_repository)
        stored = item_repository.get_by_id(stored_pool.id)
        assert stored.matches == ()
        assert stored.match_confidence == 0

    def test_persist_writes_matches(self, item_repository, stored_pool):
        result = find_matches(stored_pool.id, item_repository, persist=True)

        stored = item_repository.get_by_id(stored_pool.id)
        assert stored.matches == ("found-phone", "found-laptop")
        assert stored.match_confidence == result[0].score

    def test_invalid_stored_item(self, item_repository):
        item_repository.insert(make_item(id="bad", category=" "))
        with pytest.raises(ItemValidationError):
            find_matches("bad", item_repository)


class TestApplyMatches:

    def test_empty_result_resets(self, item_repository, phone_query):
        item_repository.insert(replace(phone_query, matches=("old",), match_confidence=77))
        updated = apply_matches(item_repository, phone_query.id, [])
        assert updated.matches == ()
        assert updated.match_confidence == 0

    def test_top_score_is_confidence(self, item_repository, phone_query, phone_candidate, mid_candidate):
        item_repository.insert(phone_query)
        ranked = [RankedMatch(phone_candidate, 99), RankedMatch(mid_candidate, 52)]
        updated = apply_matches(item_repository, phone_query.id, ranked)
        assert updated.matches == ("found-phone", "found-laptop")
        assert updated.match_confidence == 99


class TestConfirmMatch:

    def test_marks_both_items(self, item_repository, phone_query, phone_candidate):
        item_repository.insert(phone_query)
        item_repository.insert(phone_candidate)

        lost, found = confirm_match(item_repository, "query", "found-phone")

        assert lost.is_matched and found.is_matched
        assert item_repository.get_by_id("query").is_matched
        assert item_repository.get_by_id("found-phone").is_matched

    def test_unknown_counterpart(self, item_repository, phone_query):
        item_repository.insert(phone_query)
        with pytest.raises(ItemNotFoundError) as exc_info:
            confirm_match(item_repository, "query", "missing")
        assert exc_info.value.item_id == "missing"
        assert not item_repository.get_by_id("query").is_matched

    def test_same_status_rejected(self, item_repository, phone_query):
        item_repository.insert(phone_query)
        item_repository.insert(make_item(id="lost-2"))
        with pytest.raises(ItemValidationError):
            confirm_match(item_repository, "query", "lost-2")
