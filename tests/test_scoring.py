"""
Tests for feature comparison and weighted scoring.
"""

import pytest

from lostfound.config import ScoringWeights
from pipelines.matching.features import compute_features
from pipelines.matching.metadata import FALLBACK_METADATA
from pipelines.matching.scoring import clamp_score, date_points, score, score_breakdown
from conftest import make_item

WEIGHTS = ScoringWeights()


class TestFeatures:

    def test_generic_tags_compare_as_equal_by_default(self):
        a = make_item(labels=FALLBACK_METADATA.labels, color_profile="unknown", object_type="item")
        b = make_item(id="other", labels=FALLBACK_METADATA.labels, color_profile="unknown", object_type="item")
        features = compute_features(a, b)

        assert features.object_type_match
        assert features.color_match
        assert features.shared_labels == FALLBACK_METADATA.labels

    def test_generic_tags_ignored_on_request(self):
        """Two items that both fell back to generic tags share nothing."""
        a = make_item(labels=FALLBACK_METADATA.labels, color_profile="unknown", object_type="item")
        b = make_item(id="other", labels=FALLBACK_METADATA.labels, color_profile="unknown", object_type="item")
        features = compute_features(a, b, ignore_generic_tags=True)

        assert not features.object_type_match
        assert not features.color_match
        assert features.shared_labels == frozenset()

    def test_mixed_color_ignored_on_request(self):
        a = make_item(color_profile="mixed", object_type="bag")
        b = make_item(id="other", color_profile="mixed", object_type="bag")

        assert compute_features(a, b).color_match
        features = compute_features(a, b, ignore_generic_tags=True)
        assert features.object_type_match
        assert not features.color_match

    def test_missing_tags_compare_as_no_signal(self, phone_query):
        features = compute_features(phone_query, make_item(id="untagged", status="found"))
        assert not features.object_type_match
        assert not features.color_match

    def test_both_untagged_is_no_signal(self):
        features = compute_features(make_item(), make_item(id="other"))
        assert not features.object_type_match
        assert not features.color_match

    def test_empty_category_never_matches(self):
        assert not compute_features(make_item(category=""), make_item(category="")).category_match


class TestDatePoints:

    @pytest.mark.parametrize("days,expected", [(0, 10), (1, 9), (7, 3), (10, 0), (30, 0)])
    def test_linear(self, days, expected):
        assert date_points(days, WEIGHTS, "linear") == expected

    @pytest.mark.parametrize("days,expected", [(0, 10), (3, 10), (4, 5), (7, 5), (8, 0)])
    def test_stepped(self, days, expected):
        assert date_points(days, WEIGHTS, "stepped") == expected

    def test_unreadable_date_scores_zero(self):
        assert date_points(None, WEIGHTS, "linear") == 0
        assert date_points(None, WEIGHTS, "stepped") == 0

    def test_unknown_rule(self):
        with pytest.raises(ValueError):
            date_points(1, WEIGHTS, "exponential")


class TestScore:

    def test_phone_scenario(self, phone_query, phone_candidate):
        """Same category, type, color, street, two title words, one day apart."""
        breakdown = score_breakdown(phone_query, phone_candidate)

        assert breakdown.contributions == {
            "category": 30,
            "object_type": 15,
            "color_profile": 10,
            "title": 20,
            "location": 15,
            "date": 9,
        }
        assert breakdown.total == 99
        assert score(phone_query, phone_candidate) == 99

    def test_unrelated_scores_zero(self, phone_query, unrelated_candidate):
        assert score(phone_query, unrelated_candidate) == 0
        assert score_breakdown(phone_query, unrelated_candidate).explanation == []

    @pytest.mark.parametrize("object_type,color_profile", [
        ("bag", "cool"),
        ("bag", "mixed"),
        ("item", "unknown"),
    ])
    def test_equality_signals_lower_bound(self, object_type, color_profile):
        """Category, object type and color alone give at least 30 + 15 + 10."""
        a = make_item(
            title="Lost umbrella", description="Striped", location="Harbour", date="2024-01-01",
            category="Bags", object_type=object_type, color_profile=color_profile,
        )
        b = make_item(
            id="b", status="found", title="Found suitcase", description="Wheels broken",
            location="Airport", date="2024-06-01", category="BAGS",
            object_type=object_type, color_profile=color_profile,
        )
        assert score(a, b) >= 55

    def test_fallback_tagged_copy_saturates(self):
        item = make_item(labels=FALLBACK_METADATA.labels, color_profile="unknown", object_type="item")
        assert score(item, item) == 100

    def test_ignoring_generic_tags_lowers_self_score(self):
        """Title 30, description 5, location 15, date 10, category 30."""
        item = make_item(labels=FALLBACK_METADATA.labels, color_profile="unknown", object_type="item")
        assert score(item, item, ScoringWeights(ignore_generic_tags=True)) == 90

    def test_identical_copy_saturates(self):
        """An item against its own copy reaches the clamped maximum."""
        item = make_item(
            title="Lost black leather phone case",
            description="Black leather phone case with cracked screen protector",
            labels={"electronics", "device", "phone", "black", "leather"},
            object_type="electronics",
            color_profile="dark",
        )
        assert score(item, item) == min(100, WEIGHTS.max_score())

    def test_identical_copy_reaches_max_of_small_weights(self):
        weights = ScoringWeights(
            category=5, object_type=5, label_each=1, label_cap=2, color_profile=5,
            title_token_each=1, title_token_cap=3, description_token_each=1,
            description_token_cap=4, location=5, date_max=5,
        )
        item = make_item(
            title="Lost black leather phone",
            description="Black leather phone with cracked screen",
            labels={"phone", "black"},
            object_type="electronics",
            color_profile="dark",
        )
        assert weights.max_score() == 34
        assert score(item, item, weights) == 34

    def test_symmetric(self, phone_query, phone_candidate, mid_candidate):
        assert score(phone_query, phone_candidate) == score(phone_candidate, phone_query)
        assert score(phone_query, mid_candidate) == score(mid_candidate, phone_query)

    def test_description_overlap_is_capped(self):
        text = "orange tabby white collar with bell"
        a = make_item(description=text, title="aaaa", category="x", location="", date="")
        b = make_item(id="b", description=text, title="bbbb", category="y", location="", date="")
        breakdown = score_breakdown(a, b)
        assert breakdown.contributions == {"description": 20}

    def test_title_overlap_is_capped(self):
        a = make_item(title="black leather phone case cover", description="aaaa", category="x", location="", date="")
        b = make_item(id="b", title="black leather phone case cover", description="bbbb", category="y", location="", date="")
        assert score_breakdown(a, b).contributions == {"title": 30}

    def test_label_overlap_is_capped(self):
        labels = {"phone", "black", "device", "electronics", "leather"}
        a = make_item(labels=labels, title="aaaa", description="aaaa", category="x", location="", date="")
        b = make_item(id="b", labels=labels, title="bbbb", description="bbbb", category="y", location="", date="")
        assert score_breakdown(a, b).contributions == {"labels": 20}

    def test_unparseable_date_contributes_nothing(self, phone_query, phone_candidate):
        odd = make_item(**{**phone_candidate.__dict__, "date": "sometime last week"})
        breakdown = score_breakdown(phone_query, odd)
        assert "date" not in breakdown.contributions
        assert breakdown.total == 90

    def test_stepped_rule(self, phone_query, phone_candidate):
        assert score(phone_query, phone_candidate, date_rule="stepped") == 100

    def test_clamp(self):
        assert clamp_score(250) == 100
        assert clamp_score(-5) == 0
        assert clamp_score(42) == 42
