"""
Tests for schema validation.
"""

import pytest
from lostfound.schema import validate_item, validate_query
from conftest import make_item


@pytest.fixture
def valid_report():
    return {
        "status": "lost",
        "title": "Lost brown wallet",
        "description": "Leather wallet with cards",
        "category": "Accessories",
        "location": "Central Mall",
        "date": "2023-07-25",
    }


class TestValidateItem:
    """Test report payload validation."""

    def test_valid_minimal(self, valid_report):
        assert validate_item(valid_report) == []

    def test_valid_with_optional_fields(self, valid_report):
        valid_report.update(
            image_ref="wallet.jpg",
            contact_email="ada@example.com",
            contact_phone="555-0100",
            labels=["wallet", "brown"],
        )
        assert validate_item(valid_report) == []

    def test_missing_required_field(self, valid_report):
        del valid_report["category"]
        assert validate_item(valid_report) == ["Missing required field: category"]

    def test_blank_required_field(self, valid_report):
        valid_report["title"] = "   "
        assert validate_item(valid_report) == ["Field 'title' must be a non-empty string"]

    def test_empty_payload_lists_every_field(self):
        errors = validate_item({})
        assert len(errors) == 6

    @pytest.mark.parametrize("status", ["LOST", "Found"])
    def test_status_case_insensitive(self, valid_report, status):
        valid_report["status"] = status
        assert validate_item(valid_report) == []

    def test_unknown_status(self, valid_report):
        valid_report["status"] = "stolen"
        assert any("status" in err for err in validate_item(valid_report))

    @pytest.mark.parametrize("value", ["2023-07-25T10:00:00Z", "2023-07-25T10:00:00.000+02:00"])
    def test_iso_timestamps_accepted(self, valid_report, value):
        valid_report["date"] = value
        assert validate_item(valid_report) == []

    def test_unreadable_date(self, valid_report):
        valid_report["date"] = "last tuesday"
        assert any("date" in err for err in validate_item(valid_report))

    def test_bad_email(self, valid_report):
        valid_report["contact_email"] = "not-an-email"
        assert any("contact_email" in err for err in validate_item(valid_report))

    def test_non_string_optional_field(self, valid_report):
        valid_report["contact_phone"] = 5550100
        assert any("contact_phone" in err for err in validate_item(valid_report))

    def test_labels_must_be_strings(self, valid_report):
        valid_report["labels"] = ["ok", 3]
        assert any("labels" in err for err in validate_item(valid_report))


class TestValidateQuery:

    def test_complete_item(self):
        assert validate_query(make_item()) == []

    def test_missing_text_fields(self):
        errors = validate_query(make_item(category="", title=" ", description=""))
        assert errors == [
            "Missing required field: category",
            "Missing required field: title",
            "Missing required field: description",
        ]

    def test_location_and_date_not_required(self):
        assert validate_query(make_item(location="", date="")) == []
