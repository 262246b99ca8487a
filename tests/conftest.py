"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import Any, Dict

from lostfound.database import init_database
from lostfound.logger import get_logger, reset_logger
from lostfound.models import ItemRecord
from storage.repositories import ItemRepository, ProfileRepository


def make_item(**overrides: Any) -> ItemRecord:
    """Build an item with harmless defaults; tags stay empty unless given."""
    fields: Dict[str, Any] = {
        "id": "query",
        "status": "lost",
        "title": "Lost black phone",
        "description": "Left it on the bus",
        "category": "Electronics",
        "location": "Main Street",
        "date": "2024-01-10",
        "image_ref": "",
    }
    if "labels" in overrides:
        overrides["labels"] = frozenset(overrides["labels"])
    fields.update(overrides)
    return ItemRecord(**fields)


@pytest.fixture(autouse=True)
def quiet_logger():
    """Fresh global logger per test, console only, metrics at zero."""
    reset_logger()
    get_logger(enable_console=False)
    yield
    reset_logger()


@pytest.fixture
def phone_query() -> ItemRecord:
    """Lost phone with tags already derived."""
    return make_item(object_type="electronics", color_profile="dark")


@pytest.fixture
def phone_candidate() -> ItemRecord:
    """Found phone one day later on the same street."""
    return make_item(
        id="found-phone",
        status="found",
        title="Found black phone",
        description="Picked up near station",
        category="Electronics",
        location="Main Street Station",
        date="2024-01-11",
        object_type="electronics",
        color_profile="dark",
    )


@pytest.fixture
def unrelated_candidate() -> ItemRecord:
    """Shares nothing with the phone query and is 30 days away."""
    return make_item(
        id="found-kitten",
        status="found",
        title="Found grey kitten",
        description="Small kitten near campus",
        category="Pet",
        location="University Campus",
        date="2024-02-09",
        object_type="animal",
        color_profile="warm",
    )


@pytest.fixture
def category_only_candidate() -> ItemRecord:
    """Same category and nothing else: scores exactly 30."""
    return make_item(
        id="found-umbrella",
        status="found",
        title="Found umbrella",
        description="Near the cinema",
        category="electronics",
        location="Harbour",
        date="2024-03-01",
        object_type="personal",
        color_profile="warm",
    )


@pytest.fixture
def mid_candidate() -> ItemRecord:
    """Same category and object type, three days apart: scores 52."""
    return make_item(
        id="found-laptop",
        status="found",
        title="Found laptop",
        description="Grey sleeve",
        category="Electronics",
        location="Library",
        date="2024-01-13",
        object_type="electronics",
        color_profile="light",
    )


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Initialized SQLite database file."""
    path = tmp_path / "lostfound.db"
    init_database(path)
    return path


@pytest.fixture
def item_repository(db_path) -> ItemRepository:
    return ItemRepository(db_path)


@pytest.fixture
def profile_repository(db_path) -> ProfileRepository:
    return ProfileRepository(db_path)
