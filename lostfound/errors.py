"""Typed errors surfaced by the matching workflow."""

from typing import List


class MatchingError(Exception):
    """Base class for errors raised out of a matching call."""
    pass


class ItemValidationError(MatchingError):
    """Raised when a query item is missing required fields."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid item: " + "; ".join(self.errors))


class ItemNotFoundError(MatchingError):
    """Raised when an item id cannot be resolved by the record store."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")
