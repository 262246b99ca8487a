from typing import Any, Dict, List

from .models import STATUSES, ItemRecord
from .normalize import normalize_email, parse_date

# Fields the scorer cannot work without
QUERY_REQUIRED_FIELDS = ["category", "title", "description"]

REQUIRED_STR_FIELDS = ["status", "title", "description", "category", "location", "date"]
OPTIONAL_STR_FIELDS = [
    "image_ref",
    "contact_email",
    "contact_phone",
    "color_profile",
    "object_type",
]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_item(data: Dict[str, Any]) -> List[str]:
    """
    Validate a report payload before it is stored.
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []

    for f in REQUIRED_STR_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    status = data.get("status")
    if _is_non_empty_str(status) and status.strip().lower() not in STATUSES:
        errors.append("Field 'status' must be 'lost' or 'found'")

    if _is_non_empty_str(data.get("date")) and parse_date(data["date"]) is None:
        errors.append("Field 'date' must be a calendar date (YYYY-MM-DD)")

    email = data.get("contact_email")
    if _is_non_empty_str(email) and "@" not in normalize_email(email):
        errors.append("Field 'contact_email' must be an email address")

    labels = data.get("labels")
    if labels is not None and (
        not isinstance(labels, (list, tuple, set, frozenset))
        or not all(isinstance(label, str) for label in labels)
    ):
        errors.append("Field 'labels' must be a list of strings if provided")

    return errors


def validate_query(item: ItemRecord) -> List[str]:
    """Check that an item carries enough text to be scored."""
    errors: List[str] = []
    for f in QUERY_REQUIRED_FIELDS:
        if not _is_non_empty_str(getattr(item, f, None)):
            errors.append(f"Missing required field: {f}")
    return errors
