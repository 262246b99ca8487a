"""
Plain record types shared by the matching core and the record store.

Records are immutable snapshots. Anything that "changes" an item
(tagging, persisting match results) produces a new record via
dataclasses.replace, so the scorer can never mutate caller data.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

LOST = "lost"
FOUND = "found"
STATUSES = (LOST, FOUND)


def opposite_status(status: str) -> str:
    return FOUND if status == LOST else LOST


def new_item_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ItemRecord:
    """A single lost or found report."""

    id: str
    status: str
    title: str
    description: str
    category: str
    location: str
    date: str
    image_ref: str = ""
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    # Derived tags; empty until the metadata extractor runs
    labels: FrozenSet[str] = field(default_factory=frozenset)
    color_profile: Optional[str] = None
    object_type: Optional[str] = None

    # Written back by the matching workflow
    match_confidence: int = 0
    matches: Tuple[str, ...] = ()
    is_matched: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_tagged(self) -> bool:
        return bool(self.labels or self.color_profile or self.object_type)

    def with_tags(self, labels, color_profile: str, object_type: str) -> "ItemRecord":
        return replace(
            self,
            labels=frozenset(labels),
            color_profile=color_profile,
            object_type=object_type,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemRecord":
        """
        Build a record from a JSON-style payload.

        Accepts both snake_case and the camelCase keys used by report
        forms (imageUrl, colorProfile, matchConfidence, ...). A missing
        id gets a fresh uuid4.
        """
        def pick(*keys, default=None):
            for k in keys:
                if k in data and data[k] is not None:
                    return data[k]
            return default

        raw_date = pick("date", default="")
        if isinstance(raw_date, (date, datetime)):
            raw_date = raw_date.isoformat()[:10]

        return cls(
            id=str(pick("id", default=None) or new_item_id()),
            status=str(pick("status", "type", default="")).strip().lower(),
            title=pick("title", default=""),
            description=pick("description", default=""),
            category=pick("category", default=""),
            location=pick("location", default=""),
            date=str(raw_date),
            image_ref=pick("image_ref", "imageRef", "image_url", "imageUrl", default=""),
            contact_email=pick("contact_email", "contactEmail"),
            contact_phone=pick("contact_phone", "contactPhone"),
            labels=frozenset(pick("labels", "image_labels", "imageLabels", default=())),
            color_profile=pick("color_profile", "colorProfile"),
            object_type=pick("object_type", "objectType"),
            match_confidence=int(pick("match_confidence", "matchConfidence", default=0)),
            matches=tuple(pick("matches", default=())),
            is_matched=bool(pick("is_matched", "isMatched", default=False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "location": self.location,
            "date": self.date,
            "image_ref": self.image_ref,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "labels": sorted(self.labels),
            "color_profile": self.color_profile,
            "object_type": self.object_type,
            "match_confidence": self.match_confidence,
            "matches": list(self.matches),
            "is_matched": self.is_matched,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Profile:
    """Reporter profile; one per email address."""

    id: str
    full_name: str
    email: str
    created_at: Optional[datetime] = None
