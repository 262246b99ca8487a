"""
Items Repository.

Responsibilities:
- CRUD operations for the lost_found_items table.
- Map rows to and from ItemRecord snapshots.

Non-Responsibilities:
- No business logic.
- No tagging.
- No scoring.

Invariant:
Repositories must not encode domain decisions. The one rule kept here
is structural: derived tags are cleared when image_ref changes, because
they were computed from the old image.
"""

from pathlib import Path
from typing import Any, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import OperationalError

from lostfound.database import ItemRow, get_session
from lostfound.models import ItemRecord
from lostfound.retry import exponential_backoff, is_transient_store_error

UPDATABLE_FIELDS = {
    "title",
    "description",
    "category",
    "location",
    "date",
    "image_ref",
    "contact_email",
    "contact_phone",
    "labels",
    "color_profile",
    "object_type",
    "match_confidence",
    "matches",
    "is_matched",
}
TAG_FIELDS = {"labels", "color_profile", "object_type"}

store_retry = exponential_backoff(
    max_retries=3,
    exceptions=(OperationalError,),
    retry_if=is_transient_store_error,
)


def _to_record(row: ItemRow) -> ItemRecord:
    return ItemRecord(
        id=row.id,
        status=row.status,
        title=row.title,
        description=row.description,
        category=row.category,
        location=row.location,
        date=row.date,
        image_ref=row.image_ref or "",
        contact_email=row.contact_email,
        contact_phone=row.contact_phone,
        labels=frozenset(row.image_labels or ()),
        color_profile=row.color_profile,
        object_type=row.object_type,
        match_confidence=row.match_confidence or 0,
        matches=tuple(row.matches or ()),
        is_matched=bool(row.is_matched),
        created_at=row.created_at,
    )


def _set_field(row: ItemRow, name: str, value: Any) -> None:
    if name == "labels":
        row.image_labels = sorted(value or ())
    elif name == "matches":
        row.matches = list(value or ())
    else:
        setattr(row, name, value)


class ItemRepository:
    """Narrow record store over a SQLite file: get_all, get_by_id, insert, update, delete."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    @store_retry
    def get_all(self, status: Optional[str] = None, search: Optional[str] = None) -> List[ItemRecord]:
        """
        All items, newest reported date first.

        status keeps only lost or only found items. search keeps items whose
        title, description, category or location contains the text, ignoring case.
        """
        session = get_session(self.db_path)
        try:
            query = session.query(ItemRow)
            if status:
                query = query.filter(ItemRow.status == status)
            if search and search.strip():
                text = search.strip()
                query = query.filter(or_(
                    ItemRow.title.icontains(text, autoescape=True),
                    ItemRow.description.icontains(text, autoescape=True),
                    ItemRow.category.icontains(text, autoescape=True),
                    ItemRow.location.icontains(text, autoescape=True),
                ))
            rows = query.order_by(ItemRow.date.desc(), ItemRow.created_at.desc()).all()
            return [_to_record(row) for row in rows]
        finally:
            session.close()

    @store_retry
    def get_by_id(self, item_id: str) -> Optional[ItemRecord]:
        session = get_session(self.db_path)
        try:
            row = session.get(ItemRow, item_id)
            return _to_record(row) if row is not None else None
        finally:
            session.close()

    @store_retry
    def insert(self, item: ItemRecord) -> ItemRecord:
        session = get_session(self.db_path)
        try:
            row = ItemRow(
                id=item.id,
                status=item.status,
                title=item.title,
                description=item.description,
                category=item.category,
                location=item.location,
                date=item.date,
                image_ref=item.image_ref or "",
                contact_email=item.contact_email,
                contact_phone=item.contact_phone,
                color_profile=item.color_profile,
                object_type=item.object_type,
                match_confidence=item.match_confidence,
                is_matched=item.is_matched,
            )
            _set_field(row, "labels", item.labels)
            _set_field(row, "matches", item.matches)
            if item.created_at is not None:
                row.created_at = item.created_at
            session.add(row)
            session.commit()
            return _to_record(row)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @store_retry
    def update(self, item_id: str, **fields: Any) -> Optional[ItemRecord]:
        """
        Update selected fields of an item.

        Returns the updated record, or None when the id is unknown.
        Raises ValueError for fields that cannot be changed (id, status).
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        session = get_session(self.db_path)
        try:
            row = session.get(ItemRow, item_id)
            if row is None:
                return None

            image_changed = "image_ref" in fields and fields["image_ref"] != row.image_ref
            if image_changed and not TAG_FIELDS & set(fields):
                row.image_labels = []
                row.color_profile = None
                row.object_type = None

            for name, value in fields.items():
                _set_field(row, name, value)

            session.commit()
            return _to_record(row)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @store_retry
    def delete(self, item_id: str) -> bool:
        session = get_session(self.db_path)
        try:
            row = session.get(ItemRow, item_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def save_tags(self, item: ItemRecord) -> Optional[ItemRecord]:
        """Persist the derived tags carried by a tagged snapshot."""
        return self.update(
            item.id,
            labels=item.labels,
            color_profile=item.color_profile,
            object_type=item.object_type,
        )

    def upsert(self, item: ItemRecord) -> Optional[ItemRecord]:
        """Insert a new item or overwrite the mutable fields of an existing one."""
        existing = self.get_by_id(item.id)
        if existing is None:
            return self.insert(item)
        if existing.status != item.status:
            raise ValueError(f"Status of item {item.id} cannot change")
        fields = {name: getattr(item, name) for name in UPDATABLE_FIELDS}
        return self.update(item.id, **fields)
