"""
Profiles Repository.

Responsibilities:
- CRUD operations for the profiles table.
- Lookup by normalized email address.

Non-Responsibilities:
- No authentication.
- No item ownership rules.
"""

from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import OperationalError

from lostfound.database import ProfileRow, get_session
from lostfound.models import Profile, new_item_id
from lostfound.normalize import normalize_email
from lostfound.retry import exponential_backoff, is_transient_store_error

store_retry = exponential_backoff(
    max_retries=3,
    exceptions=(OperationalError,),
    retry_if=is_transient_store_error,
)


def _to_profile(row: ProfileRow) -> Profile:
    return Profile(id=row.id, full_name=row.full_name, email=row.email, created_at=row.created_at)


class ProfileRepository:

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    @store_retry
    def create(self, full_name: str, email: str) -> Profile:
        session = get_session(self.db_path)
        try:
            row = ProfileRow(id=new_item_id(), full_name=full_name.strip(), email=normalize_email(email))
            session.add(row)
            session.commit()
            return _to_profile(row)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @store_retry
    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        session = get_session(self.db_path)
        try:
            row = session.get(ProfileRow, profile_id)
            return _to_profile(row) if row is not None else None
        finally:
            session.close()

    @store_retry
    def get_by_email(self, email: str) -> Optional[Profile]:
        session = get_session(self.db_path)
        try:
            row = session.query(ProfileRow).filter_by(email=normalize_email(email)).first()
            return _to_profile(row) if row is not None else None
        finally:
            session.close()

    @store_retry
    def get_all(self) -> List[Profile]:
        """All profiles, newest first."""
        session = get_session(self.db_path)
        try:
            rows = session.query(ProfileRow).order_by(ProfileRow.created_at.desc()).all()
            return [_to_profile(row) for row in rows]
        finally:
            session.close()

    @store_retry
    def update(self, profile_id: str, full_name: Optional[str] = None, email: Optional[str] = None) -> Optional[Profile]:
        session = get_session(self.db_path)
        try:
            row = session.get(ProfileRow, profile_id)
            if row is None:
                return None
            if full_name is not None:
                row.full_name = full_name.strip()
            if email is not None:
                row.email = normalize_email(email)
            session.commit()
            return _to_profile(row)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @store_retry
    def delete(self, profile_id: str) -> bool:
        session = get_session(self.db_path)
        try:
            row = session.get(ProfileRow, profile_id)
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

    def get_or_create(self, full_name: str, email: str) -> Profile:
        """Return the profile for an email, creating it on first report."""
        profile = self.get_by_email(email)
        if profile is not None:
            return profile
        return self.create(full_name=full_name, email=email)
