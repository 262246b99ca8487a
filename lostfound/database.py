"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for item and profile storage. Only the
repositories in storage.repositories touch these rows; everything else
works on lostfound.models records.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class ItemRow(Base):
    """Lost or found report."""

    __tablename__ = "lost_found_items"

    id = Column(String, primary_key=True)  # uuid4
    status = Column(String, nullable=False, index=True)  # lost, found
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    location = Column(String, nullable=False)
    date = Column(String, nullable=False)  # calendar date as reported
    image_ref = Column(Text, nullable=False, default="")
    contact_email = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)

    image_labels = Column(JSON, nullable=False, default=list)
    color_profile = Column(String, nullable=True)
    object_type = Column(String, nullable=True)

    is_matched = Column(Boolean, nullable=False, default=False)
    match_confidence = Column(Integer, nullable=False, default=0)
    matches = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class ProfileRow(Base):
    """Reporter profile."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    return Session()
