"""
Target schema and connection management.

Mirrors the managed backend's ``profiles`` and ``jobs`` tables so the
pipeline can run against a plain SQL database (SQLite locally and in
tests) through SQLAlchemy.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class Profile(Base):
    """Candidate or employer profile."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String, nullable=False, unique=True)
    full_name = Column(String)
    user_type = Column(String, nullable=False)  # candidate, employer
    bio = Column(Text)
    wordpress_user_id = Column(String, index=True)
    company_name = Column(String)
    company_description = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class Job(Base):
    """Job posting owned by an employer profile."""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True)
    employer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    poster_id = Column(String(36), ForeignKey("profiles.id"))  # alias of employer_id
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    excerpt = Column(Text)
    job_type = Column(String, nullable=False, default="Full Time")
    category = Column(String)
    location_country = Column(String, nullable=False)
    location_city = Column(String)
    location_address = Column(String)
    salary_range = Column(String)
    status = Column(String, nullable=False, default="draft")  # active, closed, draft
    featured = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)
    application_count = Column(Integer, nullable=False, default=0)
    posted_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    wordpress_job_id = Column(String, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


def database_url(target: Union[str, Path]) -> str:
    """Accept a SQLAlchemy URL or a path to a SQLite file."""
    if isinstance(target, Path):
        return f"sqlite:///{target}"
    return target


def get_engine(target: Union[str, Path]) -> Engine:
    return create_engine(database_url(target))


def init_database(target: Union[str, Path]) -> Engine:
    """
    Create the profiles and jobs tables.

    Args:
        target: SQLAlchemy URL or path to SQLite database file

    Returns:
        Engine bound to the initialized database
    """
    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(target)
    Base.metadata.create_all(engine)
    return engine

