"""
Database models for PlantPal.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    create_engine,
    Column,
    String,
    Integer,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserModel(Base):
    """User account. Has a password hash, an external id, or both."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    username = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255))
    external_id = Column(String(255), unique=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class PlantModel(Base):
    """Plant record owned by a single user."""
    __tablename__ = "plants"

    id = Column(String(36), primary_key=True)  # UUID
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    species = Column(String(100), default="")
    last_watered = Column(Date, nullable=False)
    interval_days = Column(Integer, nullable=False)
    sunlight = Column(String(10), nullable=False, default="medium")
    indoors = Column(Boolean, nullable=False, default=True)
    notes = Column(String(500), default="")

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("interval_days >= 1", name="ck_plants_interval_positive"),
        CheckConstraint("sunlight IN ('low', 'medium', 'high')", name="ck_plants_sunlight"),
        Index("idx_plants_owner_created", "owner_id", "created_at"),
    )


class SessionModel(Base):
    """Server-side login session keyed by an opaque token."""
    __tablename__ = "sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a sync engine for the given URL.

    SQLite connections are shared across the request threadpool, and an
    in-memory database must live on a single connection.
    """
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    return create_engine(database_url, **kwargs)
