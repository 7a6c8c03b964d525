"""
User Repository for PlantPal

Persistence for user accounts. Uniqueness of ``username`` and
``external_id`` is enforced by the database; violations surface as
ConflictError so callers can re-resolve instead of failing.
"""

import uuid
from datetime import datetime
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session

from plantpal.errors import ConflictError
from .models import UserModel


@dataclass
class StoredUser:
    """Data class for user data transfer."""

    id: str
    username: str
    password_hash: Optional[str] = None
    external_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @classmethod
    def from_model(cls, model: UserModel) -> "StoredUser":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            username=model.username,
            password_hash=model.password_hash,
            external_id=model.external_id,
            created_at=model.created_at,
        )

    def to_dict(self) -> dict:
        """Public fields only; the password hash never leaves the store layer."""
        return {
            "id": self.id,
            "username": self.username,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class UserRepository:
    """
    Repository for user accounts.

    Usage:
        repo = UserRepository(engine)

        user = repo.create("alice", password_hash=hashed)
        repo.get_by_username("alice")
    """

    def __init__(self, engine: Engine):
        """
        Initialize repository.

        Args:
            engine: SQLAlchemy engine shared with the other stores
        """
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine)

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

    def get(self, user_id: str) -> Optional[StoredUser]:
        """Get user by ID."""
        with self.get_session() as session:
            user = session.get(UserModel, user_id)
            return StoredUser.from_model(user) if user else None

    def get_by_username(self, username: str) -> Optional[StoredUser]:
        """Get user by exact (case-sensitive) username."""
        with self.get_session() as session:
            user = session.query(UserModel).filter(
                UserModel.username == username,
            ).first()
            return StoredUser.from_model(user) if user else None

    def get_by_external_id(self, external_id: str) -> Optional[StoredUser]:
        """Get user by linked external-provider id."""
        with self.get_session() as session:
            user = session.query(UserModel).filter(
                UserModel.external_id == external_id,
            ).first()
            return StoredUser.from_model(user) if user else None

    def username_exists(self, username: str) -> bool:
        """Check whether a username is taken."""
        with self.get_session() as session:
            return session.query(UserModel.id).filter(
                UserModel.username == username,
            ).first() is not None

    def create(
        self,
        username: str,
        password_hash: Optional[str] = None,
        external_id: Optional[str] = None,
    ) -> StoredUser:
        """
        Create a user.

        Args:
            username: Unique username
            password_hash: bcrypt hash for local login
            external_id: Provider subject for external login

        Returns:
            Created StoredUser

        Raises:
            ConflictError: If the username or external id is already taken
        """
        with self.get_session() as session:
            user = UserModel(
                id=str(uuid.uuid4()),
                username=username,
                password_hash=password_hash,
                external_id=external_id,
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                logger.info(f"User create rejected by unique constraint: {username}")
                raise ConflictError(detail=str(e.orig)) from e
            session.refresh(user)

            return StoredUser.from_model(user)

    def link_external(self, user_id: str, external_id: str) -> Optional[StoredUser]:
        """
        Attach an external id to a user that has none yet.

        The update is conditional on ``external_id IS NULL`` so two
        concurrent links cannot both succeed.

        Returns:
            Updated StoredUser, or None if the user is gone or already linked

        Raises:
            ConflictError: If the external id is bound to another user
        """
        with self.get_session() as session:
            # Bulk UPDATE executes immediately, so the constraint can fire here
            try:
                updated = session.query(UserModel).filter(
                    UserModel.id == user_id,
                    UserModel.external_id.is_(None),
                ).update({UserModel.external_id: external_id}, synchronize_session=False)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                logger.info(f"External id link rejected by unique constraint: {external_id}")
                raise ConflictError(detail=str(e.orig)) from e

            if not updated:
                return None

            user = session.get(UserModel, user_id)
            return StoredUser.from_model(user) if user else None
