"""
Server-side login sessions.

A session is an opaque random token stored with its user id and an expiry.
The token is all the client holds; expiry and logout are enforced here.
"""

import secrets
from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .models import SessionModel, utcnow


DEFAULT_SESSION_TTL = timedelta(days=7)


class SessionStore:
    """
    Token -> user id mapping with a fixed lifetime.

    Usage:
        store = SessionStore(engine, ttl=timedelta(days=7))

        token = store.issue(user.id)
        store.resolve(token)   # -> user.id
        store.revoke(token)
    """

    def __init__(self, engine: Engine, ttl: timedelta = DEFAULT_SESSION_TTL):
        self.engine = engine
        self.ttl = ttl
        self.SessionLocal = sessionmaker(bind=engine)

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

    def issue(self, user_id: str) -> str:
        """Create a session for ``user_id`` and return its token."""
        token = secrets.token_urlsafe(32)
        now = utcnow()

        with self.get_session() as session:
            session.add(SessionModel(
                token=token,
                user_id=user_id,
                created_at=now,
                expires_at=now + self.ttl,
            ))
            session.commit()

        return token

    def resolve(self, token: Optional[str]) -> Optional[str]:
        """
        Return the user id for a live session.

        Expired sessions are deleted on sight and treated as absent.
        """
        if not token:
            return None

        with self.get_session() as session:
            record = session.get(SessionModel, token)
            if record is None:
                return None

            if record.expires_at <= utcnow():
                session.delete(record)
                session.commit()
                return None

            return record.user_id

    def revoke(self, token: Optional[str]) -> bool:
        """Invalidate a session. Returns True if one was removed."""
        if not token:
            return False

        with self.get_session() as session:
            deleted = session.query(SessionModel).filter(
                SessionModel.token == token,
            ).delete(synchronize_session=False)
            session.commit()
            return deleted > 0

    def purge_expired(self) -> int:
        """Delete all expired sessions. Returns the number removed."""
        with self.get_session() as session:
            deleted = session.query(SessionModel).filter(
                SessionModel.expires_at <= utcnow(),
            ).delete(synchronize_session=False)
            session.commit()

        if deleted:
            logger.info(f"Purged {deleted} expired sessions")
        return deleted
