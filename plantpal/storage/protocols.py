"""
Store protocols (structural typing interfaces).

Consumers such as IdentityResolver and the item routes depend on these
minimal surfaces rather than on the SQLAlchemy repositories, so tests can
pass any object with the same methods.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, runtime_checkable

from .plant_repository import StoredPlant
from .user_repository import StoredUser


@runtime_checkable
class UserStore(Protocol):
    """User lookups and writes needed by identity resolution."""

    def get(self, user_id: str) -> Optional[StoredUser]:
        ...

    def get_by_username(self, username: str) -> Optional[StoredUser]:
        ...

    def get_by_external_id(self, external_id: str) -> Optional[StoredUser]:
        ...

    def username_exists(self, username: str) -> bool:
        ...

    def create(
        self,
        username: str,
        password_hash: Optional[str] = None,
        external_id: Optional[str] = None,
    ) -> StoredUser:
        """Create a user; raise ConflictError on a uniqueness violation."""
        ...

    def link_external(self, user_id: str, external_id: str) -> Optional[StoredUser]:
        ...


@runtime_checkable
class PlantStore(Protocol):
    """Owner-scoped plant CRUD."""

    def create(
        self,
        owner_id: str,
        name: str,
        last_watered: date,
        interval_days: int,
        **kwargs,
    ) -> StoredPlant:
        ...

    def get(self, owner_id: str, plant_id: str) -> Optional[StoredPlant]:
        ...

    def list_for_owner(self, owner_id: str) -> list[StoredPlant]:
        ...

    def update(self, owner_id: str, plant_id: str, updates: dict) -> Optional[StoredPlant]:
        ...

    def delete(self, owner_id: str, plant_id: str) -> bool:
        ...


@runtime_checkable
class SessionGateway(Protocol):
    """Issues and validates session tokens."""

    def issue(self, user_id: str) -> str:
        ...

    def resolve(self, token: Optional[str]) -> Optional[str]:
        ...

    def revoke(self, token: Optional[str]) -> bool:
        ...
