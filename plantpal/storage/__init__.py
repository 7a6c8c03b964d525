"""
Storage Module for PlantPal

Persistent storage for users, plants and sessions:
- SQLAlchemy models and engine setup
- Owner-scoped plant repository
- User repository with unique-constraint conflict reporting
- Server-side session store
"""

from plantpal.storage.models import (
    Base,
    UserModel,
    PlantModel,
    SessionModel,
    create_db_engine,
)
from plantpal.storage.user_repository import (
    UserRepository,
    StoredUser,
)
from plantpal.storage.plant_repository import (
    PlantRepository,
    StoredPlant,
)
from plantpal.storage.session_store import SessionStore
from plantpal.storage.protocols import (
    UserStore,
    PlantStore,
    SessionGateway,
)

__all__ = [
    # Models
    "Base",
    "UserModel",
    "PlantModel",
    "SessionModel",
    "create_db_engine",
    # Repositories
    "UserRepository",
    "StoredUser",
    "PlantRepository",
    "StoredPlant",
    "SessionStore",
    # Protocols
    "UserStore",
    "PlantStore",
    "SessionGateway",
]
