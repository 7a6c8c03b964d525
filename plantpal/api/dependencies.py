"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Store and service instances (repositories, sessions, identity resolution)
- Authentication (current user from the session cookie)
"""

import os
from datetime import timedelta
from functools import lru_cache
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import Depends, Request
from loguru import logger
from sqlalchemy.engine import Engine

from plantpal.errors import AuthenticationError
from plantpal.storage.protocols import PlantStore, SessionGateway
from plantpal.storage.user_repository import StoredUser


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./plantpal.db"
    database_echo: bool = False

    # Sessions
    session_cookie_name: str = "plantpal_session"
    session_ttl_days: int = 7

    # GitHub OAuth
    github_client_id: str = ""
    github_client_secret: str = ""
    github_callback_url: str = ""

    # Static frontend
    static_dir: str = "./public"

    # Extra CORS origins for a separately hosted frontend
    cors_allowed_origins: List[str] = field(default_factory=list)

    # Server
    port: int = 8080

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.github_client_id and self.github_client_secret and self.github_callback_url)

    @property
    def secure_cookies(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            session_cookie_name=os.getenv("SESSION_COOKIE_NAME", cls.session_cookie_name),
            session_ttl_days=int(os.getenv("SESSION_TTL_DAYS", cls.session_ttl_days)),
            github_client_id=os.getenv("GITHUB_CLIENT_ID", "").strip(),
            github_client_secret=os.getenv("GITHUB_CLIENT_SECRET", "").strip(),
            github_callback_url=os.getenv("GITHUB_CALLBACK_URL", "").strip(),
            static_dir=os.getenv("STATIC_DIR", cls.static_dir),
            cors_allowed_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
                if origin.strip()
            ],
            port=int(os.getenv("PORT", cls.port)),
            environment=os.getenv("PLANTPAL_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Container (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazily created stores and services.

    One container is owned by each application instance (``app.state``);
    nothing here is module-level state.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine = None
        self._user_repository = None
        self._plant_repository = None
        self._session_store = None
        self._identity_resolver = None
        self._urgency_classifier = None
        self._github_client = None

    @property
    def engine(self) -> Engine:
        """Get database engine, creating tables on first use."""
        if self._engine is None:
            from ..storage.models import Base, create_db_engine
            self._engine = create_db_engine(
                self.settings.database_url,
                echo=self.settings.database_echo,
            )
            Base.metadata.create_all(self._engine)
            logger.info(f"Database initialized: {self.settings.database_url[:50]}")
        return self._engine

    @property
    def user_repository(self):
        """Get user repository instance."""
        if self._user_repository is None:
            from ..storage.user_repository import UserRepository
            self._user_repository = UserRepository(self.engine)
        return self._user_repository

    @property
    def plant_repository(self):
        """Get plant repository instance."""
        if self._plant_repository is None:
            from ..storage.plant_repository import PlantRepository
            self._plant_repository = PlantRepository(self.engine)
        return self._plant_repository

    @property
    def session_store(self):
        """Get session store instance."""
        if self._session_store is None:
            from ..storage.session_store import SessionStore
            self._session_store = SessionStore(
                self.engine,
                ttl=timedelta(days=self.settings.session_ttl_days),
            )
        return self._session_store

    @property
    def identity_resolver(self):
        """Get identity resolver instance."""
        if self._identity_resolver is None:
            from ..identity.resolver import IdentityResolver
            self._identity_resolver = IdentityResolver(self.user_repository)
        return self._identity_resolver

    @property
    def urgency_classifier(self):
        """Get urgency classifier instance."""
        if self._urgency_classifier is None:
            from ..scheduling.urgency import UrgencyClassifier
            self._urgency_classifier = UrgencyClassifier()
        return self._urgency_classifier

    @property
    def github_client(self):
        """Get GitHub OAuth client instance."""
        if self._github_client is None:
            from ..identity.github import GitHubOAuthClient
            self._github_client = GitHubOAuthClient(
                client_id=self.settings.github_client_id,
                client_secret=self.settings.github_client_secret,
                callback_url=self.settings.github_callback_url,
            )
        return self._github_client

    def close(self) -> None:
        """Release database connections."""
        if self._engine is not None:
            self._engine.dispose()


def get_service_container(request: Request) -> ServiceContainer:
    """Get the application's service container, creating it on first use."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = ServiceContainer(request.app.state.settings)
        request.app.state.services = services
    return services


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_plant_repository(
    container: ServiceContainer = Depends(get_service_container),
) -> PlantStore:
    """Dependency for plant repository."""
    return container.plant_repository


def get_session_store(
    container: ServiceContainer = Depends(get_service_container),
) -> SessionGateway:
    """Dependency for session store."""
    return container.session_store


def get_identity_resolver(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for identity resolver."""
    return container.identity_resolver


def get_urgency_classifier(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for urgency classifier."""
    return container.urgency_classifier


def get_github_client(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for GitHub OAuth client."""
    return container.github_client


# =============================================================================
# Authentication Dependencies
# =============================================================================

def get_session_token(
    request: Request,
    container: ServiceContainer = Depends(get_service_container),
) -> Optional[str]:
    """Extract the session token from its cookie."""
    return request.cookies.get(container.settings.session_cookie_name)


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(get_session_token),
    container: ServiceContainer = Depends(get_service_container),
) -> Optional[StoredUser]:
    """
    Resolve the session to a user.

    Returns None for public endpoints when there is no live session.
    """
    user_id = container.session_store.resolve(token)
    if user_id is None:
        return None

    # Picked up by the access log
    request.state.user_id = user_id
    return container.user_repository.get(user_id)


def require_user(
    user: Optional[StoredUser] = Depends(get_current_user),
) -> StoredUser:
    """
    Require a logged-in user for protected endpoints.

    Raises:
        AuthenticationError: If there is no live session.
    """
    if user is None:
        raise AuthenticationError()
    return user
