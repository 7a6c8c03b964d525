"""
Pytest configuration and fixtures for PlantPal tests.
"""

from datetime import date
from typing import AsyncGenerator

import bcrypt
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from plantpal.api.main import create_app
from plantpal.api.dependencies import Settings, ServiceContainer
from plantpal.identity.resolver import IdentityResolver
from plantpal.scheduling.urgency import UrgencyClassifier
from plantpal.storage.models import Base, create_db_engine
from plantpal.storage.plant_repository import PlantRepository
from plantpal.storage.session_store import SessionStore
from plantpal.storage.user_repository import UserRepository


# Pinned "today" for API tests
FIXED_TODAY = date(2025, 9, 8)


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings(**overrides) -> Settings:
    """Return settings configured for testing."""
    values = dict(
        database_url="sqlite:///:memory:",
        database_echo=False,
        static_dir="./test_data/no-frontend",
        environment="test",
        debug=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Use the minimum bcrypt cost so hashing does not dominate test time."""
    real_gensalt = bcrypt.gensalt

    def gensalt(rounds: int = 4, prefix: bytes = b"2b") -> bytes:
        return real_gensalt(rounds=4, prefix=prefix)

    monkeypatch.setattr(bcrypt, "gensalt", gensalt)


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def engine():
    """In-memory database with all tables."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def user_repository(engine) -> UserRepository:
    return UserRepository(engine)


@pytest.fixture
def plant_repository(engine) -> PlantRepository:
    return PlantRepository(engine)


@pytest.fixture
def session_store(engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture
def resolver(user_repository) -> IdentityResolver:
    return IdentityResolver(user_repository)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    return get_test_settings()


@pytest.fixture
def container(settings) -> ServiceContainer:
    """Service container on an in-memory database with a pinned clock."""
    services = ServiceContainer(settings)
    services._urgency_classifier = UrgencyClassifier(clock=lambda: FIXED_TODAY)

    yield services

    services.close()


@pytest_asyncio.fixture
async def app(container):
    """Create FastAPI application for testing."""
    application = create_app(container.settings)
    application.state.services = container

    yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def login(client: AsyncClient, username: str, password: str = "correct horse"):
    """Log in (registering if needed) and keep the session cookie on the client."""
    response = await client.post(
        "/api/auth/login",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200, response.text
    return response


@pytest_asyncio.fixture
async def alice_client(client) -> AsyncClient:
    """Client logged in as a freshly registered user."""
    await login(client, "alice")
    return client


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def sample_plant_data() -> dict:
    """Plant payload as the browser sends it."""
    return {
        "name": "Monstera",
        "species": "Monstera deliciosa",
        "lastWatered": "2025-09-01",
        "intervalDays": 7,
        "sunlight": "medium",
        "indoors": True,
        "notes": "Likes a misting",
    }


@pytest.fixture
def sample_plants_batch() -> list[dict]:
    """Several plants with different schedules relative to FIXED_TODAY."""
    return [
        {"name": "Snake Plant", "lastWatered": "2025-09-07", "intervalDays": 10},
        {"name": "Fern", "lastWatered": "2025-09-01", "intervalDays": 3},
        {"name": "Cactus", "lastWatered": "2025-08-20", "intervalDays": 21, "sunlight": "high"},
    ]
