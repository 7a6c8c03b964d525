"""
PlantPal - FastAPI Backend.

HTTP API for the plant watering tracker.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_service_container,
    ServiceContainer,
)
from .schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    PlantCreate,
    PlantUpdate,
    PlantResponse,
    PlantEnvelope,
    PlantListResponse,
    ErrorResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_service_container",
    "ServiceContainer",
    # Schemas
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "PlantCreate",
    "PlantUpdate",
    "PlantResponse",
    "PlantEnvelope",
    "PlantListResponse",
    "ErrorResponse",
]
