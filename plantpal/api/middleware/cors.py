"""
Cross-origin access for the JSON API.

The browser app is normally served by PlantPal itself, so production needs
no CORS at all unless a separately hosted frontend is configured. Local
dev servers get a fixed allow-list.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


LOCAL_DEV_ORIGINS = [
    f"http://{host}:{port}"
    for host in ("localhost", "127.0.0.1")
    for port in (3000, 5173, 8080)
]

# Origins allowed per environment before any configured extras
ENVIRONMENT_ORIGINS = {
    "development": LOCAL_DEV_ORIGINS,
    "test": ["http://test"],
    "production": [],
}


@dataclass
class CORSConfig:
    """CORS policy handed to Starlette's CORSMiddleware."""

    allowed_origins: List[str] = field(default_factory=list)

    # The session cookie has to travel with cross-origin requests
    allow_credentials: bool = True

    allowed_methods: List[str] = field(default_factory=lambda: ["GET", "POST", "PUT", "DELETE"])
    allowed_headers: List[str] = field(default_factory=lambda: ["Content-Type", "X-Request-ID"])
    expose_headers: List[str] = field(default_factory=lambda: ["X-Request-ID"])

    max_age: int = 3600


def get_cors_config(
    environment: str = "development",
    extra_origins: Iterable[str] = (),
) -> CORSConfig:
    """
    Build the CORS policy for an environment.

    Args:
        environment: ``development``, ``test`` or ``production``; unknown
            names are treated as development.
        extra_origins: Additional origins, e.g. a separately hosted frontend.
    """
    origins = list(ENVIRONMENT_ORIGINS.get(environment, LOCAL_DEV_ORIGINS))
    origins.extend(origin for origin in extra_origins if origin not in origins)

    return CORSConfig(
        allowed_origins=origins,
        max_age=7200 if environment == "production" else 3600,
    )


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """Add CORSMiddleware unless the policy is same-origin only."""
    config = config or get_cors_config()

    if not config.allowed_origins:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=config.allow_credentials,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
