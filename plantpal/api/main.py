"""
PlantPal API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.middleware.gzip import GZipMiddleware

from .schemas import ConfigResponse, OkResponse
from .routes import auth, oauth, items
from .middleware import (
    setup_cors,
    setup_logging,
    setup_exception_handlers,
    setup_security_headers,
    LoggingConfig,
    SecurityHeadersConfig,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    ServiceContainer,
    Settings,
)
from ..identity.github import mask_secret

# Configure stdlib logging (access log); application code logs through loguru
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def log_oauth_config(settings: Settings) -> None:
    """Log OAuth configuration without leaking the client secret."""
    logger.info(f"[OAuth] ENABLED: {settings.oauth_enabled}")
    logger.info(f"[OAuth] CLIENT_ID: {settings.github_client_id or '(empty)'}")
    logger.info(f"[OAuth] CLIENT_SECRET: {mask_secret(settings.github_client_secret)}")
    logger.info(f"[OAuth] CALLBACK_URL: {settings.github_callback_url or '(empty)'}")


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup: open the database, create tables, purge expired sessions.
    Shutdown: release database connections.
    """
    settings = app.state.settings
    logger.info(f"Starting PlantPal in {settings.environment} mode")

    services = getattr(app.state, "services", None)
    if services is None:
        services = ServiceContainer(settings)
        app.state.services = services

    try:
        services.session_store.purge_expired()
        log_oauth_config(settings)

        logger.info("PlantPal started successfully")

        yield

    finally:
        logger.info("Shutting down PlantPal...")
        services.close()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="PlantPal",
        description="Personal plant watering tracker.",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ==========================================================================
    # Middleware (last added = outermost)
    # ==========================================================================

    # 1. CORS (innermost - only affects actual responses)
    setup_cors(
        app,
        config=get_cors_config(settings.environment, settings.cors_allowed_origins),
    )

    # 2. Compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # 3. Security headers
    setup_security_headers(
        app,
        config=SecurityHeadersConfig(hsts=settings.secure_cookies),
    )

    # 4. Logging (outermost - captures everything)
    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment not in ("development", "test"),
    )

    # Exception handling
    setup_exception_handlers(app)

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(auth.router)
    app.include_router(oauth.router)
    app.include_router(items.router)

    # ==========================================================================
    # System Routes
    # ==========================================================================

    @app.get("/api/config", response_model=ConfigResponse, tags=["System"])
    async def client_config(request: Request) -> ConfigResponse:
        """Feature flags the browser app needs."""
        return ConfigResponse(oauth_enabled=request.app.state.settings.oauth_enabled)

    @app.get("/healthz", response_model=OkResponse, tags=["System"])
    async def health_check() -> OkResponse:
        """Liveness check."""
        return OkResponse(ok=True)

    # ==========================================================================
    # Static frontend
    # ==========================================================================

    static_dir = Path(settings.static_dir)
    index_file = static_dir / "index.html"

    if static_dir.is_dir():
        @app.get("/app", include_in_schema=False)
        async def app_page():
            """Single-page app entry."""
            return FileResponse(index_file)

        # Mounted last so API routes win
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info(f"Serving static files from {static_dir.resolve()}")

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "plantpal.api.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
