"""
Authentication API Routes for PlantPal.

Handles:
- Local login, which registers unseen usernames
- Logout
- Current user retrieval
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from loguru import logger

from plantpal.api.dependencies import (
    ServiceContainer,
    Settings,
    get_current_user,
    get_identity_resolver,
    get_service_container,
    get_session_store,
    get_session_token,
)
from plantpal.api.schemas import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MeResponse,
    OkResponse,
    UserPublic,
)
from plantpal.errors import ValidationError
from plantpal.storage.protocols import SessionGateway
from plantpal.storage.user_repository import StoredUser


router = APIRouter(prefix="/api", tags=["auth"])


# =============================================================================
# Session cookie helpers
# =============================================================================

def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    """Attach the session token to a response."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Remove the session cookie from the browser."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        path="/",
    )


def start_session(
    response: Response,
    container: ServiceContainer,
    user: StoredUser,
    previous_token: Optional[str] = None,
) -> None:
    """Issue a fresh session for ``user``, dropping any session the client had."""
    if previous_token:
        container.session_store.revoke(previous_token)
    token = container.session_store.issue(user.id)
    set_session_cookie(response, container.settings, token)


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/me", response_model=MeResponse)
def read_current_user(
    user: Optional[StoredUser] = Depends(get_current_user),
):
    """Get current user profile, or null when not logged in."""
    if user is None:
        return MeResponse(user=None)
    return MeResponse(user=UserPublic.from_user(user))


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing credentials or password login unavailable"},
        401: {"model": ErrorResponse, "description": "Incorrect password"},
    },
)
def login(
    credentials: LoginRequest,
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    resolver = Depends(get_identity_resolver),
    container: ServiceContainer = Depends(get_service_container),
):
    """
    Log in with username and password.

    An unseen username is registered on the spot with the given password.
    """
    if not credentials.username or not credentials.password:
        raise ValidationError("missing credentials")

    result = resolver.resolve_local(credentials.username, credentials.password)
    start_session(response, container, result.user, previous_token=token)

    logger.info(f"Local login for '{result.user.username}' (created={result.created})")
    return LoginResponse(ok=True, created=result.created, username=result.user.username)


@router.post("/auth/logout", response_model=OkResponse)
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionGateway = Depends(get_session_store),
    container: ServiceContainer = Depends(get_service_container),
):
    """End the current session."""
    sessions.revoke(token)
    clear_session_cookie(response, container.settings)
    return OkResponse(ok=True)
