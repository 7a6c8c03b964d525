"""
External-provider login routes (GitHub OAuth).

Handles:
- Redirect to GitHub's authorize page with a CSRF ``state``
- Callback: code exchange, identity resolution, session start

Failures never surface as JSON; the browser is sent back to the app with
``?oauth=failed`` and the reason is logged server-side.
"""

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from loguru import logger
from starlette.concurrency import run_in_threadpool

from plantpal.api.dependencies import (
    ServiceContainer,
    get_service_container,
    get_session_token,
)
from plantpal.api.routes.auth import start_session
from plantpal.errors import PlantPalException, UpstreamAuthError


router = APIRouter(prefix="/auth", tags=["oauth"])

STATE_COOKIE = "plantpal_oauth_state"
STATE_MAX_AGE_SECONDS = 10 * 60

SUCCESS_REDIRECT = "/app"
FAILURE_REDIRECT = "/?oauth=failed"


def _failure(reason: str) -> RedirectResponse:
    logger.error(f"[OAuth] GitHub login failed: {reason}")
    response = RedirectResponse(FAILURE_REDIRECT, status_code=302)
    response.delete_cookie(STATE_COOKIE, path="/auth")
    return response


@router.get("/github")
def github_login(
    container: ServiceContainer = Depends(get_service_container),
):
    """Redirect the browser to GitHub."""
    if not container.settings.oauth_enabled:
        return PlainTextResponse("GitHub OAuth not configured.", status_code=503)

    state = secrets.token_urlsafe(24)
    response = RedirectResponse(container.github_client.authorization_url(state), status_code=302)
    response.set_cookie(
        key=STATE_COOKIE,
        value=state,
        max_age=STATE_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=container.settings.secure_cookies,
        path="/auth",
    )
    return response


@router.get("/github/callback")
async def github_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    token: Optional[str] = Depends(get_session_token),
    container: ServiceContainer = Depends(get_service_container),
):
    """Finish the GitHub login and start a session."""
    if not container.settings.oauth_enabled:
        return _failure("OAuth not configured")

    if error:
        return _failure(f"provider returned error={error}")

    expected_state = request.cookies.get(STATE_COOKIE)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        return _failure("state mismatch")

    try:
        profile = await container.github_client.authenticate(code)
    except UpstreamAuthError as e:
        return _failure(e.detail or e.message)

    try:
        result = await run_in_threadpool(
            container.identity_resolver.resolve_external,
            profile.provider_id,
            profile.preferred_username,
        )
    except PlantPalException as e:
        # Includes a second ConflictError after the retry
        return _failure(f"identity resolution: {e.code} {e.detail or e.message}")

    response = RedirectResponse(SUCCESS_REDIRECT, status_code=302)
    response.delete_cookie(STATE_COOKIE, path="/auth")
    await run_in_threadpool(start_session, response, container, result.user, token)

    logger.info(
        f"[OAuth] GitHub login for '{result.user.username}' "
        f"(provider id {profile.provider_id}, created={result.created})"
    )
    return response
