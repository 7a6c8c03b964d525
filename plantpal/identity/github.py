"""
GitHub OAuth Client

Handles the authorization-code flow against GitHub:
authorize redirect URL, code-for-token exchange, and profile lookup.
"""

import urllib.parse
from dataclasses import dataclass
from typing import Optional, Dict, Any

import aiohttp
from loguru import logger

from plantpal.errors import UpstreamAuthError


def mask_secret(value: Optional[str]) -> str:
    """Show only the ends of a secret for logging."""
    if not value:
        return "(empty)"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"


@dataclass
class GitHubProfile:
    """The parts of a GitHub user profile used for identity resolution."""
    provider_id: str
    login: Optional[str]
    name: Optional[str] = None

    @property
    def preferred_username(self) -> str:
        return self.login or f"gh_{self.provider_id}"


class GitHubOAuthClient:
    """Client for GitHub's OAuth and user APIs."""

    AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    USER_URL = "https://api.github.com/user"
    SCOPE = "user:email"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        callback_url: str,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize client.

        Args:
            client_id: OAuth app client id
            client_secret: OAuth app client secret
            callback_url: Registered redirect URI
            timeout_seconds: Per-request timeout for GitHub calls
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret and self.callback_url)

    def authorization_url(self, state: str) -> str:
        """Build the URL the browser is redirected to."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "scope": self.SCOPE,
            "state": state,
        }
        return f"{self.AUTHORIZE_URL}?{urllib.parse.urlencode(params)}"

    async def authenticate(self, code: str) -> GitHubProfile:
        """
        Complete the flow for an authorization code.

        Raises:
            UpstreamAuthError: If GitHub rejects the code or is unreachable
        """
        if not code:
            raise UpstreamAuthError("GitHub", detail="missing authorization code")

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                access_token = await self._exchange_code(session, code)
                return await self._fetch_profile(session, access_token)
        except aiohttp.ClientError as e:
            raise UpstreamAuthError("GitHub", detail=f"{type(e).__name__}: {e}") from e

    async def _exchange_code(self, session: aiohttp.ClientSession, code: str) -> str:
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.callback_url,
        }
        async with session.post(
            self.TOKEN_URL,
            data=data,
            headers={"Accept": "application/json"},
        ) as resp:
            if resp.status != 200:
                error_text = await resp.text()
                logger.error(f"GitHub token endpoint error {resp.status}: {error_text[:200]}")
                raise UpstreamAuthError("GitHub", detail=f"token endpoint returned {resp.status}")

            payload = await resp.json()

        access_token = payload.get("access_token")
        if not access_token:
            # e.g. {"error": "bad_verification_code", ...}
            logger.error(f"GitHub token exchange failed: {payload.get('error', 'no access_token')}")
            raise UpstreamAuthError("GitHub", detail=payload.get("error_description") or payload.get("error"))

        return access_token

    async def _fetch_profile(self, session: aiohttp.ClientSession, access_token: str) -> GitHubProfile:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {access_token}",
        }
        async with session.get(self.USER_URL, headers=headers) as resp:
            if resp.status != 200:
                logger.error(f"GitHub user endpoint error {resp.status}")
                raise UpstreamAuthError("GitHub", detail=f"user endpoint returned {resp.status}")

            data = await resp.json()

        return self._parse_profile(data)

    def _parse_profile(self, data: Dict[str, Any]) -> GitHubProfile:
        if data.get("id") is None:
            raise UpstreamAuthError("GitHub", detail="profile has no id")

        return GitHubProfile(
            provider_id=str(data["id"]),
            login=data.get("login") or None,
            name=data.get("name"),
        )
