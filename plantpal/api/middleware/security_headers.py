"""
Security response headers.

Adds a Content-Security-Policy and the usual hardening headers to every
response.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


@dataclass
class SecurityHeadersConfig:
    """Security header settings."""

    csp_directives: Dict[str, List[str]] = field(default_factory=lambda: {
        "default-src": ["'self'"],
        "img-src": ["'self'", "data:"],
        "style-src": ["'self'", "'unsafe-inline'", "https://unpkg.com"],
        "script-src": ["'self'"],
        "connect-src": ["'self'"],
        "object-src": ["'none'"],
        "frame-ancestors": ["'self'"],
    })

    extra_headers: Dict[str, str] = field(default_factory=lambda: {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "SAMEORIGIN",
        "Referrer-Policy": "no-referrer",
        "Cross-Origin-Opener-Policy": "same-origin",
    })

    # Only meaningful over HTTPS
    hsts: bool = False

    def content_security_policy(self) -> str:
        return "; ".join(
            f"{name} {' '.join(sources)}" for name, sources in self.csp_directives.items()
        )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Sets security headers that the route did not set itself."""

    def __init__(self, app: FastAPI, config: Optional[SecurityHeadersConfig] = None):
        super().__init__(app)
        self.config = config or SecurityHeadersConfig()
        self._csp = self.config.content_security_policy()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers.setdefault("Content-Security-Policy", self._csp)
        for name, value in self.config.extra_headers.items():
            response.headers.setdefault(name, value)
        if self.config.hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")

        return response


def setup_security_headers(app: FastAPI, config: Optional[SecurityHeadersConfig] = None) -> None:
    """Add the security headers middleware."""
    app.add_middleware(SecurityHeadersMiddleware, config=config)
