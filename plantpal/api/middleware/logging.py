"""
HTTP access logging.

One log line per request on the stdlib ``plantpal.api`` logger, carrying:
- a request id (taken from ``X-Request-ID`` or generated, echoed back)
- method, path, redacted query string, status and duration
- the logged-in user id when the route resolved a session
- optionally the request body, with credentials redacted

Cookies, OAuth codes and passwords never reach the log.
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, Optional, Set

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


REDACTED = "[REDACTED]"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("plantpal.api")


@dataclass
class LoggingConfig:
    """Access log settings."""

    enabled: bool = True
    log_request_body: bool = False
    max_body_log_size: int = 4096

    excluded_paths: Set[str] = field(default_factory=lambda: {
        "/healthz",
        "/favicon.ico",
    })

    excluded_headers: Set[str] = field(default_factory=lambda: {
        "authorization",
        "cookie",
        "set-cookie",
    })

    # Body keys and query parameters, compared lower-case
    redacted_fields: Set[str] = field(default_factory=lambda: {
        "password",
        "token",
        "secret",
        "client_secret",
        "access_token",
        "code",
        "state",
    })

    slow_request_threshold: float = 2.0
    request_id_header: str = "X-Request-ID"


@dataclass
class AccessRecord:
    """What is known about one request once it has been answered."""

    request_id: str
    method: str
    path: str
    status_code: int
    duration_ms: float
    query: Optional[str] = None
    user_id: Optional[str] = None
    client_ip: Optional[str] = None
    body: Optional[str] = None

    def summary(self) -> str:
        target = f"{self.path}?{self.query}" if self.query else self.path
        line = f"{self.method} {target} -> {self.status_code} ({self.duration_ms}ms)"
        if self.user_id:
            line += f" user={self.user_id}"
        return line


class StructuredLogFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id

        access = getattr(record, "access", None)
        if access:
            entry["access"] = access
        if hasattr(record, "duration_ms"):
            entry["duration_ms"] = record.duration_ms

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def redact_sensitive_data(
    data: Any,
    redacted_fields: Set[str],
    replacement: str = REDACTED,
) -> Any:
    """Replace values of sensitive keys, recursing into lists and dicts."""
    if isinstance(data, dict):
        return {
            key: replacement if key.lower() in redacted_fields
            else redact_sensitive_data(value, redacted_fields, replacement)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item, redacted_fields, replacement) for item in data]
    return data


def get_request_id() -> str:
    """Request id of the request being handled, or empty outside one."""
    return request_id_var.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes an access record for every request outside ``excluded_paths``."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    def _redact_query(self, request: Request) -> Optional[str]:
        if not request.url.query:
            return None
        return "&".join(
            f"{key}={REDACTED if key.lower() in self.config.redacted_fields else value}"
            for key, value in request.query_params.multi_items()
        )

    def _visible_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        return {
            key: REDACTED if key.lower() in self.config.excluded_headers else value
            for key, value in headers.items()
        }

    async def _read_body(self, request: Request) -> Optional[str]:
        body = await request.body()
        if not body:
            return None
        if len(body) > self.config.max_body_log_size:
            return f"<{len(body)} bytes>"

        try:
            parsed = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "<non-JSON body>"
        return json.dumps(redact_sensitive_data(parsed, self.config.redacted_fields))

    def _level_for(self, record: AccessRecord) -> int:
        if record.status_code >= 500:
            return logging.ERROR
        if record.status_code >= 400:
            return logging.WARNING
        if record.duration_ms > self.config.slow_request_threshold * 1000:
            return logging.WARNING
        return logging.INFO

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.config.request_id_header) or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)

        if not self.config.enabled or request.url.path in self.config.excluded_paths:
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        body = await self._read_body(request) if self.config.log_request_body else None

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        response.headers[self.config.request_id_header] = request_id

        record = AccessRecord(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            query=self._redact_query(request),
            # Set by get_current_user when the route looked up a session
            user_id=getattr(request.state, "user_id", None),
            client_ip=request.client.host if request.client else None,
            body=body,
        )

        message = record.summary()
        if duration_ms > self.config.slow_request_threshold * 1000:
            message = f"[SLOW] {message}"

        access = asdict(record)
        access["request_headers"] = self._visible_headers(dict(request.headers))
        logger.log(
            self._level_for(record),
            message,
            extra={"access": access, "duration_ms": duration_ms},
        )

        return response


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Add the access log middleware.

    Args:
        app: FastAPI application instance.
        config: Logging configuration.
        structured: Emit JSON lines on the ``plantpal`` logger.
    """
    if config is None:
        config = LoggingConfig()

    if structured:
        plantpal_logger = logging.getLogger("plantpal")
        # create_app may run more than once per process (tests)
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in plantpal_logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredLogFormatter())
            plantpal_logger.addHandler(handler)
        plantpal_logger.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config)
