"""
Error Handling for PlantPal

Centralized error handling:
- Structured error responses (always carrying an ``error`` message)
- Logging of errors
- Exception translation (domain errors, request validation, HTTP errors)
"""

import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from plantpal.errors import PlantPalException


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: str = None,
    headers: dict = None,
) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "detail": detail,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers=headers,
    )


def describe_validation_errors(errors: list) -> tuple:
    """
    Turn pydantic error records into a short human-readable message.

    Returns:
        (message, detail)
    """
    if not errors:
        return "invalid request", None

    missing = [
        ".".join(str(part) for part in err["loc"][1:]) or "body"
        for err in errors
        if err.get("type") == "missing"
    ]
    if missing:
        return "missing required fields", ", ".join(missing)

    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Bad JSON", first.get("ctx", {}).get("error")

    field = ".".join(str(part) for part in first["loc"] if part != "body")
    message = first["msg"].removeprefix("Value error, ")
    return (f"{field}: {message}" if field else message), None


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(PlantPalException)
    async def plantpal_exception_handler(request: Request, exc: PlantPalException):
        if exc.status_code >= 500:
            logger.error(f"PlantPal error on {request.url.path}: {exc.code} - {exc.detail}")
            # Internal detail stays in the log
            return create_error_response(
                error="Internal Server Error",
                code="INTERNAL_ERROR",
                status_code=500,
                detail="An unexpected error occurred",
            )

        logger.warning(f"PlantPal error: {exc.code} - {exc.message}")
        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message, detail = describe_validation_errors(exc.errors())
        logger.warning(f"Validation error on {request.url.path}: {message}")
        return create_error_response(
            error=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return create_error_response(
            error=str(exc.detail),
            code="HTTP_ERROR",
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}\n{traceback.format_exc()}"
        )
        # Don't expose internal error details
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
