"""
API middleware components.

Provides cross-cutting concerns for the API:
- Error handling
- CORS configuration
- Security headers
- Request/response logging
"""

from .error_handler import (
    setup_exception_handlers,
    create_error_response,
    describe_validation_errors,
)

from .cors import (
    CORSConfig,
    get_cors_config,
    setup_cors,
)

from .security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
    setup_security_headers,
)

from .logging import (
    AccessRecord,
    LoggingConfig,
    StructuredLogFormatter,
    RequestLoggingMiddleware,
    setup_logging,
    get_request_id,
    redact_sensitive_data,
)


__all__ = [
    # Error handling
    "setup_exception_handlers",
    "create_error_response",
    "describe_validation_errors",
    # CORS
    "CORSConfig",
    "get_cors_config",
    "setup_cors",
    # Security headers
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "setup_security_headers",
    # Logging
    "AccessRecord",
    "LoggingConfig",
    "StructuredLogFormatter",
    "RequestLoggingMiddleware",
    "setup_logging",
    "get_request_id",
    "redact_sensitive_data",
]
