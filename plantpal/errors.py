"""
Exception hierarchy for PlantPal.

Every error that can reach the HTTP boundary derives from PlantPalException
and carries the status code and machine-readable code used to render it.
"""


class PlantPalException(Exception):
    """Base exception for PlantPal errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: str = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(PlantPalException):
    """Malformed or missing input."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class InvalidDateFormat(ValidationError, ValueError):
    """A calendar date was not a real YYYY-MM-DD date."""

    def __init__(self, value):
        super().__init__(
            message="dates must be YYYY-MM-DD",
            detail=f"Invalid calendar date: {value!r}",
        )


class ScheduleOutOfRange(ValidationError, ValueError):
    """The next watering date would fall past the last representable date."""

    def __init__(self, last_watered, interval_days):
        super().__init__(
            message="lastWatered plus intervalDays is out of range",
            detail=f"{last_watered} + {interval_days} days",
        )


class PasswordLoginUnavailable(ValidationError):
    """The account exists but only has an external identity."""

    def __init__(self):
        super().__init__(message="this account uses GitHub only")


class AuthenticationError(PlantPalException):
    """Missing or invalid credentials."""

    def __init__(self, message: str = "not authenticated", detail: str = None):
        super().__init__(
            message=message,
            code="AUTHENTICATION_ERROR",
            status_code=401,
            detail=detail,
        )


class IncorrectPassword(AuthenticationError):
    """Password did not match the stored hash."""

    def __init__(self):
        super().__init__(message="incorrect password")


class NotFoundError(PlantPalException):
    """Resource not found, or not owned by the caller."""

    def __init__(self, resource: str = "record"):
        super().__init__(
            message="not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No such {resource}",
        )


class ConflictError(PlantPalException):
    """A uniqueness constraint rejected a write.

    Raised by the stores and recovered by identity resolution; if one ever
    reaches the client it is rendered as a plain server error.
    """

    def __init__(self, detail: str = None):
        super().__init__(
            message="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail=detail,
        )


class UpstreamAuthError(PlantPalException):
    """The external identity provider rejected or failed the login."""

    def __init__(self, provider: str, detail: str = None):
        super().__init__(
            message=f"{provider} login failed",
            code="UPSTREAM_AUTH_ERROR",
            status_code=502,
            detail=detail,
        )
