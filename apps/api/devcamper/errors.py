"""Application exception types."""

from devcamper.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to the error envelope."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.payload = ErrorResponse(error=message)
        super().__init__(message)


class ValidationError(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"


class Unauthorized(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"


class Forbidden(ApiError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(ApiError):
    status_code = 404
    code = "RESOURCE_NOT_FOUND"


class UpstreamFailure(ApiError):
    status_code = 500
    code = "UPSTREAM_FAILURE"


__all__ = [
    "ApiError",
    "Forbidden",
    "NotFound",
    "Unauthorized",
    "UpstreamFailure",
    "ValidationError",
]
