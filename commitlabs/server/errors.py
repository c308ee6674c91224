"""
API Error Types.

Every error the API reports on purpose is an ``ApiError``. The exception
handlers turn it into the failure envelope
``{"success": false, "error": {"code", "message", "details"?}}`` using its
``code`` and ``status_code``.
"""

from typing import Any, Optional

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_ERROR",
    502: "BLOCKCHAIN_CALL_FAILED",
    503: "BLOCKCHAIN_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT",
}


class ConfigurationError(Exception):
    """Raised when backend configuration is missing or malformed."""


class ApiError(Exception):
    """Base class for errors reported to API clients."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred. Please try again later."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, status_code={self.status_code}, message={self.message!r})"


class BadRequestError(ApiError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Bad request."


class ValidationError(ApiError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request data."


class UnauthorizedError(ApiError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required."


class ForbiddenError(ApiError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "You do not have permission to perform this action."


class NotFoundError(ApiError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found."

    def __init__(self, resource: str = "Resource", message: Optional[str] = None, details: Any = None) -> None:
        self.resource = resource
        super().__init__(message or f"{resource} not found.", details=details)


class ConflictError(ApiError):
    code = "CONFLICT"
    status_code = 409
    default_message = "A conflict occurred."


class TooManyRequestsError(ApiError):
    code = "TOO_MANY_REQUESTS"
    status_code = 429
    default_message = "Too many requests. Please try again later."


class InternalError(ApiError):
    pass


class BlockchainCallFailedError(ApiError):
    """The chain answered, but the call itself failed."""

    code = "BLOCKCHAIN_CALL_FAILED"
    status_code = 502
    default_message = "Blockchain call failed."


class BlockchainUnavailableError(ApiError):
    """The chain (or a required contract) cannot be reached."""

    code = "BLOCKCHAIN_UNAVAILABLE"
    status_code = 503
    default_message = "Blockchain is unavailable."
