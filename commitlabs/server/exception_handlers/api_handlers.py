"""
Exception Handlers for Expected API Failures.

Maps ``ApiError``, request validation failures and Starlette HTTP exceptions
onto the failure envelope.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from commitlabs.core.logging_config import get_logger
from commitlabs.server.errors import HTTP_ERROR_CODES, ApiError, ValidationError
from commitlabs.server.responses import fail

logger = get_logger(__name__)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.code} in {request.method} {request.url.path}: {exc.message}",
        extra={"code": exc.code, "status_code": exc.status_code, "path": request.url.path},
    )
    return fail(exc.code, exc.message, details=exc.details, status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body/query validation failures as 400 ``VALIDATION_ERROR``."""
    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    logger.warning(
        f"Request validation failed in {request.method} {request.url.path}",
        extra={"path": request.url.path, "errors": details},
    )
    return fail(ValidationError.code, ValidationError.default_message, details=details, status_code=400)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    response = fail(code, str(exc.detail), status_code=exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response
