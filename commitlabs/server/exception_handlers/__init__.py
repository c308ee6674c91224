"""
Exception handlers for the CommitLabs server.

This package contains exception handlers that produce the failure envelope
for expected API errors and log unexpected ones with full context.
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from commitlabs.core.logging_config import get_logger
from commitlabs.server.errors import ApiError

from .api_handlers import (
    api_error_handler,
    http_exception_handler,
    request_validation_handler,
)
from .global_handler import global_exception_handler

logger = get_logger(__name__)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    This function should be called during application initialization to set up
    all custom exception handlers.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")


__all__ = [
    "api_error_handler",
    "global_exception_handler",
    "http_exception_handler",
    "request_validation_handler",
    "setup_exception_handlers",
]
