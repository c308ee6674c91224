"""
Unit tests for server exception handlers.

Tests cover the failure envelope for API errors, request validation failures,
HTTP exceptions and unhandled exceptions.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from commitlabs.server.errors import (
    ApiError,
    BlockchainUnavailableError,
    ConflictError,
    NotFoundError,
)
from commitlabs.server.exception_handlers import setup_exception_handlers
from commitlabs.server.exception_handlers.api_handlers import (
    api_error_handler,
    http_exception_handler,
    request_validation_handler,
)
from commitlabs.server.exception_handlers.global_handler import (
    global_exception_handler,
)


def _body(response: JSONResponse) -> dict:
    return json.loads(response.body.decode())


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/test"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        exc = ValueError("Test error")

        with patch("commitlabs.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

            mock_logger.error.assert_called_once()
            call_args = mock_logger.error.call_args
            assert "Unhandled exception" in call_args[0][0]
            assert call_args[1]["extra"]["error_type"] == "ValueError"
            assert call_args[1]["exc_info"] is True

    @pytest.mark.asyncio
    async def test_exception_handler_returns_failure_envelope(self, mock_request):
        exc = RuntimeError("Test error")

        with patch("commitlabs.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        body = _body(response)
        assert body["success"] is False
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert body["error"]["message"] == "An unexpected error occurred. Please try again later."

    @pytest.mark.asyncio
    async def test_exception_handler_does_not_leak_message(self, mock_request):
        exc = RuntimeError("password=hunter2")

        with patch("commitlabs.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, exc)

        assert "hunter2" not in response.body.decode()

    @pytest.mark.asyncio
    async def test_exception_handler_includes_error_id_and_type(self, mock_request):
        exc = KeyError("missing")

        with patch("commitlabs.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, exc)

        details = _body(response)["error"]["details"]
        assert details["error_id"] == id(exc)
        assert details["error_type"] == "KeyError"

    @pytest.mark.asyncio
    async def test_exception_handler_logs_request_context(self, mock_request):
        mock_request.method = "POST"
        mock_request.query_params = {"page": "2"}

        with patch("commitlabs.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, RuntimeError("boom"))

        extra = mock_logger.error.call_args[1]["extra"]
        assert extra["method"] == "POST"
        assert extra["path"] == "/api/v1/test"
        assert extra["query_params"] == {"page": "2"}
        assert extra["client"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_exception_handler_without_client(self, mock_request):
        mock_request.client = None

        with patch("commitlabs.server.exception_handlers.global_handler.logger") as mock_logger:
            response = await global_exception_handler(mock_request, RuntimeError("boom"))

        assert response.status_code == 500
        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"

    @pytest.mark.asyncio
    async def test_exception_handler_reports_to_monitoring(self, mock_request):
        with (
            patch("commitlabs.server.exception_handlers.global_handler.logger"),
            patch("commitlabs.server.exception_handlers.global_handler.log_error") as mock_log_error,
        ):
            await global_exception_handler(mock_request, RuntimeError("boom"))

        mock_log_error.assert_called_once()
        assert mock_log_error.call_args[0][:2] == ("RuntimeError", "boom")


class TestApiErrorHandler:
    """Test suite for ApiError handling."""

    @pytest.mark.asyncio
    async def test_not_found(self, mock_request):
        response = await api_error_handler(mock_request, NotFoundError("Listing"))

        assert response.status_code == 404
        assert _body(response) == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": "Listing not found."},
        }

    @pytest.mark.asyncio
    async def test_details_are_included(self, mock_request):
        exc = ConflictError("Already listed.", details={"listingId": "LST-001"})

        response = await api_error_handler(mock_request, exc)

        assert response.status_code == 409
        assert _body(response)["error"]["details"] == {"listingId": "LST-001"}

    @pytest.mark.asyncio
    async def test_client_errors_log_warning(self, mock_request):
        with patch("commitlabs.server.exception_handlers.api_handlers.logger") as mock_logger:
            await api_error_handler(mock_request, ConflictError())

        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_errors_log_error(self, mock_request):
        with patch("commitlabs.server.exception_handlers.api_handlers.logger") as mock_logger:
            response = await api_error_handler(mock_request, BlockchainUnavailableError())

        assert response.status_code == 503
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_custom_code_and_status(self, mock_request):
        exc = ApiError("Teapot.", code="TEAPOT", status_code=418)

        response = await api_error_handler(mock_request, exc)

        assert response.status_code == 418
        assert _body(response)["error"] == {"code": "TEAPOT", "message": "Teapot."}


class TestValidationAndHttpHandlers:
    """Test suite for request validation and HTTP exception handling."""

    @pytest.mark.asyncio
    async def test_request_validation_is_400(self, mock_request):
        exc = RequestValidationError(
            [{"loc": ("body", "amount"), "msg": "Input should be greater than 0", "type": "greater_than"}]
        )

        response = await request_validation_handler(mock_request, exc)

        assert response.status_code == 400
        error = _body(response)["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Invalid request data."
        assert error["details"] == [
            {"loc": ["body", "amount"], "msg": "Input should be greater than 0", "type": "greater_than"}
        ]

    @pytest.mark.asyncio
    async def test_http_exception_code_mapping(self, mock_request):
        response = await http_exception_handler(mock_request, StarletteHTTPException(405, "Method Not Allowed"))

        assert response.status_code == 405
        assert _body(response)["error"] == {"code": "METHOD_NOT_ALLOWED", "message": "Method Not Allowed"}

    @pytest.mark.asyncio
    async def test_http_exception_unknown_status(self, mock_request):
        response = await http_exception_handler(mock_request, StarletteHTTPException(418, "I'm a teapot"))

        assert _body(response)["error"]["code"] == "HTTP_ERROR"

    @pytest.mark.asyncio
    async def test_http_exception_keeps_headers(self, mock_request):
        exc = StarletteHTTPException(401, "Not authenticated", headers={"WWW-Authenticate": "Bearer"})

        response = await http_exception_handler(mock_request, exc)

        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestSetupExceptionHandlers:
    """Test suite for handler registration."""

    def test_setup_registers_handlers(self):
        app = FastAPI()

        setup_exception_handlers(app)

        assert app.exception_handlers[ApiError] is api_error_handler
        assert app.exception_handlers[RequestValidationError] is request_validation_handler
        assert app.exception_handlers[StarletteHTTPException] is http_exception_handler
        assert app.exception_handlers[Exception] is global_exception_handler

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, client):
        response = await client.get("/api/v1/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": {"code": "NOT_FOUND", "message": "Not Found"}}
