from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from starlette.responses import Response

from commitlabs.server.middleware.security_headers import (
    HSTS_VALUE,
    SECURITY_HEADERS,
    SecurityHeadersMiddleware,
)


def _app(enable_hsts: bool) -> FastAPI:
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=enable_hsts)

    @app.get("/ping")
    async def ping():
        return {"pong": True}

    @app.get("/framed")
    async def framed():
        return Response(content="ok", headers={"X-Frame-Options": "SAMEORIGIN"})

    return app


class TestSecurityHeadersMiddleware:
    def test_sets_security_headers(self):
        with TestClient(_app(enable_hsts=False), base_url="http://localhost") as client:
            response = client.get("/ping")

        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value
        assert "Strict-Transport-Security" not in response.headers

    def test_sets_hsts_when_enabled(self):
        with TestClient(_app(enable_hsts=True), base_url="http://localhost") as client:
            response = client.get("/ping")

        assert response.headers["Strict-Transport-Security"] == HSTS_VALUE

    def test_keeps_headers_set_by_handler(self):
        with TestClient(_app(enable_hsts=False), base_url="http://localhost") as client:
            response = client.get("/framed")

        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"

    @pytest.mark.asyncio
    async def test_dispatch_returns_downstream_response(self):
        downstream = Response(content="ok", status_code=202)

        async def call_next(request):
            return downstream

        middleware = SecurityHeadersMiddleware(app=AsyncMock())
        response = await middleware.dispatch(AsyncMock(spec=Request), call_next)

        assert response is downstream
        assert response.status_code == 202
