import re
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from commitlabs.core.models.io import ChainHealth
from commitlabs.server.errors import BlockchainCallFailedError, BlockchainUnavailableError

pytestmark = pytest.mark.asyncio

SEMVER = re.compile(r"^\d+\.\d+\.\d+$")


async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert SEMVER.match(body["version"])
    assert body["timestamp"].endswith("Z")


async def test_version(client: AsyncClient):
    response = await client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": "0.1.0", "schema_version": "v1"}


async def test_health_has_security_headers(client: AsyncClient):
    response = await client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Strict-Transport-Security" not in response.headers
    assert "X-Process-Time" in response.headers


async def test_chain_health_ok(client: AsyncClient, gateway):
    health = ChainHealth(status="healthy", rpc_url="http://mock-soroban", ledger=123456)
    with patch.object(gateway, "health", AsyncMock(return_value=health)):
        response = await client.get("/api/v1/health/chain")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {"status": "healthy", "rpcUrl": "http://mock-soroban", "ledger": 123456}


async def test_chain_health_unavailable(client: AsyncClient, gateway):
    unavailable = BlockchainUnavailableError("Soroban RPC is unreachable.")
    with patch.object(gateway, "health", AsyncMock(side_effect=unavailable)):
        response = await client.get("/api/v1/health/chain")

    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "error": {"code": "BLOCKCHAIN_UNAVAILABLE", "message": "Soroban RPC is unreachable."},
    }


async def test_chain_health_call_failed(client: AsyncClient, gateway):
    with patch.object(gateway, "health", AsyncMock(side_effect=BlockchainCallFailedError())):
        response = await client.get("/api/v1/health/chain")

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "BLOCKCHAIN_CALL_FAILED"


async def test_metrics_counts_requests(client: AsyncClient):
    await client.get("/health")
    await client.get("/version")

    response = await client.get("/api/v1/metrics")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "up"
    assert data["requestsTotal"] >= 2
    assert data["errorsTotal"] == 0
    assert data["uptime"] >= 0
    assert data["timestamp"].endswith("Z")
