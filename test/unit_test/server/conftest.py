import base64
from typing import AsyncGenerator
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from stellar_sdk import Keypair

from commitlabs.core.database import SqlRepoBundle
from commitlabs.core.monitoring import request_metrics
from commitlabs.server.core.config import Settings
from commitlabs.server.services.auth import NonceStore, SessionStore
from commitlabs.server.services.chain import SorobanGateway
from commitlabs.server.services.deps import Services, build_services
from commitlabs.server.services.rate_limit import RateLimiter


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, COMMITLABS_ENV="test", SOROBAN_RPC_URL="http://mock-soroban")


@pytest.fixture
def gateway(test_settings: Settings) -> SorobanGateway:
    return SorobanGateway(test_settings)


@pytest.fixture
def services(seeded: SqlRepoBundle, gateway: SorobanGateway, test_settings: Settings) -> Services:
    return build_services(seeded, gateway, config=test_settings)


@pytest.fixture
def nonce_store() -> NonceStore:
    return NonceStore(ttl_seconds=300)


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore(ttl_seconds=3600)


@pytest.fixture
def rate_limiter() -> RateLimiter:
    return RateLimiter(requests=1000, window_seconds=60)


@pytest.fixture
def owner() -> Keypair:
    return Keypair.random()


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    services: Services,
    gateway: SorobanGateway,
    nonce_store: NonceStore,
    session_store: SessionStore,
    rate_limiter: RateLimiter,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from commitlabs.server.main import app
    from commitlabs.server.services.auth import get_nonce_store, get_session_store
    from commitlabs.server.services.chain import get_chain_gateway
    from commitlabs.server.services.deps import get_services, get_settings
    from commitlabs.server.services.rate_limit import get_rate_limiter

    app.dependency_overrides[get_services] = lambda: services
    app.dependency_overrides[get_chain_gateway] = lambda: gateway
    app.dependency_overrides[get_nonce_store] = lambda: nonce_store
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_settings] = lambda: test_settings
    request_metrics.reset()

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("commitlabs.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sign_in(client: AsyncClient):
    """Return a coroutine running the nonce/verify flow for a keypair and returning the session token."""

    async def _sign_in(keypair: Keypair) -> str:
        nonce = await client.post("/api/v1/auth/nonce", json={"address": keypair.public_key})
        message = nonce.json()["data"]["message"]
        signature = base64.b64encode(keypair.sign(message.encode("utf-8"))).decode("ascii")
        verified = await client.post(
            "/api/v1/auth/verify",
            json={"address": keypair.public_key, "signature": signature, "message": message},
        )
        return verified.json()["data"]["sessionToken"]

    return _sign_in
