import hashlib
import json

import httpx
import pytest

from commitlabs.server.core.config import Settings
from commitlabs.server.errors import BlockchainCallFailedError, BlockchainUnavailableError
from commitlabs.server.services.chain import SorobanGateway

RPC_URL = "http://mock-soroban"
CORE_CONTRACT = "CBQHNAXSI55GX2GN6D67GK7BHVPSLJUGZQEU7WJ5LKR5PNUCGLIMAO4K"


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, SOROBAN_RPC_URL=RPC_URL, **overrides)


def _gateway(handler, **overrides) -> SorobanGateway:
    transport = httpx.MockTransport(handler)
    return SorobanGateway(_settings(**overrides), http_client_factory=lambda: httpx.AsyncClient(transport=transport))


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            result = {"status": "healthy", "latestLedger": 42}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

        health = await _gateway(handler).health()

        assert health.status == "healthy"
        assert health.ledger == 42
        assert health.rpc_url == RPC_URL
        assert seen == [{"jsonrpc": "2.0", "id": 1, "method": "getHealth"}]

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {}})

        health = await _gateway(handler).health()

        assert health.status == "unknown"
        assert health.ledger is None

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BlockchainUnavailableError) as exc_info:
            await _gateway(handler).health()

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Soroban RPC is unreachable."
        assert exc_info.value.details == {"method": "getHealth"}

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(BlockchainUnavailableError, match="HTTP 502"):
            await _gateway(handler).health()

    @pytest.mark.asyncio
    async def test_rpc_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            error = {"code": -32601, "message": "nope"}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": error})

        with pytest.raises(BlockchainCallFailedError) as exc_info:
            await _gateway(handler).health()

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "nope"
        assert exc_info.value.details == {"method": "getHealth", "rpcCode": -32601}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [None, [1, 2], "ok", {"jsonrpc": "2.0", "id": 1, "result": ["healthy"]}],
    )
    async def test_malformed_reply(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(BlockchainCallFailedError) as exc_info:
            await _gateway(handler).health()

        assert exc_info.value.message == "Soroban RPC returned an invalid response."
        assert exc_info.value.details == {"method": "getHealth"}

    @pytest.mark.asyncio
    async def test_rpc_error_as_string(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": "node is syncing"})

        with pytest.raises(BlockchainCallFailedError) as exc_info:
            await _gateway(handler).health()

        assert exc_info.value.message == "node is syncing"
        assert exc_info.value.details == {"method": "getHealth", "rpcCode": None}

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        with pytest.raises(BlockchainCallFailedError, match="invalid response"):
            await _gateway(handler).health()


class TestWrites:
    def test_simulated_settle(self):
        gateway = SorobanGateway(_settings())

        receipt = gateway.settle("CMT-007", "GOWNER", 20620.0)

        payload = {"operation": "settle", "commitmentId": "CMT-007", "caller": "GOWNER", "amount": 20620.0}
        expected = hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()
        assert receipt.tx_hash == expected
        assert receipt.reference == "sim-settle-CMT-007"
        assert receipt.simulated is True

    def test_simulated_receipts_are_deterministic(self):
        gateway = SorobanGateway(_settings())

        first = gateway.record_creation("CMT-1", "GOWNER", 100.0, "USDC")
        second = gateway.record_creation("CMT-1", "GOWNER", 100.0, "USDC")
        other = gateway.record_creation("CMT-1", "GOWNER", 101.0, "USDC")

        assert first == second
        assert first.tx_hash != other.tx_hash
        assert first.reference == "sim-create-CMT-1"

    def test_simulated_early_exit(self):
        receipt = SorobanGateway(_settings()).early_exit("CMT-9", "GOWNER", 9700.0, 300.0)

        assert receipt.reference == "sim-early-exit-CMT-9"

    def test_chain_writes_without_contract(self):
        gateway = SorobanGateway(_settings(COMMITLABS_ENABLE_CHAIN_WRITES=True))

        with pytest.raises(BlockchainUnavailableError) as exc_info:
            gateway.settle("CMT-007", "GOWNER", 1.0)

        assert exc_info.value.details == {"contract": "commitmentCore"}

    def test_chain_writes_without_signer(self):
        gateway = SorobanGateway(
            _settings(COMMITLABS_ENABLE_CHAIN_WRITES=True, COMMITMENT_CORE_CONTRACT=CORE_CONTRACT)
        )

        with pytest.raises(BlockchainUnavailableError, match="no transaction signer"):
            gateway.settle("CMT-007", "GOWNER", 1.0)
