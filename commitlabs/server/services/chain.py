"""
Soroban Chain Gateway.

Single seam between the API and the Stellar/Soroban network:

- ``health`` calls the JSON-RPC ``getHealth`` method of the configured RPC.
- ``record_creation``, ``settle`` and ``early_exit`` produce a ``ChainReceipt``.
  With chain writes disabled the receipt is simulated: its hash is the SHA-256
  of the operation payload and its reference is ``sim-<operation>-<id>``.
  With chain writes enabled the target contract must be configured; submission
  itself needs a transaction signer, which this deployment does not hold.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.io import ChainHealth
from commitlabs.server.core.config import Settings, settings
from commitlabs.server.core.contracts import get_contract_address
from commitlabs.server.errors import (
    BlockchainCallFailedError,
    BlockchainUnavailableError,
    ConfigurationError,
)

logger = get_logger(__name__)

HttpClientFactory = Callable[[], httpx.AsyncClient]


@dataclass(frozen=True)
class ChainReceipt:
    tx_hash: str
    reference: str
    simulated: bool = True


class SorobanGateway:
    def __init__(self, config: Settings = settings, http_client_factory: Optional[HttpClientFactory] = None) -> None:
        self.config = config
        self._http_client_factory = http_client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.soroban.rpc_timeout_seconds)

    @property
    def rpc_url(self) -> str:
        return self.config.soroban.rpc_url

    async def _rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"jsonrpc": "2.0", "id": 1, "method": method}
        if params is not None:
            payload["params"] = params

        try:
            async with self._http_client_factory() as client:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Soroban RPC {method} returned HTTP {e.response.status_code}")
            raise BlockchainUnavailableError(
                f"Soroban RPC returned HTTP {e.response.status_code}.", details={"method": method}
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Soroban RPC {method} unreachable: {e}")
            raise BlockchainUnavailableError("Soroban RPC is unreachable.", details={"method": method}) from e
        except ValueError as e:
            raise BlockchainCallFailedError(
                "Soroban RPC returned an invalid response.", details={"method": method}
            ) from e

        if not isinstance(body, dict):
            raise BlockchainCallFailedError("Soroban RPC returned an invalid response.", details={"method": method})
        if "error" in body:
            error = body["error"]
            logger.warning(f"Soroban RPC {method} failed: {error}")
            if not isinstance(error, dict):
                error = {"message": str(error) if error else None}
            raise BlockchainCallFailedError(
                error.get("message") or "Blockchain call failed.",
                details={"method": method, "rpcCode": error.get("code")},
            )
        result = body.get("result")
        if result is None:
            return {}
        if not isinstance(result, dict):
            raise BlockchainCallFailedError("Soroban RPC returned an invalid response.", details={"method": method})
        return result

    async def health(self) -> ChainHealth:
        """
        Raises:
            BlockchainUnavailableError: the RPC cannot be reached.
            BlockchainCallFailedError: the RPC answered with an error.
        """
        result = await self._rpc("getHealth")
        return ChainHealth(
            status=result.get("status", "unknown"),
            rpc_url=self.rpc_url,
            ledger=result.get("latestLedger"),
        )

    def _submit(self, operation: str, contract_key: str, commitment_id: str, payload: Dict[str, Any]) -> ChainReceipt:
        if not self.config.soroban.chain_writes_enabled:
            encoded = json.dumps({"operation": operation, "commitmentId": commitment_id, **payload}, sort_keys=True)
            receipt = ChainReceipt(
                tx_hash=hashlib.sha256(encoded.encode("utf-8")).hexdigest(),
                reference=f"sim-{operation}-{commitment_id}",
            )
            logger.debug(f"Simulated chain {operation} for {commitment_id}: {receipt.tx_hash}")
            return receipt

        try:
            contract = get_contract_address(contract_key, self.config)
        except ConfigurationError as e:
            raise BlockchainUnavailableError(str(e), details={"contract": contract_key}) from e

        logger.error(f"Chain write {operation} for {commitment_id} on {contract} rejected: no signer configured")
        raise BlockchainUnavailableError(
            "On-chain submission is not available: no transaction signer is configured.",
            details={"operation": operation, "contract": contract},
        )

    def record_creation(self, commitment_id: str, owner_address: str, amount: float, asset: str) -> ChainReceipt:
        return self._submit(
            "create",
            "commitmentNFT",
            commitment_id,
            {"owner": owner_address, "amount": amount, "asset": asset},
        )

    def settle(self, commitment_id: str, caller_address: str, amount: float) -> ChainReceipt:
        return self._submit("settle", "commitmentCore", commitment_id, {"caller": caller_address, "amount": amount})

    def early_exit(self, commitment_id: str, caller_address: str, amount: float, penalty: float) -> ChainReceipt:
        return self._submit(
            "early-exit",
            "commitmentCore",
            commitment_id,
            {"caller": caller_address, "amount": amount, "penalty": penalty},
        )


_gateway: Optional[SorobanGateway] = None


def get_chain_gateway() -> SorobanGateway:
    global _gateway
    if _gateway is None:
        _gateway = SorobanGateway()
    return _gateway
