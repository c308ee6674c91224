"""
Versioned Contract Registry.

Contract deployments are grouped by version. ``CONTRACTS_JSON`` carries the full
registry, for example::

    {"v1": {"commitmentCore": {"address": "C...", "network": "testnet"}}}

Without it, the legacy per-contract environment variables form version ``v1``.
"""

import json
from typing import Dict, Optional

from pydantic import BaseModel

from commitlabs.server.errors import ConfigurationError

from .config import Settings, settings


class ContractEntry(BaseModel):
    address: str = ""
    network: Optional[str] = None
    abi: Optional[str] = None


ContractsConfig = Dict[str, Dict[str, ContractEntry]]

_LEGACY_CONTRACTS = (
    ("commitmentNFT", "commitment_nft_contract"),
    ("commitmentCore", "commitment_core_contract"),
    ("attestationEngine", "attestation_engine_contract"),
)


def load_contracts_config(config: Settings = settings) -> ContractsConfig:
    """
    Load the contract registry from configuration.

    Raises:
        ConfigurationError: ``CONTRACTS_JSON`` is set but is not a JSON object of versions.
    """
    if config.contracts_json:
        try:
            raw = json.loads(config.contracts_json)
            if not isinstance(raw, dict):
                raise ValueError("expected a JSON object mapping versions to contracts")
            return {
                str(version): {str(key): ContractEntry.model_validate(entry) for key, entry in entries.items()}
                for version, entries in raw.items()
            }
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Failed to parse CONTRACTS_JSON: {e}") from e

    legacy = {
        key: ContractEntry(address=getattr(config, attribute))
        for key, attribute in _LEGACY_CONTRACTS
        if getattr(config, attribute)
    }
    if legacy:
        return {"v1": legacy}
    return {}


def get_active_contracts(config: Settings = settings) -> Dict[str, ContractEntry]:
    """
    Return the contract entries of the active version.

    Raises:
        ConfigurationError: The active version is unknown or one of its entries has no address.
    """
    registry = load_contracts_config(config)
    version = config.active_contract_version
    if version not in registry:
        available = ", ".join(sorted(registry)) or "<none>"
        raise ConfigurationError(
            f"Active contract version '{version}' not found in contracts config. Available versions: {available}"
        )

    contracts = registry[version]
    for key, entry in contracts.items():
        if not entry.address:
            raise ConfigurationError(f"Contract '{key}' in version '{version}' has no address configured.")
    return contracts


def get_contract_address(key: str, config: Settings = settings) -> str:
    """
    Resolve the address of one contract of the active version.

    Raises:
        ConfigurationError: The contract is not configured.
    """
    contracts = get_active_contracts(config)
    entry = contracts.get(key)
    if entry is None:
        raise ConfigurationError(
            f"Contract '{key}' is not configured for version '{config.active_contract_version}'."
        )
    return entry.address
