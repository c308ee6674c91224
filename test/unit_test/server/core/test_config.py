"""Unit tests for server configuration settings model.

Tests verify that the Settings model correctly binds environment variables
from the .env.example file, that the grouped configuration models work as
expected, and that startup validation and the contract registry behave.
"""

import json
from pathlib import Path

import pytest

from commitlabs.core.models.domain import Environment
from commitlabs.server.core.config import (
    AuthConfig,
    ContractAddresses,
    CORSConfig,
    RateLimitConfig,
    Settings,
    SorobanConfig,
    validate_backend_config,
)
from commitlabs.server.core.contracts import (
    get_active_contracts,
    get_contract_address,
    load_contracts_config,
)
from commitlabs.server.errors import ConfigurationError

CONTRACT_A = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"
CONTRACT_B = "CBQHNAXSI55GX2GN6D67GK7BHVPSLJUGZQEU7WJ5LKR5PNUCGLIMAO4K"


@pytest.fixture
def env_example_path() -> Path:
    """Get path to .env.example file."""
    return Path(__file__).resolve().parent.parent.parent.parent.parent / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_env_example_binds(self, env_example_vars: dict[str, str], monkeypatch):
        for key, value in env_example_vars.items():
            monkeypatch.setenv(key, value)

        settings = Settings(_env_file=None)

        assert settings.server_host == env_example_vars["COMMITLABS_SERVER_HOST"]
        assert settings.server_port == int(env_example_vars["COMMITLABS_SERVER_PORT"])
        assert settings.environment == Environment(env_example_vars["COMMITLABS_ENV"])
        assert settings.database_url == env_example_vars["DATABASE_URL"]
        assert settings.soroban_rpc_url == env_example_vars["SOROBAN_RPC_URL"]
        assert settings.network_passphrase == env_example_vars["SOROBAN_NETWORK_PASSPHRASE"]
        assert settings.nonce_ttl_seconds == int(env_example_vars["AUTH_NONCE_TTL_SECONDS"])
        assert settings.rate_limit_requests == int(env_example_vars["RATE_LIMIT_REQUESTS"])
        assert settings.early_exit_penalty_percent == float(env_example_vars["EARLY_EXIT_PENALTY_PERCENT"])
        assert settings.cors_origins == ["*"]

    def test_defaults(self, monkeypatch):
        for key in ("COMMITLABS_ENV", "DATABASE_URL", "COMMITLABS_SEED_MOCK_DATA"):
            monkeypatch.delenv(key, raising=False)

        settings = Settings(_env_file=None)

        assert settings.environment == Environment.development
        assert settings.database_url == "sqlite+aiosqlite:///:memory:"
        assert settings.seed_mock_data is True
        assert settings.chain_writes_enabled is False
        assert settings.active_contract_version == "v1"
        assert settings.early_exit_penalty_percent == 3.0
        assert settings.is_production is False

    def test_boolean_binding(self, monkeypatch):
        monkeypatch.setenv("COMMITLABS_ENABLE_CHAIN_WRITES", "true")
        monkeypatch.setenv("AUTH_REQUIRE_SESSION", "1")
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.soroban.chain_writes_enabled is True
        assert settings.auth.require_session is True
        assert settings.rate_limit.enabled is False

    def test_invalid_penalty_rejected(self, monkeypatch):
        monkeypatch.setenv("EARLY_EXIT_PENALTY_PERCENT", "150")

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_production_flag(self):
        settings = Settings(_env_file=None, COMMITLABS_ENV="production")

        assert settings.is_production is True


class TestGroupedConfigs:
    """Test the grouped configuration properties."""

    def test_contracts(self):
        settings = Settings(_env_file=None, COMMITMENT_NFT_CONTRACT=CONTRACT_A)

        assert isinstance(settings.contracts, ContractAddresses)
        assert settings.contracts.commitment_nft == CONTRACT_A
        assert settings.contracts.commitment_core == ""

    def test_soroban(self):
        settings = Settings(_env_file=None, SOROBAN_RPC_URL="http://mock-soroban", SOROBAN_RPC_TIMEOUT_SECONDS=2.5)

        assert isinstance(settings.soroban, SorobanConfig)
        assert settings.soroban.rpc_url == "http://mock-soroban"
        assert settings.soroban.rpc_timeout_seconds == 2.5

    def test_auth(self):
        settings = Settings(_env_file=None, AUTH_NONCE_TTL_SECONDS=60, AUTH_SESSION_TTL_SECONDS=120)

        assert isinstance(settings.auth, AuthConfig)
        assert settings.auth.nonce_ttl_seconds == 60
        assert settings.auth.session_ttl_seconds == 120

    def test_rate_limit(self):
        settings = Settings(_env_file=None, RATE_LIMIT_REQUESTS=5, RATE_LIMIT_WINDOW_SECONDS=10)

        assert isinstance(settings.rate_limit, RateLimitConfig)
        assert settings.rate_limit.requests == 5
        assert settings.rate_limit.window_seconds == 10

    def test_cors(self):
        settings = Settings(_env_file=None, CORS_ORIGINS=["https://app.commitlabs.io"])

        assert isinstance(settings.cors, CORSConfig)
        assert settings.cors.origins == ["https://app.commitlabs.io"]
        assert settings.cors.allow_credentials is True


class TestValidateBackendConfig:
    """Test startup configuration validation."""

    def test_non_production_tolerates_missing_contracts(self):
        validate_backend_config(Settings(_env_file=None, COMMITLABS_ENV="development"))

    def test_production_requires_contracts(self):
        settings = Settings(
            _env_file=None,
            COMMITLABS_ENV="production",
            COMMITMENT_NFT_CONTRACT=CONTRACT_A,
        )

        with pytest.raises(ConfigurationError) as exc_info:
            validate_backend_config(settings)

        assert str(exc_info.value) == (
            "Missing required contract address 'commitmentCore'. "
            "Set the COMMITMENT_CORE_CONTRACT environment variable."
        )

    def test_production_blank_address_is_missing(self):
        settings = Settings(
            _env_file=None,
            COMMITLABS_ENV="production",
            COMMITMENT_NFT_CONTRACT="   ",
        )

        with pytest.raises(ConfigurationError, match="commitmentNFT"):
            validate_backend_config(settings)

    def test_production_with_all_contracts(self):
        settings = Settings(
            _env_file=None,
            COMMITLABS_ENV="production",
            COMMITMENT_NFT_CONTRACT=CONTRACT_A,
            COMMITMENT_CORE_CONTRACT=CONTRACT_B,
            ATTESTATION_ENGINE_CONTRACT=CONTRACT_A,
        )

        validate_backend_config(settings)


class TestContractRegistry:
    """Test the versioned contract registry."""

    def test_empty_registry(self):
        assert load_contracts_config(Settings(_env_file=None)) == {}

    def test_legacy_variables_form_v1(self):
        settings = Settings(_env_file=None, COMMITMENT_CORE_CONTRACT=CONTRACT_B)

        registry = load_contracts_config(settings)

        assert list(registry) == ["v1"]
        assert list(registry["v1"]) == ["commitmentCore"]
        assert get_contract_address("commitmentCore", settings) == CONTRACT_B

    def test_contracts_json(self):
        contracts_json = json.dumps(
            {
                "v1": {"commitmentCore": {"address": CONTRACT_A}},
                "v2": {"commitmentCore": {"address": CONTRACT_B, "network": "testnet", "abi": "core-v2"}},
            }
        )
        settings = Settings(
            _env_file=None,
            CONTRACTS_JSON=contracts_json,
            ACTIVE_CONTRACT_VERSION="v2",
            COMMITMENT_CORE_CONTRACT=CONTRACT_A,
        )

        active = get_active_contracts(settings)

        assert active["commitmentCore"].address == CONTRACT_B
        assert active["commitmentCore"].network == "testnet"
        assert active["commitmentCore"].abi == "core-v2"

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"v1": ["x"]}'])
    def test_invalid_contracts_json(self, raw: str):
        settings = Settings(_env_file=None, CONTRACTS_JSON=raw)

        with pytest.raises(ConfigurationError, match="Failed to parse CONTRACTS_JSON"):
            load_contracts_config(settings)

    def test_unknown_active_version(self):
        settings = Settings(
            _env_file=None,
            CONTRACTS_JSON=json.dumps({"v1": {}, "v3": {}}),
            ACTIVE_CONTRACT_VERSION="v2",
        )

        with pytest.raises(ConfigurationError) as exc_info:
            get_active_contracts(settings)

        assert str(exc_info.value) == (
            "Active contract version 'v2' not found in contracts config. Available versions: v1, v3"
        )

    def test_unknown_active_version_without_registry(self):
        with pytest.raises(ConfigurationError, match="Available versions: <none>"):
            get_active_contracts(Settings(_env_file=None))

    def test_entry_without_address(self):
        settings = Settings(_env_file=None, CONTRACTS_JSON=json.dumps({"v1": {"commitmentCore": {"network": "x"}}}))

        with pytest.raises(ConfigurationError, match="has no address configured"):
            get_active_contracts(settings)

    def test_unconfigured_contract(self):
        settings = Settings(_env_file=None, COMMITMENT_CORE_CONTRACT=CONTRACT_B)

        with pytest.raises(ConfigurationError, match="Contract 'commitmentNFT' is not configured"):
            get_contract_address("commitmentNFT", settings)
