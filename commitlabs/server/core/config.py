"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from commitlabs.core.models.domain import Environment
from commitlabs.server.errors import ConfigurationError

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class ContractAddresses(BaseModel):
    """Addresses of the deployed Soroban smart contracts."""

    commitment_nft: str = Field(
        default="", alias="COMMITMENT_NFT_CONTRACT", description="Address of the Commitment NFT contract"
    )
    commitment_core: str = Field(
        default="", alias="COMMITMENT_CORE_CONTRACT", description="Address of the Core Logic contract"
    )
    attestation_engine: str = Field(
        default="", alias="ATTESTATION_ENGINE_CONTRACT", description="Address of the Attestation Engine contract"
    )

    model_config = {"populate_by_name": True}


class SorobanConfig(BaseModel):
    """Soroban RPC configuration."""

    rpc_url: str = Field(
        default="https://soroban-testnet.stellar.org:443",
        alias="SOROBAN_RPC_URL",
        description="URL of the Soroban RPC endpoint",
    )
    network_passphrase: str = Field(
        default="Test SDF Network ; September 2015",
        alias="SOROBAN_NETWORK_PASSPHRASE",
        description="Stellar network passphrase",
    )
    chain_writes_enabled: bool = Field(
        default=False,
        alias="COMMITLABS_ENABLE_CHAIN_WRITES",
        description="Whether on-chain write operations are enabled",
    )
    rpc_timeout_seconds: float = Field(
        default=10.0, alias="SOROBAN_RPC_TIMEOUT_SECONDS", description="Timeout for Soroban RPC calls"
    )

    model_config = {"populate_by_name": True}


class AuthConfig(BaseModel):
    """Wallet authentication configuration."""

    nonce_ttl_seconds: int = Field(
        default=300, alias="AUTH_NONCE_TTL_SECONDS", description="Lifetime of a sign-in challenge nonce"
    )
    sweep_interval_seconds: int = Field(
        default=300, alias="AUTH_SWEEP_INTERVAL_SECONDS", description="Interval of the expired-entry sweeper"
    )
    session_ttl_seconds: int = Field(
        default=86400, alias="AUTH_SESSION_TTL_SECONDS", description="Lifetime of a session token"
    )
    require_session: bool = Field(
        default=False,
        alias="AUTH_REQUIRE_SESSION",
        description="Require a bearer session token on state-changing endpoints",
    )

    model_config = {"populate_by_name": True}


class RateLimitConfig(BaseModel):
    """Fixed-window rate limiter configuration."""

    enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED", description="Enable per-client rate limiting")
    requests: int = Field(default=60, alias="RATE_LIMIT_REQUESTS", description="Requests allowed per window")
    window_seconds: int = Field(default=60, alias="RATE_LIMIT_WINDOW_SECONDS", description="Window length")

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="Server host address to bind to",
        alias="COMMITLABS_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="Server port number",
        alias="COMMITLABS_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="COMMITLABS_LOG_LEVEL",
    )
    environment: Environment = Field(
        default=Environment.development,
        description="Deployment environment (development, preview, production, test)",
        alias="COMMITLABS_ENV",
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///:memory:",
        description="Async database URL. The default keeps all data in process memory.",
        alias="DATABASE_URL",
    )
    seed_mock_data: bool = Field(
        default=True,
        description="Seed the demo commitments and marketplace listings on startup",
        alias="COMMITLABS_SEED_MOCK_DATA",
    )

    # =====================================================================
    # Soroban / Contracts Configuration
    # =====================================================================
    soroban_rpc_url: str = Field(default="https://soroban-testnet.stellar.org:443", alias="SOROBAN_RPC_URL")
    network_passphrase: str = Field(default="Test SDF Network ; September 2015", alias="SOROBAN_NETWORK_PASSPHRASE")
    soroban_rpc_timeout_seconds: float = Field(default=10.0, alias="SOROBAN_RPC_TIMEOUT_SECONDS")
    commitment_nft_contract: str = Field(default="", alias="COMMITMENT_NFT_CONTRACT")
    commitment_core_contract: str = Field(default="", alias="COMMITMENT_CORE_CONTRACT")
    attestation_engine_contract: str = Field(default="", alias="ATTESTATION_ENGINE_CONTRACT")
    contracts_json: Optional[str] = Field(
        default=None,
        alias="CONTRACTS_JSON",
        description="JSON object mapping contract versions to {key: {address, network, abi}} entries",
    )
    active_contract_version: str = Field(default="v1", alias="ACTIVE_CONTRACT_VERSION")
    chain_writes_enabled: bool = Field(default=False, alias="COMMITLABS_ENABLE_CHAIN_WRITES")

    # =====================================================================
    # Auth Configuration
    # =====================================================================
    nonce_ttl_seconds: int = Field(default=300, alias="AUTH_NONCE_TTL_SECONDS")
    sweep_interval_seconds: int = Field(default=300, alias="AUTH_SWEEP_INTERVAL_SECONDS")
    session_ttl_seconds: int = Field(default=86400, alias="AUTH_SESSION_TTL_SECONDS")
    require_session_auth: bool = Field(default=False, alias="AUTH_REQUIRE_SESSION")

    # =====================================================================
    # Rate Limit Configuration
    # =====================================================================
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_requests: int = Field(default=60, alias="RATE_LIMIT_REQUESTS")
    rate_limit_window_seconds: int = Field(default=60, alias="RATE_LIMIT_WINDOW_SECONDS")

    # =====================================================================
    # Business Rules
    # =====================================================================
    early_exit_penalty_percent: float = Field(
        default=3.0,
        ge=0,
        le=100,
        description="Penalty applied to the current value when a commitment exits early",
        alias="EARLY_EXIT_PENALTY_PERCENT",
    )

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def contracts(self) -> ContractAddresses:
        """Get contract addresses from environment variables."""
        return ContractAddresses.model_validate(self.model_dump(by_alias=True))

    @property
    def soroban(self) -> SorobanConfig:
        """Get Soroban RPC configuration from environment variables."""
        return SorobanConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def auth(self) -> AuthConfig:
        """Get wallet authentication configuration from environment variables."""
        return AuthConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def rate_limit(self) -> RateLimitConfig:
        """Get rate limit configuration from environment variables."""
        return RateLimitConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.production


settings = Settings()


_REQUIRED_CONTRACTS = (
    ("commitmentNFT", "commitment_nft", "COMMITMENT_NFT_CONTRACT"),
    ("commitmentCore", "commitment_core", "COMMITMENT_CORE_CONTRACT"),
    ("attestationEngine", "attestation_engine", "ATTESTATION_ENGINE_CONTRACT"),
)


def validate_backend_config(config: Settings = settings) -> None:
    """
    Validate backend configuration at startup.

    In production every contract address must be configured. Other environments
    tolerate missing addresses so the API can run against simulated chain writes.

    Raises:
        ConfigurationError: A required contract address is missing in production.
    """
    if not config.is_production:
        return

    contracts = config.contracts
    for label, attribute, env_var in _REQUIRED_CONTRACTS:
        if not getattr(contracts, attribute).strip():
            raise ConfigurationError(
                f"Missing required contract address '{label}'. Set the {env_var} environment variable."
            )
