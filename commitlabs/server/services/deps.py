"""
Service Dependencies.

Provides the singleton service container, auth stores, rate limiter and chain
gateway for API endpoints, plus the bearer-session and rate-limit dependencies.
Tests replace ``get_services`` (and friends) through ``app.dependency_overrides``.
"""

import asyncio
from dataclasses import dataclass
from typing import Annotated, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from commitlabs.core.database import SqlRepoBundle, build_sql_repos
from commitlabs.server.core.config import Settings, settings
from commitlabs.server.core.database import async_session_maker
from commitlabs.server.errors import ForbiddenError, UnauthorizedError

from .attestations import AttestationService
from .auth import NonceStore, SessionStore, get_nonce_store, get_session_store, verify_session_token
from .chain import SorobanGateway, get_chain_gateway
from .commitments import CommitmentService
from .marketplace import MarketplaceService
from .rate_limit import RateLimiter, client_key, get_rate_limiter


@dataclass(frozen=True)
class Services:
    repos: SqlRepoBundle
    commitments: CommitmentService
    attestations: AttestationService
    marketplace: MarketplaceService


def build_services(repos: SqlRepoBundle, chain: SorobanGateway, config: Settings = settings) -> Services:
    """Build the domain services around one shared write lock."""
    write_lock = asyncio.Lock()
    return Services(
        repos=repos,
        commitments=CommitmentService(repos, chain, config=config, write_lock=write_lock),
        attestations=AttestationService(repos, write_lock=write_lock),
        marketplace=MarketplaceService(repos, write_lock=write_lock),
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services(build_sql_repos(session_factory=async_session_maker), get_chain_gateway())
    return _services


def get_commitment_service(services: Annotated[Services, Depends(get_services)]) -> CommitmentService:
    return services.commitments


def get_attestation_service(services: Annotated[Services, Depends(get_services)]) -> AttestationService:
    return services.attestations


def get_marketplace_service(services: Annotated[Services, Depends(get_services)]) -> MarketplaceService:
    return services.marketplace


def get_settings() -> Settings:
    return settings


CommitmentServiceDep = Annotated[CommitmentService, Depends(get_commitment_service)]
AttestationServiceDep = Annotated[AttestationService, Depends(get_attestation_service)]
MarketplaceServiceDep = Annotated[MarketplaceService, Depends(get_marketplace_service)]
ChainGatewayDep = Annotated[SorobanGateway, Depends(get_chain_gateway)]
NonceStoreDep = Annotated[NonceStore, Depends(get_nonce_store)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

# =====================================================================
# Session and rate-limit dependencies
# =====================================================================

bearer_scheme = HTTPBearer(auto_error=False)


def bearer_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> Optional[str]:
    return credentials.credentials if credentials else None


BearerToken = Annotated[Optional[str], Depends(bearer_token)]


def get_session_address(token: BearerToken, store: SessionStoreDep, config: SettingsDep) -> Optional[str]:
    """
    Resolve the wallet address of the bearer session, if any.

    Raises:
        UnauthorizedError: the token is present but invalid, or missing while
            sessions are required.
    """
    if token is None:
        if config.auth.require_session:
            raise UnauthorizedError("A valid session token is required.")
        return None
    valid, address = verify_session_token(token, store)
    if not valid:
        raise UnauthorizedError("Invalid or expired session token.")
    return address


SessionAddress = Annotated[Optional[str], Depends(get_session_address)]


def ensure_actor(session_address: Optional[str], acting_address: Optional[str]) -> None:
    """
    Raises:
        ForbiddenError: a session is present and acts for a different wallet.
    """
    if session_address is not None and acting_address is not None and session_address != acting_address:
        raise ForbiddenError("The session wallet does not match the acting address.")


def rate_limited(route: str) -> Callable[..., None]:
    """Build a dependency applying the per-client limit to ``route``."""

    def dependency(request: Request, limiter: RateLimiterDep) -> None:
        limiter.check(client_key(request), route)

    return dependency
