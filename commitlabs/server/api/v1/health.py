"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version) used for
monitoring and deployment verification, and the Soroban RPC health check.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from commitlabs.core.logging_config import get_logger
from commitlabs.server.core import constant
from commitlabs.server.responses import ok
from commitlabs.server.services.deps import ChainGatewayDep, rate_limited

logger = get_logger(__name__)

router = APIRouter()
chain_router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check():
    """
    Health check endpoint.

    Returns a simple status indicator to confirm the server is running and reachable.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "version": constant.API_VERSION,
    }


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    """
    Get API version.

    Returns the current semantic version of the API and supported schema version.
    """
    return {"version": constant.API_VERSION, "schema_version": constant.SCHEMA_VERSION}


@chain_router.get(
    "/chain",
    summary="Chain Health",
    description="Check the configured Soroban RPC endpoint with getHealth.",
    response_description="RPC status, URL and latest ledger.",
    responses={502: {"description": "RPC returned an error"}, 503: {"description": "RPC unreachable"}},
    dependencies=[Depends(rate_limited("health:chain"))],
)
async def chain_health(gateway: ChainGatewayDep):
    chain = await gateway.health()
    logger.debug(f"Soroban RPC health: {chain.status} (ledger {chain.ledger})")
    return ok(chain)
