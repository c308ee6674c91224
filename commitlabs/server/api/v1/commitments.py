"""
Commitments API Endpoints.

This module provides the interface for creating, listing and inspecting
liquidity commitments and for closing them, either at maturity (settle) or
before it (early exit, with a penalty).
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.domain import CommitmentStatus, CommitmentType
from commitlabs.core.models.io import CommitmentCreate, EarlyExitRequest, SettleRequest
from commitlabs.server.responses import ok
from commitlabs.server.services.deps import (
    CommitmentServiceDep,
    SessionAddress,
    ensure_actor,
    rate_limited,
)
from commitlabs.server.services.pagination import PaginationParams, pagination_params
from commitlabs.server.services.rate_limit import client_key

logger = get_logger(__name__)
router = APIRouter()

Pagination = Annotated[PaginationParams, Depends(pagination_params)]


@router.get(
    "",
    summary="List Commitments",
    description="List commitments with filtering, sorting and pagination.",
    response_description="Page of commitments with pagination meta.",
    dependencies=[Depends(rate_limited("commitments:list"))],
)
async def list_commitments(
    service: CommitmentServiceDep,
    pagination: Pagination,
    status: Optional[CommitmentStatus] = Query(default=None),
    type: Optional[CommitmentType] = Query(default=None),
    asset: Optional[str] = Query(default=None),
    owner_address: Optional[str] = Query(default=None, alias="ownerAddress"),
):
    """
    List commitments.

    - **sortBy**: createdAt (default), amount, complianceScore, expiresAt
    - **sortOrder**: asc or desc (defaults to the field's natural order)
    """
    page = await service.list_commitments(
        pagination,
        status=status,
        type=type,
        asset=asset.upper() if asset else None,
        owner_address=owner_address,
    )
    return ok(page.items, meta=page.meta())


@router.post(
    "",
    status_code=201,
    summary="Create Commitment",
    description="Create a new active commitment for the owner wallet.",
    response_description="The created commitment.",
    dependencies=[Depends(rate_limited("commitments:create"))],
)
async def create_commitment(body: CommitmentCreate, service: CommitmentServiceDep, session_address: SessionAddress):
    """
    Create a commitment.

    - **type**: Safe, Balanced or Aggressive
    - **maxLossPercent**: optional, defaults to the profile limit (2, 8, 100)
    """
    ensure_actor(session_address, body.owner_address)
    logger.info(f"Creating {body.type.value} commitment of {body.amount} {body.asset} for {body.owner_address}")
    commitment = await service.create_commitment(body)
    return ok(commitment, status_code=201)


@router.get(
    "/stats",
    summary="Commitment Statistics",
    description="Aggregate active commitments, optionally for one owner wallet.",
    response_description="Commitment statistics.",
    dependencies=[Depends(rate_limited("commitments:stats"))],
)
async def commitment_stats(
    service: CommitmentServiceDep,
    owner_address: Optional[str] = Query(default=None, alias="ownerAddress"),
):
    return ok(await service.get_stats(owner_address))


@router.get(
    "/{commitment_id}",
    summary="Get Commitment",
    description="Retrieve one commitment by ID.",
    response_description="The commitment.",
    responses={404: {"description": "Commitment not found"}},
    dependencies=[Depends(rate_limited("commitments:get"))],
)
async def get_commitment(commitment_id: str, service: CommitmentServiceDep):
    return ok(await service.get_commitment(commitment_id))


@router.post(
    "/{commitment_id}/settle",
    summary="Settle Commitment",
    description="Settle a matured active commitment for its current value.",
    response_description="Settlement result.",
    responses={
        403: {"description": "Caller is not the owner"},
        404: {"description": "Commitment not found"},
        409: {"description": "Not active, not matured, or listed on the marketplace"},
    },
    dependencies=[Depends(rate_limited("commitments:settle"))],
)
async def settle_commitment(
    commitment_id: str,
    request: Request,
    service: CommitmentServiceDep,
    session_address: SessionAddress,
    body: Optional[SettleRequest] = Body(default=None),
):
    caller = body.caller_address if body and body.caller_address else session_address
    ensure_actor(session_address, caller)
    result = await service.settle(commitment_id, caller_address=caller, ip=client_key(request))
    return ok(result)


@router.post(
    "/{commitment_id}/early-exit",
    summary="Early Exit",
    description="Exit an active commitment before maturity. The configured penalty is deducted.",
    response_description="Early exit result.",
    responses={
        403: {"description": "Caller is not the owner"},
        404: {"description": "Commitment not found"},
        409: {"description": "Not active or listed on the marketplace"},
    },
    dependencies=[Depends(rate_limited("commitments:early-exit"))],
)
async def early_exit_commitment(
    commitment_id: str,
    body: EarlyExitRequest,
    service: CommitmentServiceDep,
    session_address: SessionAddress,
):
    ensure_actor(session_address, body.caller_address)
    return ok(await service.early_exit(commitment_id, body.caller_address))
