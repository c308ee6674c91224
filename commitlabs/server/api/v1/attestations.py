"""
Attestations API Endpoints.

Attestations are observations about an active commitment (health checks, fee
generation, drawdowns, violations). Recording one updates the commitment.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.domain import AttestationSeverity, AttestationType, AttestationVerdict
from commitlabs.core.models.io import AttestationCreate
from commitlabs.server.responses import ok
from commitlabs.server.services.deps import AttestationServiceDep, SessionAddress, ensure_actor, rate_limited
from commitlabs.server.services.pagination import PaginationParams, pagination_params

logger = get_logger(__name__)
router = APIRouter()

Pagination = Annotated[PaginationParams, Depends(pagination_params)]


@router.get(
    "",
    summary="List Attestations",
    description="List attestations with filtering, sorting and pagination.",
    response_description="Page of attestations with pagination meta.",
    dependencies=[Depends(rate_limited("attestations:list"))],
)
async def list_attestations(
    service: AttestationServiceDep,
    pagination: Pagination,
    commitment_id: Optional[str] = Query(default=None, alias="commitmentId"),
    type: Optional[AttestationType] = Query(default=None),
    verdict: Optional[AttestationVerdict] = Query(default=None),
    severity: Optional[AttestationSeverity] = Query(default=None),
):
    """
    List attestations.

    - **sortBy**: observedAt (default), severity (ok < warning < violation)
    """
    page = await service.list_attestations(
        pagination,
        commitment_id=commitment_id,
        type=type,
        verdict=verdict,
        severity=severity,
    )
    return ok(page.items, meta=page.meta())


@router.post(
    "",
    status_code=201,
    summary="Record Attestation",
    description="Record an attestation against an active commitment and apply its effect.",
    response_description="The recorded attestation.",
    responses={
        404: {"description": "Commitment not found"},
        409: {"description": "Commitment is not active"},
    },
    dependencies=[Depends(rate_limited("attestations:create"))],
)
async def create_attestation(body: AttestationCreate, service: AttestationServiceDep, session_address: SessionAddress):
    """
    Record an attestation.

    - **health_check**: ``details.complianceScore`` (0-100) replaces the score
    - **fee_generation**: ``details.feeAmount`` (> 0) is added to fees and value
    - **drawdown**: ``details.drawdownPercent`` (0-100) re-marks the value
    - **violation**: marks the commitment violated
    """
    ensure_actor(session_address, body.attester_address)
    logger.info(f"Recording {body.type.value} attestation for {body.commitment_id}")
    attestation = await service.create_attestation(body)
    return ok(attestation, status_code=201)
