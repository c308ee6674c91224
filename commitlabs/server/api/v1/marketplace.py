"""
Marketplace API Endpoints.

Browse, list, cancel and purchase marketplace listings of active commitments.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.domain import ListingStatus
from commitlabs.core.models.io import (
    ListingCancel,
    ListingCreate,
    ListingPurchase,
    MarketplaceListingsPayload,
)
from commitlabs.server.responses import ok
from commitlabs.server.services.deps import (
    MarketplaceServiceDep,
    SessionAddress,
    ensure_actor,
    rate_limited,
)
from commitlabs.server.services.marketplace import build_card, parse_commitment_type, parse_number
from commitlabs.server.services.pagination import PaginationParams, pagination_params

logger = get_logger(__name__)
router = APIRouter()

Pagination = Annotated[PaginationParams, Depends(pagination_params)]


@router.get(
    "",
    summary="Browse Listings",
    description="List marketplace listings with commitment filters, sorting and pagination.",
    response_description="Listings, display cards and total, with pagination meta.",
    dependencies=[Depends(rate_limited("marketplace:list"))],
)
async def list_listings(
    service: MarketplaceServiceDep,
    pagination: Pagination,
    type: Optional[str] = Query(default=None, description="safe, balanced or aggressive"),
    min_compliance: Optional[str] = Query(default=None, alias="minCompliance"),
    max_loss: Optional[str] = Query(default=None, alias="maxLoss"),
    min_amount: Optional[str] = Query(default=None, alias="minAmount"),
    max_amount: Optional[str] = Query(default=None, alias="maxAmount"),
    status: ListingStatus = Query(default=ListingStatus.active),
):
    """
    Browse listings.

    - **sortBy**: price (default), amount, complianceScore, remainingDays, maxLoss, currentYield
    """
    page = await service.list_listings(
        pagination,
        type=parse_commitment_type(type),
        min_compliance=parse_number(min_compliance, "minCompliance"),
        max_loss=parse_number(max_loss, "maxLoss"),
        min_amount=parse_number(min_amount, "minAmount"),
        max_amount=parse_number(max_amount, "maxAmount"),
        status=status,
    )
    payload = MarketplaceListingsPayload(
        listings=page.items,
        cards=[build_card(view) for view in page.items],
        total=page.total,
    )
    return ok(payload, meta=page.meta())


@router.post(
    "",
    status_code=201,
    summary="Create Listing",
    description="List an active commitment owned by the seller.",
    response_description="The created listing.",
    responses={
        403: {"description": "Seller does not own the commitment"},
        404: {"description": "Commitment not found"},
        409: {"description": "Commitment not active or already listed"},
    },
    dependencies=[Depends(rate_limited("marketplace:create"))],
)
async def create_listing(body: ListingCreate, service: MarketplaceServiceDep, session_address: SessionAddress):
    ensure_actor(session_address, body.seller_address)
    listing = await service.create_listing(body)
    return ok(listing, status_code=201)


@router.get(
    "/{listing_id}",
    summary="Get Listing",
    description="Retrieve one listing by ID.",
    response_description="The listing.",
    responses={404: {"description": "Listing not found"}},
    dependencies=[Depends(rate_limited("marketplace:get"))],
)
async def get_listing(listing_id: str, service: MarketplaceServiceDep):
    return ok(await service.get_listing(listing_id))


@router.post(
    "/{listing_id}/cancel",
    summary="Cancel Listing",
    description="Cancel an active listing. Only the seller may cancel.",
    response_description="The cancelled listing.",
    responses={
        403: {"description": "Not the seller"},
        404: {"description": "Listing not found"},
        409: {"description": "Listing not active"},
    },
    dependencies=[Depends(rate_limited("marketplace:cancel"))],
)
async def cancel_listing(
    listing_id: str, body: ListingCancel, service: MarketplaceServiceDep, session_address: SessionAddress
):
    ensure_actor(session_address, body.seller_address)
    return ok(await service.cancel_listing(listing_id, body.seller_address))


@router.post(
    "/{listing_id}/purchase",
    summary="Purchase Listing",
    description="Buy an active listing. The commitment is transferred to the buyer.",
    response_description="The sold listing.",
    responses={
        400: {"description": "Buyer is the seller"},
        404: {"description": "Listing not found"},
        409: {"description": "Listing or commitment no longer active"},
    },
    dependencies=[Depends(rate_limited("marketplace:purchase"))],
)
async def purchase_listing(
    listing_id: str, body: ListingPurchase, service: MarketplaceServiceDep, session_address: SessionAddress
):
    ensure_actor(session_address, body.buyer_address)
    return ok(await service.purchase_listing(listing_id, body.buyer_address))
