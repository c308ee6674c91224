"""
Marketplace Service.

A listing registry for active commitments. Invariants:

- a commitment has at most one Active listing;
- only the commitment owner may list it, only the seller may cancel;
- a purchase transfers the commitment to the buyer and closes the listing.

Browsing joins each listing with its commitment so buyers can filter and sort on
commitment figures, and returns display-ready cards next to the raw views.
"""

from __future__ import annotations

import asyncio
import math
import secrets
from datetime import datetime
from typing import Callable, Dict, List, Optional

from commitlabs.core.database import SqlRepoBundle, utc_now
from commitlabs.core.database.entities import Commitment, Listing
from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.domain import CommitmentType, ListingStatus, SortOrder
from commitlabs.core.models.io import (
    ListingCreate,
    MarketplaceCard,
    MarketplaceListingView,
)
from commitlabs.core.monitoring import log_listing_event
from commitlabs.server.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

from .pagination import Page, PaginationParams, SortField, apply_query, ensure_range, resolve_sort

logger = get_logger(__name__)

LISTING_SORT_FIELDS: Dict[str, SortField] = {
    "price": SortField("price", SortOrder.desc),
    "amount": SortField("amount", SortOrder.desc),
    "complianceScore": SortField("compliance_score", SortOrder.desc),
    "remainingDays": SortField("remaining_days", SortOrder.asc),
    "maxLoss": SortField("max_loss", SortOrder.asc),
    "currentYield": SortField("current_yield", SortOrder.desc),
}
DEFAULT_LISTING_SORT = "price"


def new_listing_id() -> str:
    return f"LST-{secrets.token_hex(4).upper()}"


def parse_commitment_type(value: Optional[str]) -> Optional[CommitmentType]:
    """
    Case-insensitive commitment type parsing for query strings.

    Raises:
        ValidationError: ``value`` is not safe, balanced or aggressive.
    """
    if value is None or not value.strip():
        return None
    normalized = value.strip().lower()
    for member in CommitmentType:
        if member.value.lower() == normalized:
            return member
    allowed = ", ".join(member.value.lower() for member in CommitmentType)
    raise ValidationError(f"Invalid 'type' query param. Allowed values: {allowed}.")


def parse_number(value: Optional[str], key: str) -> Optional[float]:
    """
    Raises:
        ValidationError: ``value`` is not a finite number.
    """
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        raise ValidationError(f"Invalid '{key}' query param. Expected a number.") from None
    if not math.isfinite(number):
        raise ValidationError(f"Invalid '{key}' query param. Expected a number.")
    return number


def remaining_days(commitment: Commitment, now: datetime) -> int:
    return max(math.ceil((commitment.expires_at - now).total_seconds() / 86400), 0)


def build_listing_view(listing: Listing, commitment: Commitment, now: datetime) -> MarketplaceListingView:
    return MarketplaceListingView(
        listing_id=listing.id,
        commitment_id=commitment.id,
        type=commitment.type,
        amount=commitment.amount,
        remaining_days=remaining_days(commitment, now),
        max_loss=commitment.max_loss_percent,
        current_yield=commitment.current_yield,
        compliance_score=commitment.compliance_score,
        price=listing.price,
        currency_asset=listing.currency_asset,
        seller_address=listing.seller_address,
        buyer_address=listing.buyer_address,
        status=listing.status,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
    )


def _money(value: float) -> str:
    return f"${value:,.0f}"


def _percent(value: float) -> str:
    return f"{value:g}%"


def build_card(view: MarketplaceListingView) -> MarketplaceCard:
    return MarketplaceCard(
        id=view.listing_id,
        type=view.type,
        score=view.compliance_score,
        amount=_money(view.amount),
        duration=f"{view.remaining_days} days",
        yield_=_percent(view.current_yield),
        max_loss=_percent(view.max_loss),
        price=_money(view.price),
    )


class MarketplaceService:
    def __init__(
        self,
        repos: SqlRepoBundle,
        write_lock: Optional[asyncio.Lock] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repos = repos
        self.write_lock = write_lock or asyncio.Lock()
        self.clock = clock

    async def _require_listing(self, listing_id: str) -> Listing:
        listing = await self.repos.listings.get(listing_id)
        if listing is None:
            raise NotFoundError("Listing")
        return listing

    async def _require_commitment(self, commitment_id: str) -> Commitment:
        commitment = await self.repos.commitments.get(commitment_id)
        if commitment is None:
            raise NotFoundError("Commitment")
        return commitment

    async def _views(self, listings: List[Listing]) -> List[MarketplaceListingView]:
        commitments = {c.id: c for c in await self.repos.commitments.list()}
        now = self.clock()
        views = []
        for listing in listings:
            commitment = commitments.get(listing.commitment_id)
            if commitment is None:
                logger.warning(f"Listing {listing.id} references missing commitment {listing.commitment_id}")
                continue
            views.append(build_listing_view(listing, commitment, now))
        return views

    async def list_listings(
        self,
        params: PaginationParams,
        type: Optional[CommitmentType] = None,
        min_compliance: Optional[float] = None,
        max_loss: Optional[float] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        status: Optional[ListingStatus] = ListingStatus.active,
    ) -> Page[MarketplaceListingView]:
        """
        Raises:
            ValidationError: invalid amount range or ``sortBy``.
        """
        ensure_range(min_amount, max_amount, "minAmount", "maxAmount", label="amount")
        sort_field, sort_order = resolve_sort(params, LISTING_SORT_FIELDS, DEFAULT_LISTING_SORT)

        filters: List[Callable[[MarketplaceListingView], bool]] = []
        if type is not None:
            filters.append(lambda v: v.type == type)
        if min_compliance is not None:
            filters.append(lambda v: v.compliance_score >= min_compliance)
        if max_loss is not None:
            filters.append(lambda v: v.max_loss <= max_loss)
        if min_amount is not None:
            filters.append(lambda v: v.amount >= min_amount)
        if max_amount is not None:
            filters.append(lambda v: v.amount <= max_amount)

        listings = await self.repos.listings.list({"status": status})
        return apply_query(
            await self._views(listings),
            filters=filters,
            sort_field=sort_field,
            sort_order=sort_order,
            page=params.page,
            page_size=params.page_size,
        )

    async def get_listing(self, listing_id: str) -> MarketplaceListingView:
        listing = await self._require_listing(listing_id)
        commitment = await self._require_commitment(listing.commitment_id)
        return build_listing_view(listing, commitment, self.clock())

    async def create_listing(self, data: ListingCreate) -> MarketplaceListingView:
        """
        Raises:
            NotFoundError: unknown commitment.
            ConflictError: the commitment is not active or already listed.
            ForbiddenError: the seller does not own the commitment.
        """
        async with self.write_lock:
            commitment = await self._require_commitment(data.commitment_id)
            if not commitment.is_active:
                raise ConflictError(
                    f"Only active commitments can be listed (status: {commitment.status.value})."
                )
            if data.seller_address != commitment.owner_address:
                raise ForbiddenError("Only the commitment owner can list this commitment.")
            existing = await self.repos.listings.get_active_for_commitment(commitment.id)
            if existing is not None:
                raise ConflictError(
                    f"Commitment {commitment.id} already has an active listing ({existing.id}).",
                    details={"listingId": existing.id},
                )

            now = self.clock()
            listing = Listing(
                id=new_listing_id(),
                commitment_id=commitment.id,
                price=data.price,
                currency_asset=data.currency_asset.upper(),
                seller_address=data.seller_address,
                status=ListingStatus.active,
                created_at=now,
                updated_at=now,
            )
            (listing,) = await self.repos.save_all(listing)

        log_listing_event("created", listing.id, commitment.id, data.seller_address)
        return build_listing_view(listing, commitment, now)

    async def cancel_listing(self, listing_id: str, seller_address: str) -> MarketplaceListingView:
        """
        Raises:
            NotFoundError: unknown listing.
            ForbiddenError: ``seller_address`` is not the seller.
            ConflictError: the listing is not active.
        """
        async with self.write_lock:
            listing = await self._require_listing(listing_id)
            if seller_address != listing.seller_address:
                raise ForbiddenError("Only the seller can cancel this listing.")
            if listing.status != ListingStatus.active:
                raise ConflictError(f"Listing {listing_id} is not active (status: {listing.status.value}).")
            commitment = await self._require_commitment(listing.commitment_id)

            listing.status = ListingStatus.cancelled
            (listing,) = await self.repos.save_all(listing)

        log_listing_event("cancelled", listing.id, listing.commitment_id, seller_address)
        return build_listing_view(listing, commitment, self.clock())

    async def purchase_listing(self, listing_id: str, buyer_address: str) -> MarketplaceListingView:
        """
        Raises:
            NotFoundError: unknown listing.
            ConflictError: the listing or its commitment is no longer active.
            BadRequestError: the buyer is the seller.
        """
        async with self.write_lock:
            listing = await self._require_listing(listing_id)
            if listing.status != ListingStatus.active:
                raise ConflictError(f"Listing {listing_id} is not active (status: {listing.status.value}).")
            if buyer_address == listing.seller_address:
                raise BadRequestError("Seller cannot purchase their own listing.")
            commitment = await self._require_commitment(listing.commitment_id)
            if not commitment.is_active:
                raise ConflictError(
                    f"Commitment {commitment.id} is no longer active (status: {commitment.status.value})."
                )

            listing.status = ListingStatus.sold
            listing.buyer_address = buyer_address
            commitment.owner_address = buyer_address
            listing, commitment = await self.repos.save_all(listing, commitment)

        log_listing_event("sold", listing.id, commitment.id, buyer_address)
        return build_listing_view(listing, commitment, self.clock())
