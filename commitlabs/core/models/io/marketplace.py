"""
Marketplace I/O models for API requests and responses.

A listing offers an active commitment for sale. Browsing returns a view that
joins each listing with the commitment figures buyers filter and sort on, plus a
pre-formatted card for display.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from commitlabs.core.models.domain import CommitmentType, ListingStatus

from .common import ApiModel, StellarAddress, UtcDatetime


class ListingCreate(ApiModel):
    """Schema for listing a commitment on the marketplace."""

    commitment_id: str = Field(min_length=1, examples=["CMT-001"])
    price: float = Field(
        gt=0, allow_inf_nan=False, description="Asking price in currency asset units", examples=[52000]
    )
    currency_asset: str = Field(min_length=1, max_length=12, examples=["USDC"])
    seller_address: StellarAddress = Field(description="Seller wallet. Must own the commitment.")


class ListingCancel(ApiModel):
    seller_address: StellarAddress


class ListingPurchase(ApiModel):
    buyer_address: StellarAddress


class MarketplaceListingView(ApiModel):
    """A listing joined with the figures of its commitment."""

    listing_id: str
    commitment_id: str
    type: CommitmentType
    amount: float
    remaining_days: int
    max_loss: float
    current_yield: float
    compliance_score: int
    price: float
    currency_asset: str
    seller_address: str
    buyer_address: Optional[str] = None
    status: ListingStatus
    created_at: UtcDatetime
    updated_at: UtcDatetime


class MarketplaceCard(ApiModel):
    """Display-ready listing summary."""

    id: str
    type: CommitmentType
    score: int
    amount: str
    duration: str
    yield_: str = Field(alias="yield")
    max_loss: str
    price: str


class MarketplaceListingsPayload(ApiModel):
    listings: List[MarketplaceListingView]
    cards: List[MarketplaceCard]
    total: int
