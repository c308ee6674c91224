"""
Marketplace listing entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from commitlabs.core.models.domain import ListingStatus

from ..base import Base, utc_now


class ListingBase(Base):
    """Base fields for marketplace listing entity."""

    commitment_id: str = Field(foreign_key="cl_commitments.id", index=True, max_length=32)
    price: float = Field(description="Asking price")
    currency_asset: str = Field(max_length=12)
    seller_address: str = Field(max_length=56, index=True)
    buyer_address: Optional[str] = Field(default=None, max_length=56)
    status: ListingStatus = Field(default=ListingStatus.active, index=True)


class Listing(ListingBase, table=True):
    """Entity for a marketplace listing.

    At most one listing per commitment may be active at a time.

    Table: cl_marketplace_listings
    """

    __tablename__ = "cl_marketplace_listings"

    id: str = Field(primary_key=True, max_length=32)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Listing(id={self.id}, commitment_id={self.commitment_id}, status={self.status})"
