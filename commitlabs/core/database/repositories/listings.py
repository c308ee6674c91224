"""
Marketplace listing repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from commitlabs.core.models.domain import ListingStatus

from ..entities.listings import Listing
from .base import QueryBuilder


@dataclass(frozen=True)
class ListingRepository:
    """SQL repository for ``Listing`` rows."""

    session_factory: async_sessionmaker[AsyncSession]

    async def get(self, listing_id: str) -> Optional[Listing]:
        async with self.session_factory() as s:
            return await s.get(Listing, listing_id)

    async def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Listing]:
        """
        List listings matching the equality filters, newest first.

        Args:
            filters: Column filters (status, commitment_id, seller_address).
        """
        stmt = select(Listing).order_by(Listing.created_at.desc())  # type: ignore[attr-defined]
        stmt = QueryBuilder.apply_filters(stmt, Listing, filters)
        async with self.session_factory() as s:
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def get_active_for_commitment(self, commitment_id: str) -> Optional[Listing]:
        stmt = select(Listing).where(
            Listing.commitment_id == commitment_id,
            Listing.status == ListingStatus.active,
        )
        async with self.session_factory() as s:
            result = await s.execute(stmt)
            return result.scalars().first()
