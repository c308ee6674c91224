"""
Commitment repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from ..base import utc_now
from ..entities.commitments import Commitment
from .base import QueryBuilder


@dataclass(frozen=True)
class CommitmentRepository:
    """SQL repository for ``Commitment`` rows."""

    session_factory: async_sessionmaker[AsyncSession]

    async def create(self, commitment: Commitment) -> Commitment:
        async with self.session_factory() as s:
            s.add(commitment)
            await s.commit()
            await s.refresh(commitment)
            return commitment

    async def get(self, commitment_id: str) -> Optional[Commitment]:
        async with self.session_factory() as s:
            return await s.get(Commitment, commitment_id)

    async def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Commitment]:
        """
        List commitments matching the equality filters, newest first.

        Args:
            filters: Column filters (status, type, asset, owner_address).
        """
        stmt = select(Commitment).order_by(Commitment.created_at.desc())  # type: ignore[attr-defined]
        stmt = QueryBuilder.apply_filters(stmt, Commitment, filters)
        async with self.session_factory() as s:
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def save(self, commitment: Commitment) -> Commitment:
        commitment.updated_at = utc_now()
        async with self.session_factory() as s:
            merged = await s.merge(commitment)
            await s.commit()
            return merged
