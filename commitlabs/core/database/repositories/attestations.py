"""
Attestation repository. Attestations are append-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from ..entities.attestations import Attestation
from .base import QueryBuilder


@dataclass(frozen=True)
class AttestationRepository:
    """SQL repository for ``Attestation`` rows."""

    session_factory: async_sessionmaker[AsyncSession]

    async def get(self, attestation_id: str) -> Optional[Attestation]:
        async with self.session_factory() as s:
            return await s.get(Attestation, attestation_id)

    async def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Attestation]:
        """
        List attestations matching the equality filters, most recent observation first.

        Args:
            filters: Column filters (commitment_id, type, verdict, severity).
        """
        stmt = select(Attestation).order_by(Attestation.observed_at.desc())  # type: ignore[attr-defined]
        stmt = QueryBuilder.apply_filters(stmt, Attestation, filters)
        async with self.session_factory() as s:
            result = await s.execute(stmt)
            return list(result.scalars().all())
