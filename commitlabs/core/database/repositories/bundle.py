"""
Repository bundle for dependency injection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from ..base import utc_now
from .attestations import AttestationRepository
from .commitments import CommitmentRepository
from .listings import ListingRepository


@dataclass(frozen=True)
class SqlRepoBundle:
    """Convenience bundle of all SQL repositories sharing one session factory."""

    session_factory: async_sessionmaker[AsyncSession]
    commitments: CommitmentRepository
    attestations: AttestationRepository
    listings: ListingRepository

    async def save_all(self, *rows: SQLModel) -> List[SQLModel]:
        """
        Persist new or modified rows of any entity in a single transaction.

        Rows carrying an ``updated_at`` column get it refreshed.
        """
        now = utc_now()
        async with self.session_factory() as s:
            merged = []
            for row in rows:
                if hasattr(row, "updated_at"):
                    row.updated_at = now  # type: ignore[attr-defined]
                merged.append(await s.merge(row))
            await s.commit()
            return merged


def build_sql_repos(session_factory: async_sessionmaker[AsyncSession]) -> SqlRepoBundle:
    """Build all repositories on top of ``session_factory``."""
    return SqlRepoBundle(
        session_factory=session_factory,
        commitments=CommitmentRepository(session_factory),
        attestations=AttestationRepository(session_factory),
        listings=ListingRepository(session_factory),
    )
