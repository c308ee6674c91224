"""Async SQL repositories."""

from .attestations import AttestationRepository
from .bundle import SqlRepoBundle, build_sql_repos
from .commitments import CommitmentRepository
from .listings import ListingRepository

__all__ = [
    "AttestationRepository",
    "CommitmentRepository",
    "ListingRepository",
    "SqlRepoBundle",
    "build_sql_repos",
]
