"""
Database layer for CommitLabs.

Structure:
- entities/: SQLModel table models (commitments, attestations, listings)
- repositories/: async data access, one session per operation
- utils.py: engine, session factory and table creation helpers
"""

from .base import Base, utc_now
from .repositories import SqlRepoBundle, build_sql_repos
from .utils import create_all, create_engine, create_sessionmaker

__all__ = [
    "Base",
    "SqlRepoBundle",
    "build_sql_repos",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "utc_now",
]
