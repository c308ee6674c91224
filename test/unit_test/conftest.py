"""Shared fixtures for unit tests.

Each test gets its own in-memory SQLite engine (static pool, so every session
shares the one connection holding the data) and a repository bundle on top of it.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from commitlabs.core.database import (
    SqlRepoBundle,
    build_sql_repos,
    create_all,
    create_engine,
    create_sessionmaker,
)
from commitlabs.server.services.seed import seed_mock_data

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine(TEST_DATABASE_URL)
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(engine)


@pytest.fixture
def repos(session_factory: async_sessionmaker[AsyncSession]) -> SqlRepoBundle:
    return build_sql_repos(session_factory=session_factory)


@pytest.fixture
async def seeded(repos: SqlRepoBundle) -> SqlRepoBundle:
    """Repositories pre-loaded with the demo data set."""
    await seed_mock_data(repos)
    return repos
