"""
Database Connection and Session Management.

This module sets up the asynchronous SQLAlchemy engine and session factory.
The services open one session per repository call through ``async_session_maker``.
"""

from commitlabs.core.database import create_all, create_engine, create_sessionmaker
from commitlabs.server.core.config import settings

"""
engine:
    The global SQLAlchemy AsyncEngine instance.
    The default URL is an in-memory SQLite database shared through a static pool.
"""
engine = create_engine(settings.database_url)

"""
async_session_maker:
    A global factory for creating new AsyncSession instances.
    Bound to the `engine` and configured to NOT expire on commit (typical for async).
"""
async_session_maker = create_sessionmaker(engine)


async def init_db():
    """
    Initialize the database.

    Creates all CommitLabs tables if they don't exist.
    """
    await create_all(engine)
