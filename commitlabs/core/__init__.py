"""
Core building blocks shared by the CommitLabs server.

Subpackages:
    database: SQLModel entities, async repositories and engine helpers.
    models: Domain enums and API I/O schemas.
"""
