"""
Base repository utilities.

Repositories hold an ``async_sessionmaker`` and open one ``AsyncSession`` per
method call, committing before they return. Rows handed back are detached
(the session factory does not expire on commit), so callers may read and mutate
them freely and persist changes with ``save``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

from sqlmodel import SQLModel

EntityType = TypeVar("EntityType", bound=SQLModel)


class QueryBuilder:
    """Utility class for building SQLModel-based database queries."""

    @staticmethod
    def apply_filters(stmt, model: Type[EntityType], filters: Optional[Dict[str, Any]]):
        """Apply equality filters to a select statement.

        ``None`` values and keys that are not columns of ``model`` are ignored.

        Args:
            stmt: SQLModel select statement
            model: SQLModel entity class
            filters: Dictionary of field filters

        Returns:
            Modified select statement with filters applied
        """
        for key, value in (filters or {}).items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == value)
        return stmt
