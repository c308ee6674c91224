"""
Pagination, Sorting and Filtering.

One query utility shared by the commitments, attestations and marketplace list
endpoints, so every list behaves the same way:

- ``page`` (>= 1, default 1) and ``pageSize`` (1..100, default 20)
- ``sortBy`` validated against the endpoint's sort fields
- ``sortOrder`` ``asc`` | ``desc``, defaulting to the sort field's own order

Filtering happens before sorting, sorting before slicing. Sorting is stable and
always puts missing (``None``) values last.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from fastapi import Query

from commitlabs.core.models.domain import SortOrder
from commitlabs.server.errors import ValidationError

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PaginationParams:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: Optional[str] = None
    sort_order: Optional[SortOrder] = None


def pagination_params(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    page_size: int = Query(
        default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize", description="Items per page"
    ),
    sort_by: Optional[str] = Query(default=None, alias="sortBy", description="Field to sort by"),
    sort_order: Optional[SortOrder] = Query(default=None, alias="sortOrder", description="asc or desc"),
) -> PaginationParams:
    """FastAPI dependency collecting the shared list query parameters."""
    return PaginationParams(page=page, page_size=page_size, sort_by=sort_by, sort_order=sort_order)


@dataclass(frozen=True)
class SortField:
    """
    A sortable field of a list endpoint.

    ``attribute`` is either an attribute name read from each item or a callable
    returning the sort key.
    """

    attribute: Union[str, Callable[[Any], Any]]
    default_order: SortOrder = SortOrder.desc

    def key_of(self, item: Any) -> Any:
        if callable(self.attribute):
            return self.attribute(item)
        return getattr(item, self.attribute, None)


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        self.total_pages = math.ceil(self.total / self.page_size) if self.total else 0

    def meta(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def resolve_sort(
    params: PaginationParams,
    fields: Mapping[str, SortField],
    default: str,
) -> Tuple[SortField, SortOrder]:
    """
    Resolve the requested sort field and order.

    Raises:
        ValidationError: ``sortBy`` names a field the endpoint does not support.
    """
    name = params.sort_by or default
    if name not in fields:
        allowed = ", ".join(fields)
        raise ValidationError(f"Invalid 'sortBy' query param. Allowed values: {allowed}.")
    sort_field = fields[name]
    return sort_field, params.sort_order or sort_field.default_order


def sort_items(items: Sequence[T], sort_field: SortField, sort_order: SortOrder) -> List[T]:
    """Stable sort with ``None`` keys last for both orders."""
    present = [item for item in items if sort_field.key_of(item) is not None]
    missing = [item for item in items if sort_field.key_of(item) is None]
    present.sort(key=sort_field.key_of, reverse=sort_order == SortOrder.desc)
    return present + missing


def apply_query(
    items: Iterable[T],
    *,
    filters: Sequence[Callable[[T], bool]] = (),
    sort_field: SortField,
    sort_order: SortOrder,
    page: int,
    page_size: int,
) -> Page[T]:
    """
    Filter, sort and slice ``items``.

    A page past the end comes back empty but still reports ``total``.
    """
    kept = [item for item in items if all(predicate(item) for predicate in filters)]
    ordered = sort_items(kept, sort_field, sort_order)
    start = (page - 1) * page_size
    return Page(items=ordered[start : start + page_size], page=page, page_size=page_size, total=len(ordered))


def ensure_range(
    minimum: Optional[float],
    maximum: Optional[float],
    min_name: str,
    max_name: str,
    label: str = "range",
) -> None:
    """
    Raises:
        ValidationError: both bounds are given and ``minimum > maximum``.
    """
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ValidationError(f"Invalid {label} filter. '{min_name}' cannot be greater than '{max_name}'.")
