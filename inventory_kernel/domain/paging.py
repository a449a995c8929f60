"""
Paging -- normalization of list-view pagination and sorting.

``PagePolicy`` holds the limits (injected from configuration);
``PageRequest.normalize`` clamps raw values into them.  ``Page`` is the
generic result envelope returned by selectors.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps the row offset inside a BIGINT
MAX_PAGE = 10**9


@dataclass(frozen=True)
class PagePolicy:
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT
    default_sort_order: str = "desc"


def _as_int(value: object, fallback: int) -> int:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return fallback


@dataclass(frozen=True)
class PageRequest:
    """Clamped pagination + validated sort."""

    page: int
    limit: int
    sort_by: str
    sort_order: str

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    @classmethod
    def normalize(
        cls,
        page: object = None,
        limit: object = None,
        sort_by: object = None,
        sort_order: object = None,
        *,
        allowed_sort: frozenset[str],
        default_sort: str = "id",
        policy: PagePolicy = PagePolicy(),
    ) -> "PageRequest":
        """
        Clamp ``page`` to [1, MAX_PAGE] and ``limit`` to [1, policy.max_limit].

        Unknown sort fields fall back to ``default_sort``; anything other than
        ``asc`` sorts descending (or the policy default when omitted).
        """
        page_n = min(MAX_PAGE, max(1, _as_int(page, 1)))
        limit_n = min(policy.max_limit, max(1, _as_int(limit, policy.default_limit)))

        field = default_sort
        if isinstance(sort_by, str) and sort_by in allowed_sort:
            field = sort_by

        order = policy.default_sort_order
        if isinstance(sort_order, str) and sort_order:
            order = sort_order.lower()
        if order not in ("asc", "desc"):
            order = "desc"
        return cls(page=page_n, limit=limit_n, sort_by=field, sort_order=order)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus pagination metadata."""

    items: tuple[T, ...]
    current_page: int
    items_per_page: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total_items / self.items_per_page) if self.total_items else 0

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1
