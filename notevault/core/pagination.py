"""
Pagination Utilities.

Fixed-size page slicing for in-memory result lists. Pages are numbered
from 1. An empty result has zero pages and renders as an empty state.
"""

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 6


def total_pages(count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """
    Number of pages needed for `count` items.

    Args:
        count: Number of items in the result
        page_size: Items per page

    Returns:
        ceil(count / page_size), 0 when count is 0

    Raises:
        ValueError: If page_size is not positive
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return math.ceil(count / page_size)


def is_valid_page(page: int, count: int, page_size: int = DEFAULT_PAGE_SIZE) -> bool:
    """Check whether `page` is inside [1, total_pages]."""
    return 1 <= page <= total_pages(count, page_size)


def paginate(items: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> list[T]:
    """
    Return the items on one page.

    Args:
        items: Full ordered result
        page: 1-based page number
        page_size: Items per page

    Returns:
        At most page_size items; empty for pages outside the result
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    if page < 1:
        return []
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """
    One rendered page of a filtered result.

    Contains the items and the pagination metadata a view needs.
    """

    items: list[T]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1
