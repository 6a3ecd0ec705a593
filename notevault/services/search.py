"""
Catalog Search.

Narrows the note snapshot to what the listing shows for a free-text query and
a category selector, then slices it into pages.

Precedence, first match wins:
    1. non-empty query   → title or subject contains it (case-insensitive);
                           the category is ignored
    2. BOOKMARKED        → notes whose id is bookmarked
    3. COMMUNITY         → community contributions only
    4. ALL               → everything except community contributions
    5. any other value   → that branch, without community contributions
"""

from collections.abc import Iterable

from notevault.core.pagination import (
    DEFAULT_PAGE_SIZE,
    PagedResult,
    is_valid_page,
    paginate,
    total_pages,
)
from notevault.schemas.note import (
    CATEGORY_ALL,
    CATEGORY_BOOKMARKED,
    CATEGORY_COMMUNITY,
    Note,
)
from notevault.services.catalog import CatalogCache


def matches_query(note: Note, query: str) -> bool:
    """Case-insensitive substring test against title and subject."""
    needle = query.casefold()
    return needle in note.title.casefold() or needle in note.subject.casefold()


def filter_notes(
    notes: Iterable[Note],
    query: str,
    category: str,
    bookmarks: frozenset[str] | set[str],
) -> list[Note]:
    """
    Compute the visible notes. Pure: depends only on its arguments.

    Args:
        notes: Full note collection, in display order
        query: Free-text search; blank means no search
        category: ALL, BOOKMARKED, COMMUNITY or a branch name
        bookmarks: Bookmarked note ids of the current user

    Returns:
        Matching notes in input order
    """
    query = query.strip()
    if query:
        return [n for n in notes if matches_query(n, query)]
    if category == CATEGORY_BOOKMARKED:
        return [n for n in notes if n.id in bookmarks]
    if category == CATEGORY_COMMUNITY:
        return [n for n in notes if n.is_contribution]
    if category == CATEGORY_ALL:
        return [n for n in notes if not n.is_contribution]
    return [n for n in notes if n.branch_bucket == category and not n.is_contribution]


class CatalogBrowser:
    """
    Query, category and page selection over a CatalogCache.

    The current page is the only state kept between calls; the visible
    items are recomputed from the cache on every read.
    """

    def __init__(self, cache: CatalogCache, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._cache = cache
        self.page_size = page_size
        self.query = ""
        self.category = CATEGORY_ALL
        self.page = 1

    def set_query(self, query: str) -> None:
        self.query = query
        self.page = 1

    def set_category(self, category: str) -> None:
        self.category = category
        self.page = 1

    def results(self) -> list[Note]:
        return filter_notes(
            self._cache.notes,
            self.query,
            self.category,
            self._cache.bookmarks,
        )

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.results()), self.page_size)

    def go_to_page(self, page: int) -> bool:
        """
        Move to `page`.

        Returns:
            False, leaving the current page unchanged, when `page` is
            outside [1, total_pages]
        """
        if not is_valid_page(page, len(self.results()), self.page_size):
            return False
        self.page = page
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.page - 1)

    def view(self) -> PagedResult[Note]:
        """
        The current page of results with pagination metadata.

        When the results shrank below the current page (a bookmark removed
        while on the last page of BOOKMARKED), the page moves back to the
        last one that still exists.
        """
        results = self.results()
        last_page = max(total_pages(len(results), self.page_size), 1)
        if self.page > last_page:
            self.page = last_page
        return PagedResult(
            items=paginate(results, self.page, self.page_size),
            page=self.page,
            page_size=self.page_size,
            total=len(results),
        )
