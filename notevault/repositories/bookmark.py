"""
Bookmark Repository.

Data access layer for the `bookmarks` join table.
"""

from notevault.clients.row_store import RowStore
from notevault.core.exceptions import RowStoreError
from notevault.schemas.bookmark import Bookmark


class BookmarkRepository:
    """Reads and writes (user_id, note_id) pairs."""

    table = "bookmarks"

    def __init__(self, store: RowStore) -> None:
        self.store = store

    async def list_note_ids(self, user_id: str) -> frozenset[str]:
        """Ids of every note the user has bookmarked."""
        rows = await self.store.select(
            self.table,
            columns="note_id",
            filters={"user_id": user_id},
        )
        if any(row.get("note_id") is None for row in rows):
            raise RowStoreError("Malformed bookmarks row: note_id missing")
        return frozenset(str(row["note_id"]) for row in rows)

    async def add(self, user_id: str, note_id: str) -> None:
        await self.store.insert(self.table, [Bookmark(user_id=user_id, note_id=note_id).to_row()])

    async def remove(self, user_id: str, note_id: str) -> None:
        await self.store.delete(self.table, {"user_id": user_id, "note_id": note_id})
