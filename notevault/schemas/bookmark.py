"""
Bookmark Schemas.

A bookmark is the existence of a (user_id, note_id) pair.
"""

from notevault.schemas.base import RowModel


class Bookmark(RowModel):
    """Join row between a user and a bookmarked note."""

    user_id: str
    note_id: str

    def to_row(self) -> dict[str, str]:
        return {"user_id": self.user_id, "note_id": self.note_id}
