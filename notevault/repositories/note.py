"""
Note Repository.

Data access layer for the `notes` table.
"""

from notevault.repositories.base import BaseRepository
from notevault.schemas.note import CONTRIBUTION_SUBJECT, Note


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note rows.

    Inherits standard operations from BaseRepository
    and adds note-specific queries.
    """

    model = Note
    table = "notes"

    async def list_newest_first(self) -> list[Note]:
        """All notes ordered by `created_at` descending."""
        return await self.get_all()

    async def list_contributions(self) -> list[Note]:
        """Community contributions, newest first."""
        return await self.get_all(filters={"subject": CONTRIBUTION_SUBJECT})

    async def delete_by_file_path(self, file_path: str) -> None:
        """Delete the note row pointing at a stored object."""
        await self.store.delete(self.table, {"file_path": file_path})
