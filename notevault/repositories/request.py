"""
Request Repository.

Data access layer for "missing note" requests.
"""

from notevault.repositories.base import BaseRepository
from notevault.schemas.request import RequestEntry, RequestStatus


class RequestRepository(BaseRepository[RequestEntry]):
    """Repository for RequestEntry rows."""

    model = RequestEntry
    table = "requests"

    async def list_recent(self, limit: int = 10) -> list[RequestEntry]:
        """Most recent requests, newest first."""
        return await self.get_all(limit=limit)

    async def mark_fulfilled(self, request_id: str) -> None:
        """Set a request's status to FULFILLED."""
        await self.store.update(
            self.table,
            {"status": RequestStatus.FULFILLED.value},
            {"id": request_id},
        )
