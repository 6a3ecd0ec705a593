"""
Base Repository.

Base class for all repositories with common row store operations.
"""

from typing import Any, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError

from notevault.clients.row_store import RowStore
from notevault.core.exceptions import NotFoundError, RowStoreError
from notevault.core.logging import get_logger
from notevault.schemas.base import RowModel

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=RowModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository over one row store table.

    Subclasses should set the model class and table name:

        class NoteRepository(BaseRepository[Note]):
            model = Note
            table = "notes"
    """

    model: type[ModelType]
    table: str

    def __init__(self, store: RowStore) -> None:
        self.store = store

    def _to_model(self, row: dict[str, Any]) -> ModelType:
        try:
            return self.model.model_validate(row)
        except PydanticValidationError as e:
            logger.warning(
                "Malformed row",
                extra={"table": self.table, "id": row.get("id"), "errors": e.error_count(), "source": "backend"},
            )
            raise RowStoreError(f"Malformed {self.table} row: {e.errors()[0]['msg']}") from e

    async def get_by_id(self, id: str) -> ModelType:
        """
        Get a single record by ID.

        Raises:
            NotFoundError: If record not found
        """
        instance = await self.get_by_id_or_none(id)
        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return instance

    async def get_by_id_or_none(self, id: str) -> ModelType | None:
        """Get a single record by ID, returning None if not found."""
        rows = await self.store.select(self.table, filters={"id": id}, limit=1)
        return self._to_model(rows[0]) if rows else None

    async def get_all(
        self,
        filters: dict[str, Any] | None = None,
        newest_first: bool = True,
        limit: int | None = None,
    ) -> list[ModelType]:
        """Get records ordered by creation time."""
        rows = await self.store.select(
            self.table,
            filters=filters,
            order=("created_at", newest_first),
            limit=limit,
        )
        return [self._to_model(row) for row in rows]

    async def create(self, **values: Any) -> ModelType:
        """Insert a record and return it as stored."""
        rows = await self.store.insert(self.table, [values])
        if not rows:
            raise NotFoundError(f"{self.model.__name__} not returned after insert")
        return self._to_model(rows[0])

    async def delete(self, id: str) -> None:
        """Delete a record by ID."""
        await self.store.delete(self.table, {"id": id})
