"""
Row Store Client.

Query/mutation client for the relational row service (PostgREST dialect).
Tables referenced by the application: notes, bookmarks, requests, profiles.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from notevault.clients.base import SupabaseHTTPClient, error_message
from notevault.core.exceptions import RowStoreError

Filters = Mapping[str, Any]
Row = dict[str, Any]


class RowStore(Protocol):
    """Operations the repositories need from the row store."""

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters | None = None,
        order: tuple[str, bool] | None = None,
        limit: int | None = None,
    ) -> list[Row]: ...

    async def insert(self, table: str, rows: Sequence[Row]) -> list[Row]: ...

    async def update(self, table: str, values: Row, filters: Filters) -> list[Row]: ...

    async def delete(self, table: str, filters: Filters) -> None: ...


def _encode_value(value: Any) -> str:
    if isinstance(value, (list, tuple, set, frozenset)):
        return "in.(" + ",".join(str(v) for v in value) + ")"
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def build_params(
    columns: str | None = None,
    filters: Filters | None = None,
    order: tuple[str, bool] | None = None,
    limit: int | None = None,
) -> list[tuple[str, str]]:
    """
    Build PostgREST query parameters.

    Args:
        columns: Column list for `select`
        filters: Column → value equality filters; sequences become `in`
        order: (column, descending)
        limit: Maximum rows

    Returns:
        Ordered list of query parameter pairs
    """
    params: list[tuple[str, str]] = []
    if columns is not None:
        params.append(("select", columns))
    for column, value in (filters or {}).items():
        params.append((column, _encode_value(value)))
    if order is not None:
        column, descending = order
        params.append(("order", f"{column}.{'desc' if descending else 'asc'}"))
    if limit is not None:
        params.append(("limit", str(limit)))
    return params


class RowStoreClient(SupabaseHTTPClient):
    """
    PostgREST client.

    Every method raises RowStoreError when the service responds with an
    error status or cannot be reached.
    """

    dependency = "row_store"
    error_class = RowStoreError

    def _check(self, response: Any, operation: str, table: str) -> None:
        if response.status_code >= 400:
            raise RowStoreError(
                f"{operation} on {table} failed: {error_message(response)}",
                status_code=response.status_code,
            )

    def _rows(self, response: Any, operation: str, table: str) -> list[Row]:
        if not response.content:
            return []
        try:
            body = response.json()
        except ValueError as e:
            raise RowStoreError(f"{operation} on {table} returned a non-JSON body") from e
        if not isinstance(body, list):
            raise RowStoreError(f"{operation} on {table} returned {type(body).__name__}, expected rows")
        return body

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters | None = None,
        order: tuple[str, bool] | None = None,
        limit: int | None = None,
    ) -> list[Row]:
        """Select rows from a table."""
        response = await self.get(
            f"/{table}",
            params=build_params(columns, filters, order, limit),
        )
        self._check(response, "select", table)
        return self._rows(response, "select", table)

    async def insert(self, table: str, rows: Sequence[Row]) -> list[Row]:
        """Insert rows and return them as stored (with server defaults)."""
        response = await self.post(
            f"/{table}",
            json=list(rows),
            headers={"Prefer": "return=representation"},
        )
        self._check(response, "insert", table)
        return self._rows(response, "insert", table)

    async def update(self, table: str, values: Row, filters: Filters) -> list[Row]:
        """Update rows matching the filters."""
        if not filters:
            raise RowStoreError(f"update on {table} requires filters")
        response = await self.patch(
            f"/{table}",
            params=build_params(filters=filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        self._check(response, "update", table)
        return self._rows(response, "update", table)

    async def delete(self, table: str, filters: Filters) -> None:
        """Delete rows matching the filters."""
        if not filters:
            raise RowStoreError(f"delete on {table} requires filters")
        response = await super().delete(
            f"/{table}",
            params=build_params(filters=filters),
        )
        self._check(response, "delete", table)
