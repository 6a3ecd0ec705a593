"""
Unit Test Fixtures.

Fixtures for unit tests - every backend dependency is replaced.
Unit tests should be fast and isolated, never touching a real backend.
"""

import asyncio
import json
from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from notevault.context import AppContext
from notevault.core.config import get_app_config
from notevault.core.exceptions import RowStoreError
from notevault.repositories.bookmark import BookmarkRepository
from notevault.repositories.note import NoteRepository
from notevault.schemas.auth import AuthUser
from notevault.schemas.note import Note
from notevault.services.catalog import CatalogCache

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# Row Store Fake
# =============================================================================


class FakeRowStore:
    """
    In-memory row store.

    Failures are injected per "<operation>:<table>" key, e.g.
    `store.fail["insert:bookmarks"] = RowStoreError("down")`. Gates hold an
    operation until the test sets the event.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.fail: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[str, str]] = []
        self._next_id = 1

    def seed(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        for row in rows:
            self.tables[table].append(dict(row))

    async def _enter(self, operation: str, table: str) -> None:
        key = f"{operation}:{table}"
        self.calls.append((operation, table))
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        error = self.fail.get(key)
        if error is not None:
            raise error

    @staticmethod
    def _matches(row: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                if row.get(column) not in value:
                    return False
            elif row.get(column) != value:
                return False
        return True

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Mapping[str, Any] | None = None,
        order: tuple[str, bool] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        await self._enter("select", table)
        rows = [dict(r) for r in self.tables[table] if self._matches(r, filters)]
        if order is not None:
            column, descending = order
            rows.sort(key=lambda r: str(r.get(column) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        await self._enter("insert", table)
        stored = []
        for row in rows:
            record = dict(row)
            record.setdefault("id", str(self._next_id))
            record.setdefault("created_at", (BASE_TIME + timedelta(seconds=self._next_id)).isoformat())
            self._next_id += 1
            self.tables[table].append(record)
            stored.append(dict(record))
        return stored

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        await self._enter("update", table)
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(values)
                updated.append(dict(row))
        return updated

    async def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        await self._enter("delete", table)
        self.tables[table] = [r for r in self.tables[table] if not self._matches(r, filters)]


class StubIdentity:
    """Identity source whose user the test sets directly."""

    def __init__(self, user: AuthUser | None = None) -> None:
        self.user = user


# =============================================================================
# HTTP Backend Fake
# =============================================================================


class FakeBackend:
    """
    httpx.MockTransport handler speaking enough of the rest, auth and storage
    dialects for end-to-end tests of the real clients.

    Rows live in a FakeRowStore, objects in a dict keyed by (bucket, path).
    """

    password = "secret1"
    access_token = "access-1"
    user = {"id": "user-1", "email": "asha@example.edu"}

    def __init__(self) -> None:
        self.store = FakeRowStore()
        self.objects: dict[tuple[str, str], bytes] = {}
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/rest/v1/"):
            return await self._rest(request, path.removeprefix("/rest/v1/"))
        if path.startswith("/auth/v1/"):
            return self._auth(request, path.removeprefix("/auth/v1"))
        if path.startswith("/storage/v1/"):
            return self._storage(request, path.removeprefix("/storage/v1"))
        return httpx.Response(404, json={"message": "not found"})

    async def _rest(self, request: httpx.Request, table: str) -> httpx.Response:
        filters: dict[str, Any] = {}
        order = None
        limit = None
        for key, value in request.url.params.multi_items():
            if key == "select":
                continue
            if key == "order":
                column, _, direction = value.rpartition(".")
                order = (column, direction == "desc")
            elif key == "limit":
                limit = int(value)
            elif value.startswith("in.("):
                filters[key] = value[4:-1].split(",")
            elif value.startswith("eq."):
                filters[key] = value[3:]

        try:
            if request.method == "GET":
                rows = await self.store.select(table, filters=filters, order=order, limit=limit)
                return httpx.Response(200, json=rows)
            if request.method == "POST":
                rows = await self.store.insert(table, json.loads(request.content))
                return httpx.Response(201, json=rows)
            if request.method == "PATCH":
                rows = await self.store.update(table, json.loads(request.content), filters)
                return httpx.Response(200, json=rows)
            if request.method == "DELETE":
                await self.store.delete(table, filters)
                return httpx.Response(204)
        except RowStoreError as e:
            return httpx.Response(e.status_code or 500, json={"message": e.message})
        return httpx.Response(405)

    def _auth(self, request: httpx.Request, path: str) -> httpx.Response:
        if path == "/token":
            body = json.loads(request.content)
            if body["password"] != self.password:
                return httpx.Response(400, json={"error_description": "Invalid login credentials"})
            return httpx.Response(200, json={"access_token": self.access_token, "user": self.user})
        if path == "/user":
            if request.headers.get("authorization") != f"Bearer {self.access_token}":
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=self.user)
        if path == "/logout":
            return httpx.Response(204)
        if path == "/signup":
            body = json.loads(request.content)
            return httpx.Response(200, json={"id": "user-9", "email": body["email"]})
        return httpx.Response(404, json={"msg": "not found"})

    def _storage(self, request: httpx.Request, path: str) -> httpx.Response:
        if path.startswith("/object/list/"):
            bucket = path.removeprefix("/object/list/")
            prefix = json.loads(request.content)["prefix"]
            listing = [
                {"name": key.removeprefix(prefix + "/"), "id": key, "metadata": {"size": len(content)}}
                for (b, key), content in sorted(self.objects.items())
                if b == bucket and key.startswith(prefix + "/")
            ]
            return httpx.Response(200, json=listing)
        if request.method == "POST" and path.startswith("/object/"):
            bucket, _, key = path.removeprefix("/object/").partition("/")
            self.objects[(bucket, key)] = request.content
            return httpx.Response(200, json={"Key": f"{bucket}/{key}"})
        if request.method == "DELETE" and path.startswith("/object/"):
            bucket = path.removeprefix("/object/")
            for key in json.loads(request.content)["prefixes"]:
                self.objects.pop((bucket, key), None)
            return httpx.Response(200, json=[])
        return httpx.Response(404, json={"error": "not found"})


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def row_store() -> FakeRowStore:
    return FakeRowStore()


@pytest.fixture
def user() -> AuthUser:
    return AuthUser(id="user-1", email="asha@example.edu")


@pytest.fixture
def identity(user: AuthUser) -> StubIdentity:
    """Signed-in identity."""
    return StubIdentity(user)


@pytest.fixture
def guest() -> StubIdentity:
    return StubIdentity(None)


@pytest.fixture
def note_rows() -> Callable[..., dict[str, Any]]:
    """
    Build a `notes` row.

    Usage:
        row_store.seed("notes", [note_rows("1", title="Optics", branch="ECE")])
    """

    def build(note_id: str, **fields: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "id": note_id,
            "title": f"Note {note_id}",
            "subject": "General",
            "branch": "CSE",
            "created_at": (BASE_TIME + timedelta(minutes=int(note_id) if note_id.isdigit() else 0)).isoformat(),
        }
        row.update(fields)
        return row

    return build


@pytest.fixture
def make_note() -> Callable[..., Note]:
    """Build a Note model directly."""

    def build(note_id: str, title: str | None = None, **fields: Any) -> Note:
        return Note(id=note_id, title=title or f"Note {note_id}", **fields)

    return build


@pytest.fixture
def note_repo(row_store: FakeRowStore) -> NoteRepository:
    return NoteRepository(row_store)


@pytest.fixture
def bookmark_repo(row_store: FakeRowStore) -> BookmarkRepository:
    return BookmarkRepository(row_store)


@pytest.fixture
def cache(note_repo: NoteRepository, bookmark_repo: BookmarkRepository) -> CatalogCache:
    """Catalog cache without a snapshot file."""
    return CatalogCache(note_repo, bookmark_repo)


@pytest.fixture
def row_store_error() -> RowStoreError:
    return RowStoreError("row store unavailable", status_code=503)


@pytest.fixture
def mock_object_store() -> MagicMock:
    """
    Mock object store client.

    public_url is synchronous like the real client; everything else is async.
    """
    storage = MagicMock()
    storage.upload = AsyncMock(side_effect=lambda bucket, path, *args, **kwargs: path)
    storage.remove = AsyncMock(return_value=None)
    storage.list_objects = AsyncMock(return_value=[])
    storage.public_url = MagicMock(
        side_effect=lambda bucket, path: f"https://cdn.test/object/public/{bucket}/{path}"
    )
    return storage


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app_context(backend, test_settings, tmp_path) -> AppContext:
    """Application context wired to the fake backend with data under tmp_path."""
    return AppContext.create(
        get_app_config(),
        test_settings,
        on_auth_required=MagicMock(),
        transport=httpx.MockTransport(backend),
        root=tmp_path,
    )
