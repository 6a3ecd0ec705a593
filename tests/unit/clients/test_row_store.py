"""
Unit Tests for the Row Store Client.

Requests are answered by httpx.MockTransport; no network is used.
"""

import json

import httpx
import pytest

from notevault.clients.row_store import RowStoreClient, build_params
from notevault.core.exceptions import RowStoreError
from notevault.core.resilience import create_circuit_breaker

BASE_URL = "http://backend.test/rest/v1"


def make_client(handler, **kwargs) -> RowStoreClient:
    return RowStoreClient(
        BASE_URL,
        "anon-key",
        transport=httpx.MockTransport(handler),
        retry_attempts=1,
        **kwargs,
    )


class TestBuildParams:
    """Tests for PostgREST query parameter encoding."""

    def test_equality_filter_order_and_limit(self):
        params = build_params("*", {"subject": "CONTRIBUTION"}, ("created_at", True), 10)

        assert params == [
            ("select", "*"),
            ("subject", "eq.CONTRIBUTION"),
            ("order", "created_at.desc"),
            ("limit", "10"),
        ]

    def test_sequence_becomes_in_filter(self):
        assert build_params(filters={"id": ["1", "2"]}) == [("id", "in.(1,2)")]

    def test_none_and_bool(self):
        assert build_params(filters={"branch": None, "is_admin": False}) == [
            ("branch", "is.null"),
            ("is_admin", "eq.false"),
        ]

    def test_ascending_order(self):
        assert build_params(order=("name", False)) == [("order", "name.asc")]


class TestRowStoreClient:
    """Tests for select/insert/update/delete."""

    @pytest.mark.asyncio
    async def test_select_sends_query_and_auth_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(200, json=[{"id": 1, "title": "Optics"}])

        client = make_client(handler)
        rows = await client.select("notes", order=("created_at", True))
        await client.close()

        assert rows == [{"id": 1, "title": "Optics"}]
        assert seen["url"].startswith(f"{BASE_URL}/notes?")
        assert "order=created_at.desc" in seen["url"]
        assert seen["apikey"] == "anon-key"
        assert seen["auth"] == "Bearer anon-key"

    @pytest.mark.asyncio
    async def test_user_token_replaces_anon_bearer(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(200, json=[])

        client = make_client(handler, token_provider=lambda: "user-token")
        await client.select("bookmarks")
        await client.close()

        assert seen["auth"] == "Bearer user-token"

    @pytest.mark.asyncio
    async def test_insert_asks_for_representation(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["prefer"] = request.headers.get("prefer")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=[{"id": 7, "title": "DBMS"}])

        client = make_client(handler)
        rows = await client.insert("requests", [{"title": "DBMS"}])
        await client.close()

        assert seen["prefer"] == "return=representation"
        assert seen["body"] == [{"title": "DBMS"}]
        assert rows[0]["id"] == 7

    @pytest.mark.asyncio
    async def test_update_sends_filters_and_values(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[])

        client = make_client(handler)
        await client.update("requests", {"status": "FULFILLED"}, {"id": "3"})
        await client.close()

        assert seen["method"] == "PATCH"
        assert seen["params"] == {"id": "eq.3"}
        assert seen["body"] == {"status": "FULFILLED"}

    @pytest.mark.asyncio
    async def test_delete_sends_filters(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            return httpx.Response(204)

        client = make_client(handler)
        await client.delete("bookmarks", {"user_id": "u1", "note_id": "n1"})
        await client.close()

        assert seen["method"] == "DELETE"
        assert seen["params"] == {"user_id": "eq.u1", "note_id": "eq.n1"}

    @pytest.mark.asyncio
    async def test_unfiltered_delete_is_refused(self):
        client = make_client(lambda request: httpx.Response(204))

        with pytest.raises(RowStoreError, match="requires filters"):
            await client.delete("notes", {})

    @pytest.mark.asyncio
    async def test_error_response_raises_with_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "duplicate key value"})

        client = make_client(handler)
        with pytest.raises(RowStoreError, match="duplicate key value") as exc_info:
            await client.insert("bookmarks", [{"user_id": "u", "note_id": "n"}])
        await client.close()

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json=[])

        client = RowStoreClient(
            BASE_URL,
            "anon-key",
            transport=httpx.MockTransport(handler),
            retry_attempts=2,
            retry_wait_min=0,
            retry_wait_max=0,
        )
        assert await client.select("notes") == []
        await client.close()

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_unreachable_service_raises_row_store_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        with pytest.raises(RowStoreError, match="request failed"):
            await client.select("notes")
        await client.close()

    @pytest.mark.asyncio
    async def test_open_breaker_fails_fast(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler, breaker=create_circuit_breaker("row_store", fail_max=1))
        with pytest.raises(RowStoreError):
            await client.select("notes")
        with pytest.raises(RowStoreError, match="unavailable"):
            await client.select("notes")
        await client.close()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_non_json_body_raises_row_store_error(self):
        """A success status with an unparsable body is still a row store failure."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        client = make_client(handler)
        with pytest.raises(RowStoreError, match="non-JSON body"):
            await client.select("notes")
        await client.close()

    @pytest.mark.asyncio
    async def test_non_list_body_raises_row_store_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"id": 1}))

        with pytest.raises(RowStoreError, match="expected rows"):
            await client.select("notes")
        await client.close()
