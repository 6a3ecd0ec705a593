"""
Object Store Client.

Binary object buckets holding the uploaded PDFs (Storage dialect).
"""

from typing import Any
from urllib.parse import quote

from notevault.clients.base import SupabaseHTTPClient, error_message
from notevault.core.exceptions import StorageError


class ObjectStoreClient(SupabaseHTTPClient):
    """Upload, list, remove and address stored objects."""

    dependency = "object_store"
    error_class = StorageError

    def _check(self, response: Any, operation: str) -> None:
        if response.status_code >= 400:
            raise StorageError(
                f"Storage {operation} failed: {error_message(response)}",
                status_code=response.status_code,
            )

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "application/pdf",
        upsert: bool = False,
    ) -> str:
        """
        Store an object.

        Returns:
            The object key inside the bucket
        """
        response = await self.post(
            f"/object/{bucket}/{quote(path)}",
            content=content,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
            },
        )
        self._check(response, "upload")
        return path

    def public_url(self, bucket: str, path: str) -> str:
        """Public URL of an object in a public bucket. No request is made."""
        return f"{self.base_url}/object/public/{bucket}/{quote(path)}"

    async def remove(self, bucket: str, paths: list[str]) -> None:
        """Delete objects by key."""
        response = await self.request(
            "DELETE",
            f"/object/{bucket}",
            json={"prefixes": paths},
        )
        self._check(response, "remove")

    async def list_objects(self, bucket: str, prefix: str = "", limit: int = 100) -> list[dict[str, Any]]:
        """List objects under a folder prefix, sorted by name."""
        response = await self.post(
            f"/object/list/{bucket}",
            json={
                "prefix": prefix,
                "limit": limit,
                "offset": 0,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        self._check(response, "list")
        try:
            objects = response.json()
        except ValueError as e:
            raise StorageError("Storage list returned a non-JSON body") from e
        if not isinstance(objects, list):
            raise StorageError("Storage list returned an unexpected body")
        return objects
