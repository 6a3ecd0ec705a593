"""Clients for the hosted backend: rows, auth and object storage."""

from notevault.clients.auth import AuthClient
from notevault.clients.object_store import ObjectStoreClient
from notevault.clients.row_store import RowStore, RowStoreClient

__all__ = [
    "AuthClient",
    "ObjectStoreClient",
    "RowStore",
    "RowStoreClient",
]
