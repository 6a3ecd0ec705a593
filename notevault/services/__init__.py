"""Services: catalog state, search, bookmarks, uploads, requests and auth."""

from notevault.services.auth import AuthService, IdentitySource
from notevault.services.bookmark import (
    BookmarkCoordinator,
    ToggleOutcome,
    ToggleResult,
    ToggleState,
)
from notevault.services.catalog import CatalogCache
from notevault.services.request import RequestService
from notevault.services.search import CatalogBrowser, filter_notes
from notevault.services.upload import PdfFile, UploadService

__all__ = [
    "AuthService",
    "BookmarkCoordinator",
    "CatalogBrowser",
    "CatalogCache",
    "IdentitySource",
    "PdfFile",
    "RequestService",
    "ToggleOutcome",
    "ToggleResult",
    "ToggleState",
    "UploadService",
    "filter_notes",
]
