"""
Application Context.

Wires the backend clients, repositories, catalog cache and services for one
running application. Every consumer receives what it needs from here; there
are no module-level instances of the shared store.

Usage:
    async with AppContext.create() as ctx:
        await ctx.auth.initialize()
        await ctx.cache.load_notes()
        page = ctx.browser.view()
"""

from collections.abc import Callable
from pathlib import Path

import httpx

from notevault.clients.auth import AuthClient
from notevault.clients.object_store import ObjectStoreClient
from notevault.clients.row_store import RowStoreClient
from notevault.core.config import (
    AppConfig,
    Settings,
    find_project_root,
    get_app_config,
    get_service_url,
    get_settings,
)
from notevault.core.logging import get_logger
from notevault.core.resilience import create_circuit_breaker
from notevault.repositories.bookmark import BookmarkRepository
from notevault.repositories.note import NoteRepository
from notevault.repositories.profile import ProfileRepository
from notevault.repositories.request import RequestRepository
from notevault.services.auth import AuthService
from notevault.services.bookmark import BookmarkCoordinator
from notevault.services.catalog import CatalogCache
from notevault.services.request import RequestService
from notevault.services.search import CatalogBrowser
from notevault.services.upload import UploadService

logger = get_logger(__name__)


def _resolve(root: Path | None, configured: str | None) -> Path | None:
    if not configured:
        return None
    path = Path(configured)
    if path.is_absolute() or root is None:
        return path
    return root / path


class AppContext:
    """Everything one session of the application shares."""

    def __init__(
        self,
        *,
        row_store: RowStoreClient,
        auth_client: AuthClient,
        object_store: ObjectStoreClient,
        auth: AuthService,
        cache: CatalogCache,
        browser: CatalogBrowser,
        bookmarks: BookmarkCoordinator,
        uploads: UploadService,
        requests: RequestService,
    ) -> None:
        self.row_store = row_store
        self.auth_client = auth_client
        self.object_store = object_store
        self.auth = auth
        self.cache = cache
        self.browser = browser
        self.bookmarks = bookmarks
        self.uploads = uploads
        self.requests = requests

    @classmethod
    def create(
        cls,
        config: AppConfig | None = None,
        settings: Settings | None = None,
        *,
        on_auth_required: Callable[[], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        root: Path | None = None,
    ) -> "AppContext":
        """
        Build a context from configuration.

        Args:
            config: YAML configuration; loaded from config/settings/ if omitted
            settings: Secrets; loaded from config/.env if omitted
            on_auth_required: Called when an action needs a signed-in user
            transport: httpx transport shared by all clients (tests)
            root: Base directory for relative data paths; the project root
                if omitted
        """
        config = config or get_app_config()
        settings = settings or get_settings()
        if root is None:
            root = find_project_root()

        resilience = config.resilience
        timeouts = config.application.timeouts
        client_options = {
            "transport": transport,
            "retry_attempts": resilience.retry.attempts,
            "retry_wait_min": resilience.retry.wait_min,
            "retry_wait_max": resilience.retry.wait_max,
        }

        def breaker(dependency: str):
            return create_circuit_breaker(
                dependency,
                fail_max=resilience.circuit_breaker.fail_max,
                timeout_duration=resilience.circuit_breaker.timeout_duration,
            )

        backend = config.backend
        auth_client = AuthClient(
            get_service_url("auth", config),
            settings.supabase_anon_key,
            timeout=timeouts.auth,
            breaker=breaker("auth"),
            **client_options,
        )
        row_store = RowStoreClient(
            get_service_url("rest", config),
            settings.supabase_anon_key,
            timeout=timeouts.row_store,
            breaker=breaker("row_store"),
            **client_options,
        )
        object_store = ObjectStoreClient(
            get_service_url("storage", config),
            settings.supabase_anon_key,
            timeout=timeouts.storage,
            breaker=breaker("object_store"),
            **client_options,
        )

        notes = NoteRepository(row_store)
        bookmark_rows = BookmarkRepository(row_store)

        auth = AuthService(
            auth_client,
            ProfileRepository(row_store),
            site_url=backend.site_url,
            session_path=_resolve(root, config.application.session_path),
        )
        row_store.set_token_provider(lambda: auth.access_token)
        object_store.set_token_provider(lambda: auth.access_token)

        catalog = config.catalog
        cache = CatalogCache(
            notes,
            bookmark_rows,
            snapshot_path=_resolve(root, catalog.snapshot_path),
        )
        auth.subscribe(cache.on_user_changed)

        logger.debug(
            "Application context created",
            extra={"backend": backend.url, "source": "internal"},
        )
        return cls(
            row_store=row_store,
            auth_client=auth_client,
            object_store=object_store,
            auth=auth,
            cache=cache,
            browser=CatalogBrowser(cache, page_size=catalog.page_size),
            bookmarks=BookmarkCoordinator(
                cache,
                bookmark_rows,
                identity=auth,
                on_auth_required=on_auth_required,
            ),
            uploads=UploadService(
                notes,
                object_store,
                identity=auth,
                cache=cache,
                bucket=backend.buckets.notes,
                max_bytes=catalog.max_upload_bytes,
            ),
            requests=RequestService(
                RequestRepository(row_store),
                notes,
                object_store,
                identity=auth,
                bucket=backend.buckets.contributions,
                max_bytes=catalog.max_upload_bytes,
                recent_limit=catalog.recent_requests_limit,
                on_auth_required=on_auth_required,
            ),
        )

    async def refresh(self) -> None:
        """Load notes and the current user's bookmarks."""
        await self.cache.load_notes()
        user = self.auth.user
        await self.cache.load_bookmarks(user.id if user else None)

    async def close(self) -> None:
        """Stop the cache and release HTTP connections."""
        self.cache.close()
        await self.row_store.close()
        await self.auth_client.close()
        await self.object_store.close()

    async def __aenter__(self) -> "AppContext":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
