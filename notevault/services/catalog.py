"""
Catalog Cache.

Holds the last-fetched note collection and the current user's bookmark ids.
Consumers read immutable snapshots; only the cache replaces them.

Load failures never propagate: the previous snapshot is kept and the
FetchError is recorded (and returned) so the caller can render a retryable
error state.
"""

from pathlib import Path

from pydantic import BaseModel, ValidationError as PydanticValidationError

from notevault.core.exceptions import ApplicationError, FetchError
from notevault.repositories.bookmark import BookmarkRepository
from notevault.repositories.note import NoteRepository
from notevault.schemas.auth import AuthUser
from notevault.schemas.note import Note
from notevault.services.base import BaseService


class CatalogSnapshot(BaseModel):
    """On-disk form of the cache, restored at startup."""

    notes: list[Note] = []
    bookmarks: list[str] = []
    user_id: str | None = None


class CatalogCache(BaseService):
    """
    Shared store of notes and bookmark ids for the active user.

    One instance is created per application context and injected into every
    consumer; there is no module-level instance.
    """

    source = "catalog"

    def __init__(
        self,
        notes: NoteRepository,
        bookmarks: BookmarkRepository,
        snapshot_path: Path | None = None,
    ) -> None:
        super().__init__()
        self._note_repo = notes
        self._bookmark_repo = bookmarks
        self._snapshot_path = snapshot_path

        self._notes: tuple[Note, ...] = ()
        self._bookmarks: frozenset[str] = frozenset()
        self._bookmarks_user: str | None = None
        self._alive = True

        self.notes_error: FetchError | None = None
        self.bookmarks_error: FetchError | None = None
        self.loading_notes = False
        self.loading_bookmarks = False

    # -------------------------------------------------------------------------
    # Read API
    # -------------------------------------------------------------------------

    @property
    def notes(self) -> tuple[Note, ...]:
        """Note snapshot, newest first."""
        return self._notes

    @property
    def bookmarks(self) -> frozenset[str]:
        """Bookmark-id snapshot for `bookmarks_user`."""
        return self._bookmarks

    @property
    def bookmarks_user(self) -> str | None:
        return self._bookmarks_user

    @property
    def is_alive(self) -> bool:
        return self._alive

    def is_bookmarked(self, note_id: str) -> bool:
        return note_id in self._bookmarks

    def find_note(self, note_id: str) -> Note | None:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    # -------------------------------------------------------------------------
    # Loads
    # -------------------------------------------------------------------------

    async def load_notes(self) -> FetchError | None:
        """
        Fetch all notes, newest first, and replace the snapshot.

        Returns:
            None on success, the recorded FetchError on failure
        """
        self.loading_notes = True
        try:
            notes = await self._execute_store_operation(
                "load_notes",
                self._note_repo.list_newest_first(),
                error_class=FetchError,
            )
        except FetchError as e:
            if self._alive:
                self.notes_error = e
            return e
        finally:
            self.loading_notes = False

        if not self._alive:
            self._log_debug("Discarded notes load after close")
            return None

        self._notes = tuple(notes)
        self.notes_error = None
        self._log_operation("Notes loaded", count=len(self._notes))
        self._persist()
        return None

    async def load_bookmarks(self, user_id: str | None) -> FetchError | None:
        """
        Fetch the bookmark ids of `user_id` and replace the snapshot.

        The active user is set by `on_user_changed`; a load for any other
        user is discarded, before the request and again when it completes. A
        guest (no user_id) gets an empty set without a remote call.

        Returns:
            None on success, the recorded FetchError on failure
        """
        if user_id != self._bookmarks_user:
            self._log_debug("Discarded bookmarks load for inactive user", user_id=user_id)
            return None
        if user_id is None:
            self._bookmarks = frozenset()
            self.bookmarks_error = None
            return None

        self.loading_bookmarks = True
        try:
            ids = await self._execute_store_operation(
                "load_bookmarks",
                self._bookmark_repo.list_note_ids(user_id),
                error_class=FetchError,
            )
        except FetchError as e:
            if self._alive and self._bookmarks_user == user_id:
                self.bookmarks_error = e
            return e
        finally:
            self.loading_bookmarks = False

        if not self._alive or self._bookmarks_user != user_id:
            self._log_debug("Discarded stale bookmarks load", user_id=user_id)
            return None

        self._bookmarks = frozenset(ids)
        self.bookmarks_error = None
        self._log_debug("Bookmarks loaded", user_id=user_id, count=len(self._bookmarks))
        self._persist()
        return None

    # -------------------------------------------------------------------------
    # Write API
    # -------------------------------------------------------------------------

    def set_bookmarked(self, note_id: str, bookmarked: bool) -> None:
        """Set the membership of one id in the bookmark snapshot."""
        if not self._alive:
            return
        if bookmarked:
            self._bookmarks = self._bookmarks | {note_id}
        else:
            self._bookmarks = self._bookmarks - {note_id}

    def forget_note(self, note_id: str) -> None:
        """Drop a deleted note and any cached bookmark referencing it."""
        self._notes = tuple(n for n in self._notes if n.id != note_id)
        self._bookmarks = self._bookmarks - {note_id}
        self._persist()

    def on_user_changed(self, user: AuthUser | None) -> None:
        """Auth listener: bookmarks of a previous user are never shown."""
        user_id = user.id if user else None
        if user_id != self._bookmarks_user:
            self._bookmarks_user = user_id
            self._bookmarks = frozenset()
            self.bookmarks_error = None

    def close(self) -> None:
        """Stop applying results of loads that complete from now on."""
        self._alive = False

    # -------------------------------------------------------------------------
    # Snapshot file
    # -------------------------------------------------------------------------

    def restore(self) -> bool:
        """
        Seed the cache from the snapshot file written by a previous run.

        Bookmarks are only restored when they belong to the active user.

        Returns:
            True if a snapshot was restored
        """
        if self._snapshot_path is None or not self._snapshot_path.exists():
            return False
        try:
            snapshot = CatalogSnapshot.model_validate_json(
                self._snapshot_path.read_text(encoding="utf-8")
            )
        except (OSError, PydanticValidationError) as e:
            self._logger.warning(
                "Ignoring unreadable catalog snapshot",
                extra={"path": str(self._snapshot_path), "error": str(e), "source": self.source},
            )
            return False

        self._notes = tuple(snapshot.notes)
        if snapshot.user_id == self._bookmarks_user:
            self._bookmarks = frozenset(snapshot.bookmarks)
        self._log_debug("Catalog snapshot restored", count=len(self._notes))
        return True

    def _persist(self) -> None:
        if self._snapshot_path is None:
            return
        snapshot = CatalogSnapshot(
            notes=list(self._notes),
            bookmarks=sorted(self._bookmarks),
            user_id=self._bookmarks_user,
        )
        try:
            self._snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            self._snapshot_path.write_text(snapshot.model_dump_json(), encoding="utf-8")
        except OSError as e:
            self._logger.warning(
                "Could not write catalog snapshot",
                extra={"path": str(self._snapshot_path), "error": str(e), "source": self.source},
            )

    @property
    def last_error(self) -> ApplicationError | None:
        return self.notes_error or self.bookmarks_error
