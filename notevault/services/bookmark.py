"""
Bookmark Coordinator.

Toggles bookmark membership optimistically: the cache flips first, the row
store is written second, and a failed write restores the id's exact
pre-toggle membership. Every toggle ends with a bookmark reload so the cache
converges on what the row store holds.

Per note id:

    IDLE → PENDING → COMMITTED   → IDLE
                   → ROLLED_BACK → IDLE

A toggle for an id that is already PENDING is rejected with BUSY. Toggles
on different ids are independent: a reload finishing while another id is
PENDING keeps that id's optimistic membership.

A toggle that settles after its user signed out (or switched) leaves the
new session's cache alone: no rollback is applied and no reload runs.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from notevault.core.exceptions import ApplicationError, AuthRequired, MutationError
from notevault.repositories.bookmark import BookmarkRepository
from notevault.services.auth import IdentitySource
from notevault.services.base import BaseService
from notevault.services.catalog import CatalogCache


class ToggleState(str, Enum):
    IDLE = "IDLE"
    PENDING = "PENDING"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


class ToggleOutcome(str, Enum):
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"
    BUSY = "BUSY"
    AUTH_REQUIRED = "AUTH_REQUIRED"


@dataclass(frozen=True)
class ToggleResult:
    """What a toggle did. `bookmarked` is the membership after settling."""

    note_id: str
    outcome: ToggleOutcome
    bookmarked: bool
    error: ApplicationError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ToggleOutcome.COMMITTED


class BookmarkCoordinator(BaseService):
    """Optimistic add/remove of bookmarks with rollback and reconciliation."""

    source = "bookmarks"

    def __init__(
        self,
        cache: CatalogCache,
        bookmarks: BookmarkRepository,
        identity: IdentitySource,
        on_auth_required: Callable[[], None] | None = None,
    ) -> None:
        super().__init__()
        self._cache = cache
        self._repo = bookmarks
        self._identity = identity
        self._on_auth_required = on_auth_required
        self._states: dict[str, ToggleState] = {}
        self._intended: dict[str, tuple[str, bool]] = {}
        self.last_error: ApplicationError | None = None

    def state_of(self, note_id: str) -> ToggleState:
        return self._states.get(note_id, ToggleState.IDLE)

    def is_pending(self, note_id: str) -> bool:
        return self.state_of(note_id) is ToggleState.PENDING

    @property
    def pending(self) -> frozenset[str]:
        return frozenset(k for k, v in self._states.items() if v is ToggleState.PENDING)

    async def toggle_bookmark(self, note_id: str) -> ToggleResult:
        """
        Flip the bookmark membership of `note_id` for the signed-in user.

        Errors are not raised; they are returned in the result and kept in
        `last_error`.
        """
        user = self._identity.user
        if user is None:
            auth_error = AuthRequired("Login required to bookmark notes")
            self.last_error = auth_error
            self._log_debug("Bookmark toggle without login", note_id=note_id)
            if self._on_auth_required is not None:
                self._on_auth_required()
            return ToggleResult(note_id, ToggleOutcome.AUTH_REQUIRED, self._cache.is_bookmarked(note_id), auth_error)

        if self.is_pending(note_id):
            self._log_debug("Bookmark toggle rejected while pending", note_id=note_id)
            return ToggleResult(note_id, ToggleOutcome.BUSY, self._cache.is_bookmarked(note_id))

        was_bookmarked = self._cache.is_bookmarked(note_id)
        self._states[note_id] = ToggleState.PENDING
        self._intended[note_id] = (user.id, not was_bookmarked)
        self._cache.set_bookmarked(note_id, not was_bookmarked)

        error: ApplicationError | None = None
        try:
            if was_bookmarked:
                await self._execute_store_operation(
                    "remove_bookmark",
                    self._repo.remove(user.id, note_id),
                    error_class=MutationError,
                )
            else:
                await self._execute_store_operation(
                    "add_bookmark",
                    self._repo.add(user.id, note_id),
                    error_class=MutationError,
                )
        except MutationError as e:
            error = e
            if self._is_active(user.id):
                self._cache.set_bookmarked(note_id, was_bookmarked)
            self._states[note_id] = ToggleState.ROLLED_BACK
            self.last_error = e
            self._log_operation("Bookmark toggle rolled back", note_id=note_id, error=e.message)
        except BaseException:
            if self._is_active(user.id):
                self._cache.set_bookmarked(note_id, was_bookmarked)
            self._states.pop(note_id, None)
            self._intended.pop(note_id, None)
            raise
        else:
            self._states[note_id] = ToggleState.COMMITTED
            self._log_operation(
                "Bookmark toggle committed",
                note_id=note_id,
                bookmarked=not was_bookmarked,
            )

        self._intended.pop(note_id, None)
        outcome = ToggleOutcome.COMMITTED if error is None else ToggleOutcome.ROLLED_BACK
        try:
            # The user may have signed out or switched while the write was in
            # flight; their bookmarks are not reloaded into the new session.
            if self._is_active(user.id):
                await self._cache.load_bookmarks(user.id)
                self._reapply_in_flight(user.id)
        finally:
            if self._states.get(note_id) is not ToggleState.PENDING:
                self._states.pop(note_id, None)

        return ToggleResult(note_id, outcome, self._cache.is_bookmarked(note_id), error)

    def _is_active(self, user_id: str) -> bool:
        current = self._identity.user
        return current is not None and current.id == user_id

    def _reapply_in_flight(self, user_id: str) -> None:
        # A reload replaces the whole set; toggles still in flight keep their
        # optimistic membership until they settle.
        for note_id, (owner, bookmarked) in self._intended.items():
            if owner == user_id:
                self._cache.set_bookmarked(note_id, bookmarked)
