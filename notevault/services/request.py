"""
Request Service.

"Missing note" requests: students post the title of a note they cannot find,
and anyone signed in can fulfill a request by uploading a PDF. The upload is
published as a community contribution and the request is marked FULFILLED.
"""

import re
import time
from collections.abc import Callable

from pydantic import ValidationError as PydanticValidationError

from notevault.clients.object_store import ObjectStoreClient
from notevault.core.exceptions import (
    AuthRequired,
    ConflictError,
    FetchError,
    MutationError,
    StorageError,
    ValidationError,
)
from notevault.repositories.note import NoteRepository
from notevault.repositories.request import RequestRepository
from notevault.schemas.auth import AuthUser
from notevault.schemas.note import COMMUNITY_BRANCH, CONTRIBUTION_SUBJECT, Note
from notevault.schemas.request import RequestCreate, RequestEntry
from notevault.services.auth import IdentitySource
from notevault.services.base import BaseService
from notevault.services.upload import PDF_CONTENT_TYPE, PdfFile, validate_pdf


def contribution_key(file_name: str, timestamp_ms: int) -> str:
    """Object key for a contribution: `<ms>-<name, whitespace as '_'>`."""
    safe_name = re.sub(r"\s", "_", file_name)
    return f"{timestamp_ms}-{safe_name}"


class RequestService(BaseService):
    """Lists, creates and fulfills community note requests."""

    source = "requests"

    def __init__(
        self,
        requests: RequestRepository,
        notes: NoteRepository,
        storage: ObjectStoreClient,
        identity: IdentitySource,
        bucket: str,
        max_bytes: int,
        recent_limit: int = 10,
        on_auth_required: Callable[[], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._requests = requests
        self._notes = notes
        self._storage = storage
        self._identity = identity
        self._bucket = bucket
        self._max_bytes = max_bytes
        self._recent_limit = recent_limit
        self._on_auth_required = on_auth_required
        self._clock = clock

    def _require_user(self, action: str) -> AuthUser:
        user = self._identity.user
        if user is None:
            self._log_debug("Request action without login", action=action)
            if self._on_auth_required is not None:
                self._on_auth_required()
            raise AuthRequired(f"Login required to {action}")
        return user

    async def list_recent(self) -> list[RequestEntry]:
        """
        The most recent requests, newest first.

        Raises:
            FetchError: If the row store cannot be read
        """
        return await self._execute_store_operation(
            "list_requests",
            self._requests.list_recent(self._recent_limit),
            error_class=FetchError,
        )

    async def get_request(self, request_id: str) -> RequestEntry:
        """
        Look up one request by id.

        Raises:
            NotFoundError: If no such request exists
            FetchError: If the row store cannot be read
        """
        return await self._execute_store_operation(
            "get_request",
            self._requests.get_by_id(request_id),
            error_class=FetchError,
        )

    async def list_contributions(self) -> list[Note]:
        """
        Community contributions, newest first.

        Raises:
            FetchError: If the row store cannot be read
        """
        return await self._execute_store_operation(
            "list_contributions",
            self._notes.list_contributions(),
            error_class=FetchError,
        )

    async def create_request(self, title: str) -> RequestEntry:
        """
        Post a new request.

        Raises:
            AuthRequired: If nobody is signed in
            ValidationError: If the title is blank
            MutationError: If the row cannot be inserted
        """
        user = self._require_user("post a request")
        try:
            form = RequestCreate(title=title)
        except PydanticValidationError as e:
            raise ValidationError("Request title is required", details={"title": title}) from e

        entry = await self._execute_store_operation(
            "create_request",
            self._requests.create(title=form.title, requested_by_email=user.email),
            error_class=MutationError,
        )
        self._log_operation("Request posted", request_id=entry.id)
        return entry

    async def fulfill_request(
        self,
        request: RequestEntry,
        file: PdfFile,
        description: str = "",
    ) -> Note:
        """
        Answer a request with a PDF and mark it fulfilled.

        Raises:
            AuthRequired: If nobody is signed in
            ConflictError: If the request is already fulfilled
            ValidationError: If the file is not an acceptable PDF
            StorageError: If the object or the note row cannot be stored
            MutationError: If the request status cannot be updated
        """
        user = self._require_user("fulfill a request")
        if not request.is_open:
            raise ConflictError(f"Request '{request.title}' is already fulfilled")
        validate_pdf(file, self._max_bytes)

        path = contribution_key(file.name, int(self._clock() * 1000))
        self._log_operation("Fulfilling request", request_id=request.id, path=path)

        await self._storage.upload(self._bucket, path, file.content, content_type=PDF_CONTENT_TYPE)
        note = await self._execute_store_operation(
            "insert_contribution",
            self._notes.create(
                title=request.title,
                subject=CONTRIBUTION_SUBJECT,
                branch=COMMUNITY_BRANCH,
                file_url=self._storage.public_url(self._bucket, path),
                file_path=path,
                description=description.strip() or None,
                uploader_email=user.email,
                user_id=user.id,
            ),
            error_class=StorageError,
        )
        await self._execute_store_operation(
            "mark_fulfilled",
            self._requests.mark_fulfilled(request.id),
            error_class=MutationError,
        )
        self._log_operation("Request fulfilled", request_id=request.id, note_id=note.id)
        return note
