"""
Upload Service.

Stores PDF study materials and registers them as notes. Also lists and
deletes the signed-in user's own uploads.

Object keys follow `user-<user id>/<unix ms>-<file name>`; the note title is
the key's file name, so listings strip the timestamp prefix for display.
"""

import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from notevault.clients.object_store import ObjectStoreClient
from notevault.core.exceptions import (
    AuthorizationError,
    AuthRequired,
    StorageError,
    ValidationError,
)
from notevault.repositories.note import NoteRepository
from notevault.schemas.auth import AuthUser
from notevault.schemas.note import Note, NoteMetadata
from notevault.services.auth import IdentitySource
from notevault.services.base import BaseService
from notevault.services.catalog import CatalogCache

PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_SUBJECT = "Uncategorized"
DEFAULT_CHAPTER = "General"
DEFAULT_BRANCH = "Other"


@dataclass(frozen=True)
class PdfFile:
    """A file picked for upload."""

    name: str
    content: bytes
    content_type: str = PDF_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path) -> "PdfFile":
        content_type = PDF_CONTENT_TYPE if path.suffix.lower() == ".pdf" else "application/octet-stream"
        return cls(name=path.name, content=path.read_bytes(), content_type=content_type)


@dataclass(frozen=True)
class UploadedFile:
    """An object in the user's upload folder."""

    name: str
    path: str
    size: int | None
    created_at: datetime | None
    public_url: str

    @property
    def display_name(self) -> str:
        _, sep, rest = self.name.partition("-")
        return rest if sep and rest else self.name


def suggest_metadata(file_name: str) -> tuple[str, str]:
    """
    Guess (subject, chapter) from a file name like `physics_wave-optics.pdf`.

    The first `_`/`-`/space separated word is the subject, the rest the
    chapter; both are capitalized.
    """
    clean = file_name.replace(".pdf", "", 1).replace("-", "_")
    clean = re.sub(r"\s+", "_", clean)
    parts = clean.split("_")

    subject = parts[0] if parts else ""
    chapter = " ".join(parts[1:]) if len(parts) >= 2 else ""
    return subject[:1].upper() + subject[1:], chapter[:1].upper() + chapter[1:]


def storage_key(user_id: str, file_name: str, timestamp_ms: int) -> str:
    """Object key for a user's upload: `user-<id>/<ms>-<name, spaces as '-'>`."""
    safe_name = re.sub(r"\s+", "-", file_name)
    return f"user-{user_id}/{timestamp_ms}-{safe_name}"


def format_bytes(size: int | None, decimals: int = 2) -> str:
    """Human-readable size, e.g. 1536 → '1.5 KB'."""
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, max(decimals, 0)):g} {units[exponent]}"


def validate_pdf(file: PdfFile, max_bytes: int) -> None:
    """
    Check type and size of a file picked for upload.

    Raises:
        ValidationError: If the file is empty, not a PDF, or too large
    """
    if not file.content:
        raise ValidationError("No PDF file provided", details={"file": "empty"})
    if file.content_type != PDF_CONTENT_TYPE:
        raise ValidationError("Only PDF files are allowed", details={"content_type": file.content_type})
    if file.size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationError(
            f"File size exceeds {limit_mb}MB limit",
            details={"size": file.size, "max_bytes": max_bytes},
        )


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class UploadService(BaseService):
    """Uploads PDFs into the notes bucket and manages the caller's uploads."""

    source = "upload"

    def __init__(
        self,
        notes: NoteRepository,
        storage: ObjectStoreClient,
        identity: IdentitySource,
        cache: CatalogCache,
        bucket: str,
        max_bytes: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._notes = notes
        self._storage = storage
        self._identity = identity
        self._cache = cache
        self._bucket = bucket
        self._max_bytes = max_bytes
        self._clock = clock

    def _require_user(self) -> AuthUser:
        user = self._identity.user
        if user is None:
            raise AuthRequired("Unauthorized - Please login")
        return user

    def _folder(self, user: AuthUser) -> str:
        return f"user-{user.id}"

    async def upload_note(self, file: PdfFile, metadata: NoteMetadata | None = None) -> Note:
        """
        Store a PDF and insert its note row.

        If the row insert fails the stored object is removed again.

        Raises:
            AuthRequired: If nobody is signed in
            ValidationError: If the file is not an acceptable PDF
            StorageError: If the object or its row cannot be stored
        """
        metadata = metadata or NoteMetadata()
        user = self._require_user()
        validate_pdf(file, self._max_bytes)

        path = storage_key(user.id, file.name, int(self._clock() * 1000))
        self._log_operation("Uploading note", path=path, size=file.size)

        await self._storage.upload(self._bucket, path, file.content, content_type=PDF_CONTENT_TYPE)
        public_url = self._storage.public_url(self._bucket, path)

        try:
            note = await self._execute_store_operation(
                "insert_note",
                self._notes.create(
                    title=path.rsplit("/", 1)[-1],
                    subject=metadata.subject or DEFAULT_SUBJECT,
                    chapter=metadata.chapter or DEFAULT_CHAPTER,
                    branch=metadata.branch or DEFAULT_BRANCH,
                    tags=list(metadata.tags),
                    file_url=public_url,
                    file_path=path,
                    user_id=user.id,
                    uploader_email=user.email,
                ),
                error_class=StorageError,
            )
        except StorageError:
            await self._storage.remove(self._bucket, [path])
            raise

        self._log_debug("Note uploaded", note_id=note.id)
        return note

    async def list_my_uploads(self) -> list[UploadedFile]:
        """
        Objects in the signed-in user's upload folder.

        Raises:
            AuthRequired: If nobody is signed in
        """
        user = self._require_user()
        folder = self._folder(user)
        objects = await self._storage.list_objects(self._bucket, prefix=folder)

        files = []
        for obj in objects:
            name = obj.get("name")
            if not name or obj.get("id") is None:
                continue
            path = f"{folder}/{name}"
            metadata = obj.get("metadata") or {}
            files.append(UploadedFile(
                name=name,
                path=path,
                size=metadata.get("size"),
                created_at=_parse_timestamp(obj.get("created_at")),
                public_url=self._storage.public_url(self._bucket, path),
            ))
        return files

    async def delete_upload(self, file_path: str) -> None:
        """
        Delete one of the signed-in user's uploads and its note row.

        Cached copies of the note, and bookmarks pointing at it, are dropped.

        Raises:
            AuthRequired: If nobody is signed in
            AuthorizationError: If the object is outside the user's folder
        """
        user = self._require_user()
        if not file_path.startswith(self._folder(user) + "/"):
            raise AuthorizationError("You can only delete your own uploads")

        self._log_operation("Deleting upload", path=file_path)
        await self._storage.remove(self._bucket, [file_path])
        await self._execute_store_operation(
            "delete_note",
            self._notes.delete_by_file_path(file_path),
            error_class=StorageError,
        )

        for note in self._cache.notes:
            if note.file_path == file_path:
                self._cache.forget_note(note.id)
