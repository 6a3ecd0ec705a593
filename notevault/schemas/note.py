"""
Note Schemas.

Pydantic schemas for shared study notes and their upload metadata.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from notevault.schemas.base import RowModel

CONTRIBUTION_SUBJECT = "CONTRIBUTION"
COMMUNITY_BRANCH = "COMMUNITY"
UNCATEGORIZED_BRANCH = "UNCATEGORIZED"

CATEGORY_ALL = "ALL"
CATEGORY_BOOKMARKED = "BOOKMARKED"
CATEGORY_COMMUNITY = "COMMUNITY"


def unique_tags(tags: list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
    """Strip, drop blanks and de-duplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or ():
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


def parse_tags(raw: str | None) -> tuple[str, ...]:
    """Parse a comma-separated tag string as typed into the upload form."""
    if not raw:
        return ()
    return unique_tags(raw.split(","))


class Note(RowModel):
    """A shared document record as stored in the `notes` table."""

    id: str
    title: str
    subject: str = ""
    chapter: str | None = None
    branch: str | None = None
    tags: tuple[str, ...] = ()
    file_url: str | None = None
    file_path: str | None = None
    user_id: str | None = None
    uploader_email: str | None = None
    description: str | None = None
    created_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("subject", mode="before")
    @classmethod
    def _coerce_subject(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return parse_tags(value)
        return unique_tags(list(value))

    @property
    def display_title(self) -> str:
        """Title with the generated `<timestamp>-` prefix removed."""
        _, sep, rest = self.title.partition("-")
        if sep and rest:
            return rest
        return self.title

    @property
    def branch_bucket(self) -> str:
        """Branch used for category filtering; absent means uncategorized."""
        return self.branch or UNCATEGORIZED_BRANCH

    @property
    def is_contribution(self) -> bool:
        return self.subject == CONTRIBUTION_SUBJECT


class NoteMetadata(BaseModel):
    """Metadata entered alongside an uploaded PDF."""

    subject: str = Field(default="", max_length=255)
    chapter: str = Field(default="", max_length=255)
    branch: str = Field(default="", max_length=64)
    tags: tuple[str, ...] = ()

    @field_validator("subject", "chapter", "branch", mode="before")
    @classmethod
    def _strip(cls, value: object) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return parse_tags(value)
        return unique_tags(list(value))
