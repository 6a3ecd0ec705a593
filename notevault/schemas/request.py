"""
Request Schemas.

"Missing note" tickets posted by students and fulfilled by contributions.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from notevault.schemas.base import RowModel


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    FULFILLED = "FULFILLED"


class RequestEntry(RowModel):
    """A row of the `requests` table."""

    id: str
    title: str
    requested_by_email: str | None = None
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @property
    def is_open(self) -> bool:
        return self.status is RequestStatus.PENDING


class RequestCreate(BaseModel):
    """Schema for posting a new request."""

    title: str = Field(..., min_length=1, max_length=255)

    @field_validator("title", mode="before")
    @classmethod
    def _strip(cls, value: object) -> str:
        return str(value).strip()
