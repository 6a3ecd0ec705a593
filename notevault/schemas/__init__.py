"""Pydantic schemas for notes, bookmarks, requests and identities."""

from notevault.schemas.auth import AuthUser, LoginForm, RegisterForm
from notevault.schemas.bookmark import Bookmark
from notevault.schemas.note import Note, NoteMetadata
from notevault.schemas.request import RequestCreate, RequestEntry, RequestStatus

__all__ = [
    "AuthUser",
    "Bookmark",
    "LoginForm",
    "Note",
    "NoteMetadata",
    "RegisterForm",
    "RequestCreate",
    "RequestEntry",
    "RequestStatus",
]
