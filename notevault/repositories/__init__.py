"""Repositories: one per row store table."""

from notevault.repositories.bookmark import BookmarkRepository
from notevault.repositories.note import NoteRepository
from notevault.repositories.profile import ProfileRepository
from notevault.repositories.request import RequestRepository

__all__ = [
    "BookmarkRepository",
    "NoteRepository",
    "ProfileRepository",
    "RequestRepository",
]
