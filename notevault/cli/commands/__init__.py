"""
CLI Commands.

Organized by feature area.
"""

from notevault.cli.commands.auth import app as auth_app
from notevault.cli.commands.notes import app as notes_app
from notevault.cli.commands.requests import app as requests_app

__all__ = [
    "auth_app",
    "notes_app",
    "requests_app",
]
