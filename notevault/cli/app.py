"""
NoteVault CLI.

Browse, bookmark and share study notes from the terminal.
Built with Typer for type-safe commands and Rich for formatted output.

Usage:
    notevault --help                          # Show help

    # Notes
    notevault notes list -q physics           # Search notes
    notevault notes list -c BOOKMARKED        # Your bookmarks
    notevault notes bookmark 42               # Toggle a bookmark
    notevault notes upload optics.pdf         # Upload a PDF
    notevault notes mine                      # Your uploads
    notevault notes delete <path>             # Delete an upload

    # Community requests
    notevault requests list
    notevault requests create "DBMS unit 4"
    notevault requests fulfill 7 dbms.pdf

    # Account
    notevault auth register
    notevault auth login
    notevault auth whoami
    notevault auth logout

Options:
    --verbose, -v     Enable verbose output
    --debug, -d       Enable debug mode (detailed logging)
    --help            Show help message
"""

import typer
from rich.console import Console

from notevault.cli.commands import auth_app, notes_app, requests_app
from notevault.core.config import validate_project_root
from notevault.core.logging import setup_logging

app = typer.Typer(
    name="notevault",
    help="NoteVault CLI - browse, bookmark and share study notes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(notes_app, name="notes")
app.add_typer(requests_app, name="requests")
app.add_typer(auth_app, name="auth")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    NoteVault CLI.

    Notes, bookmarks, uploads and community requests.
    """
    validate_project_root()

    if debug:
        setup_logging(level="DEBUG", format_type="console")
        console.print("[dim]Debug mode enabled[/dim]")
    elif verbose:
        setup_logging(level="INFO", format_type="console")
    else:
        setup_logging(level="WARNING", format_type="console")


if __name__ == "__main__":
    app()
