"""
Note Commands.

Browse the catalog, bookmark notes, and manage your own uploads.
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from notevault.cli.client import fail, open_session
from notevault.core.exceptions import ApplicationError
from notevault.core.pagination import PagedResult
from notevault.schemas.note import (
    CATEGORY_ALL,
    CATEGORY_BOOKMARKED,
    CATEGORY_COMMUNITY,
    Note,
    NoteMetadata,
)
from notevault.services.bookmark import ToggleOutcome
from notevault.services.upload import PdfFile, UploadedFile, format_bytes, suggest_metadata

app = typer.Typer(help="Browse and manage notes")
console = Console()


@app.command("list")
def list_notes(
    query: str = typer.Option("", "--query", "-q", help="Search titles and subjects"),
    category: str = typer.Option(
        CATEGORY_ALL,
        "--category",
        "-c",
        help="ALL, BOOKMARKED, COMMUNITY or a branch name",
    ),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
) -> None:
    """
    List notes, six per page.

    A search query ignores the category.

    Examples:
        notevault notes list
        notevault notes list -q physics
        notevault notes list -c CSE -p 2
    """
    asyncio.run(_list_notes(query, category, page))


async def _list_notes(query: str, category: str, page: int) -> None:
    async with open_session(load_catalog=True) as ctx:
        cache = ctx.cache
        if cache.notes_error is not None:
            if not cache.notes:
                raise fail(cache.notes_error)
            console.print(f"[yellow]Showing saved notes: {cache.notes_error.message}[/yellow]")

        browser = ctx.browser
        selectors = {CATEGORY_ALL, CATEGORY_BOOKMARKED, CATEGORY_COMMUNITY}
        browser.set_category(category.upper() if category.upper() in selectors else category)
        browser.set_query(query)
        if page != 1 and not browser.go_to_page(page):
            console.print(f"[red]Page {page} is out of range (1-{browser.total_pages})[/red]")
            raise typer.Exit(1)

        _display_notes(browser.view(), cache.bookmarks)


def _display_notes(result: PagedResult[Note], bookmarks: frozenset[str]) -> None:
    if result.is_empty:
        console.print("[dim]No notes found.[/dim]")
        return

    table = Table(title="Notes", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Subject")
    table.add_column("Chapter")
    table.add_column("Branch")
    table.add_column("★", justify="center")

    for note in result.items:
        table.add_row(
            note.id,
            note.display_title,
            note.subject or "-",
            note.chapter or "-",
            note.branch_bucket,
            "[yellow]★[/yellow]" if note.id in bookmarks else "",
        )

    console.print(table)
    console.print(f"[dim]Page {result.page} of {result.total_pages} ({result.total} notes)[/dim]")


@app.command()
def bookmark(
    note_id: str = typer.Argument(..., help="ID of the note to bookmark or unbookmark"),
) -> None:
    """
    Toggle a bookmark on a note.

    Examples:
        notevault notes bookmark 42
    """
    asyncio.run(_bookmark(note_id))


async def _bookmark(note_id: str) -> None:
    async with open_session() as ctx:
        user = ctx.auth.user
        if user is not None:
            await ctx.cache.load_bookmarks(user.id)

        result = await ctx.bookmarks.toggle_bookmark(note_id)

        if result.outcome is ToggleOutcome.COMMITTED:
            if result.bookmarked:
                console.print(f"[green]✓ Bookmarked note {note_id}[/green]")
            else:
                console.print(f"[green]✓ Removed bookmark from note {note_id}[/green]")
            return
        if result.outcome is ToggleOutcome.BUSY:
            console.print(f"[yellow]A bookmark change for note {note_id} is still in progress[/yellow]")
            raise typer.Exit(1)
        if result.outcome is ToggleOutcome.AUTH_REQUIRED:
            raise typer.Exit(1)
        raise fail(result.error)


@app.command()
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF file to upload"),
    subject: str = typer.Option("", "--subject", "-s", help="Subject (guessed from the file name if omitted)"),
    chapter: str = typer.Option("", "--chapter", help="Chapter (guessed from the file name if omitted)"),
    branch: str = typer.Option("", "--branch", "-b", help="Branch, e.g. CSE"),
    tags: str = typer.Option("", "--tags", "-t", help="Comma-separated tags"),
) -> None:
    """
    Upload a PDF as a new note.

    Examples:
        notevault notes upload physics_wave-optics.pdf -b ECE -t "exam,unit 3"
    """
    suggested_subject, suggested_chapter = suggest_metadata(path.name)
    metadata = NoteMetadata(
        subject=subject or suggested_subject,
        chapter=chapter or suggested_chapter,
        branch=branch,
        tags=tags,
    )
    asyncio.run(_upload(PdfFile.from_path(path), metadata))


async def _upload(file: PdfFile, metadata: NoteMetadata) -> None:
    async with open_session() as ctx:
        try:
            note = await ctx.uploads.upload_note(file, metadata)
        except ApplicationError as e:
            raise fail(e) from e

    console.print(f"[green]✓ Uploaded {note.display_title}[/green] ({format_bytes(file.size)})")
    if note.file_url:
        console.print(f"[dim]{note.file_url}[/dim]")


@app.command()
def mine() -> None:
    """
    List the PDFs you uploaded.

    Examples:
        notevault notes mine
    """
    asyncio.run(_mine())


async def _mine() -> None:
    async with open_session() as ctx:
        try:
            files = await ctx.uploads.list_my_uploads()
        except ApplicationError as e:
            raise fail(e) from e

    _display_uploads(files)


def _display_uploads(files: list[UploadedFile]) -> None:
    if not files:
        console.print("[dim]You have not uploaded anything yet.[/dim]")
        return

    table = Table(title="My Uploads", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Uploaded")
    table.add_column("Path", style="dim")

    for file in files:
        table.add_row(
            file.display_name,
            format_bytes(file.size),
            file.created_at.strftime("%Y-%m-%d") if file.created_at else "-",
            file.path,
        )
    console.print(table)


@app.command()
def delete(
    file_path: str = typer.Argument(..., help="Storage path as shown by 'notes mine'"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """
    Delete one of your uploads.

    Examples:
        notevault notes delete user-123/1700000000000-notes.pdf
    """
    if not yes:
        typer.confirm(f"Delete {file_path}?", abort=True)
    asyncio.run(_delete(file_path))


async def _delete(file_path: str) -> None:
    async with open_session() as ctx:
        try:
            await ctx.uploads.delete_upload(file_path)
        except ApplicationError as e:
            raise fail(e) from e

    console.print(f"[green]✓ Deleted {file_path}[/green]")
