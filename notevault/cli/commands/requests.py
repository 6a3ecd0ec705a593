"""
Request Commands.

Post "missing note" requests and answer them with a PDF.
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from notevault.cli.client import fail, open_session
from notevault.core.exceptions import ApplicationError
from notevault.services.upload import PdfFile

app = typer.Typer(help="Community note requests")
console = Console()


@app.command("list")
def list_requests() -> None:
    """
    Show the most recent requests.

    Examples:
        notevault requests list
    """
    asyncio.run(_list_requests())


async def _list_requests() -> None:
    async with open_session() as ctx:
        try:
            entries = await ctx.requests.list_recent()
        except ApplicationError as e:
            raise fail(e) from e

    if not entries:
        console.print("[dim]No requests yet.[/dim]")
        return

    table = Table(title="Requests", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Requested by")
    table.add_column("Status")

    for entry in entries:
        color = "yellow" if entry.is_open else "green"
        table.add_row(
            entry.id,
            entry.title,
            (entry.requested_by_email or "-").split("@")[0],
            f"[{color}]{entry.status.value}[/{color}]",
        )
    console.print(table)


@app.command()
def contributions() -> None:
    """
    Show notes contributed in answer to requests.

    Examples:
        notevault requests contributions
    """
    asyncio.run(_contributions())


async def _contributions() -> None:
    async with open_session() as ctx:
        try:
            notes = await ctx.requests.list_contributions()
        except ApplicationError as e:
            raise fail(e) from e

    if not notes:
        console.print("[dim]No contributions yet.[/dim]")
        return

    table = Table(title="Community Contributions", show_header=True)
    table.add_column("Title", style="cyan")
    table.add_column("Contributor")
    table.add_column("Details")

    for note in notes:
        table.add_row(
            note.title,
            (note.uploader_email or "-").split("@")[0],
            note.description or "-",
        )
    console.print(table)


@app.command()
def create(
    title: str = typer.Argument(..., help="Title of the note you are looking for"),
) -> None:
    """
    Ask the community for a missing note.

    Examples:
        notevault requests create "DBMS unit 4 normalization"
    """
    asyncio.run(_create(title))


async def _create(title: str) -> None:
    async with open_session() as ctx:
        try:
            entry = await ctx.requests.create_request(title)
        except ApplicationError as e:
            raise fail(e) from e

    console.print(f"[green]✓ Request posted[/green] [dim](id {entry.id})[/dim]")


@app.command()
def fulfill(
    request_id: str = typer.Argument(..., help="ID of the request to answer"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF file to contribute"),
    description: str = typer.Option("", "--description", "-m", help="Extra details for the requester"),
) -> None:
    """
    Answer a request with a PDF.

    Examples:
        notevault requests fulfill 7 normalization.pdf -m "Covers 1NF to BCNF"
    """
    asyncio.run(_fulfill(request_id, PdfFile.from_path(path), description))


async def _fulfill(request_id: str, file: PdfFile, description: str) -> None:
    async with open_session() as ctx:
        try:
            entry = await ctx.requests.get_request(request_id)
            await ctx.requests.fulfill_request(entry, file, description)
        except ApplicationError as e:
            raise fail(e) from e

    console.print(f"[green]✓ Request '{entry.title}' fulfilled. Thank you![/green]")
