"""
Session helpers for CLI commands.

Each command opens one application context, resolves the saved login, runs,
and closes the context again.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import typer
from rich.console import Console

from notevault.context import AppContext
from notevault.core.exceptions import ApplicationError
from notevault.core.logging import get_logger, log_with_source

logger = get_logger(__name__)
console = Console()


def login_hint() -> None:
    """Shown whenever an action needs a signed-in user."""
    console.print("[yellow]Please log in first:[/yellow] notevault auth login")


def get_context() -> AppContext:
    """Build the application context for one command."""
    return AppContext.create(on_auth_required=login_hint)


@asynccontextmanager
async def open_session(load_catalog: bool = False) -> AsyncIterator[AppContext]:
    """
    Open a context with the saved login resolved.

    Args:
        load_catalog: Also restore the catalog snapshot and refresh notes and
            bookmarks from the backend
    """
    ctx = get_context()
    try:
        await ctx.auth.initialize()
        if load_catalog:
            ctx.cache.restore()
            await ctx.refresh()
        yield ctx
    finally:
        await ctx.close()


def fail(error: ApplicationError) -> typer.Exit:
    """Print an application error and return the exit to raise."""
    log_with_source(logger, "cli", "debug", "Command failed", code=error.code, error=error.message)
    console.print(f"[red]Error: {error.message}[/red]")
    return typer.Exit(1)
