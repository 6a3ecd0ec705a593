"""
Auth Commands.

Sign up, sign in and out. The session is kept between commands.
"""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel

from notevault.cli.client import fail, open_session
from notevault.core.exceptions import ApplicationError

app = typer.Typer(help="Account commands")
console = Console()


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Account email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Account password"),
) -> None:
    """
    Sign in with email and password.

    Examples:
        notevault auth login -e student@example.edu
    """
    asyncio.run(_login(email, password))


async def _login(email: str, password: str) -> None:
    async with open_session() as ctx:
        try:
            user = await ctx.auth.login(email, password)
        except ApplicationError as e:
            raise fail(e) from e

    console.print(f"[green]✓ Signed in as {user.email}[/green]")


@app.command()
def register(
    fullname: str = typer.Option(..., "--name", "-n", prompt="Full name", help="Your full name"),
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Account email"),
    university: str = typer.Option(..., "--university", "-u", prompt=True, help="Your university"),
    password: str = typer.Option(
        ...,
        "--password",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="At least 6 characters",
    ),
) -> None:
    """
    Create an account.

    A confirmation email is sent before you can sign in.
    """
    asyncio.run(_register(fullname, email, password, university))


async def _register(fullname: str, email: str, password: str, university: str) -> None:
    async with open_session() as ctx:
        try:
            message = await ctx.auth.register(
                fullname=fullname,
                email=email,
                password=password,
                university=university,
            )
        except ApplicationError as e:
            raise fail(e) from e

    console.print(f"[green]{message}[/green]")


@app.command()
def logout() -> None:
    """Sign out and forget the saved session."""
    asyncio.run(_logout())


async def _logout() -> None:
    async with open_session() as ctx:
        if not ctx.auth.is_authenticated:
            console.print("[dim]Not signed in.[/dim]")
            return
        await ctx.auth.logout()

    console.print("[green]✓ Signed out[/green]")


@app.command()
def whoami() -> None:
    """Show the signed-in account."""
    asyncio.run(_whoami())


async def _whoami() -> None:
    async with open_session() as ctx:
        user = ctx.auth.user

    if user is None:
        console.print("[dim]Not signed in (guest).[/dim]")
        return
    console.print(Panel(f"[bold]{user.email or '-'}[/bold]\nID: {user.id}", title="Signed in"))
