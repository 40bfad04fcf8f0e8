"""ytscribe login/register/logout/whoami commands."""

from __future__ import annotations

import asyncio
from typing import Annotated, Optional

import typer
from rich.markup import escape

from ytscribe.cli.utils import fail, load_cli_config, open_services
from ytscribe.core.errors import ScribeError
from ytscribe.core.models import UserProfile
from ytscribe.utils.console import console


def login(
    email: Annotated[str, typer.Option("--email", "-e", prompt=True, help="Account email.")],
    password: Annotated[
        str, typer.Option("--password", "-p", prompt=True, hide_input=True, help="Password.")
    ],
) -> None:
    """Log in and store the session credentials."""
    config, store = load_cli_config()

    async def _login() -> UserProfile | None:
        async with open_services(config, store) as services:
            await services.tokens.login(email, password)
            return await services.tokens.current_user()

    try:
        user = asyncio.run(_login())
    except ScribeError as e:
        fail(e)
    console.print(f"[green]Logged in[/green] as {escape(_display(user, email))}")


def register(
    email: Annotated[str, typer.Option("--email", "-e", prompt=True, help="Account email.")],
    password: Annotated[
        str,
        typer.Option(
            "--password",
            "-p",
            prompt=True,
            hide_input=True,
            confirmation_prompt=True,
            help="Password.",
        ),
    ],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Display name.")] = None,
) -> None:
    """Create an account and log in."""
    config, store = load_cli_config()

    async def _register() -> UserProfile | None:
        async with open_services(config, store) as services:
            return await services.tokens.register(email, password, name)

    try:
        user = asyncio.run(_register())
    except ScribeError as e:
        fail(e)
    console.print(f"[green]Account created[/green] for {escape(_display(user, email))}")


def logout() -> None:
    """Forget the stored session."""
    config, store = load_cli_config()

    async def _logout() -> None:
        async with open_services(config, store) as services:
            services.tokens.logout()

    asyncio.run(_logout())
    console.print("Logged out.")


def whoami() -> None:
    """Show the logged-in account, refreshing the session if needed."""
    config, store = load_cli_config()

    async def _whoami() -> UserProfile | None:
        async with open_services(config, store) as services:
            if not services.tokens.is_authenticated:
                return None
            return await services.tokens.current_user(refresh=True)

    try:
        user = asyncio.run(_whoami())
    except ScribeError as e:
        fail(e)

    if user is None:
        console.print("Not logged in.")
        raise typer.Exit(1)
    console.print(f"[bold]{escape(_display(user, user.email))}[/bold]")
    if user.created_at:
        console.print(f"[dim]Member since {user.created_at}[/dim]")


def _display(user: UserProfile | None, fallback: str) -> str:
    if user is None:
        return fallback
    return f"{user.name} <{user.email}>" if user.name else user.email
