"""ytscribe doctor/env commands — diagnostics and API environment selection."""

from __future__ import annotations

import asyncio
from typing import Annotated, Optional

import typer
from rich.table import Table

from ytscribe.api.diagnostics import config_summary
from ytscribe.cli.utils import load_cli_config, open_services
from ytscribe.core.config import ENVIRONMENTS
from ytscribe.utils.console import console


def doctor(
    env: Annotated[
        Optional[str],
        typer.Option("--env", help="API environment to check: production or local."),
    ] = None,
) -> None:
    """Check configuration, connectivity, server health and the API key."""
    config, store = load_cli_config(env)

    async def _probe():
        async with open_services(config, store) as services:
            diagnostics = services.diagnostics
            return await asyncio.gather(
                diagnostics.check_connectivity(),
                diagnostics.check_health(),
                diagnostics.check_api_auth(),
            )

    connectivity, health, api_auth = asyncio.run(_probe())
    summary = config_summary(config.api)

    table = Table(title="Diagnostics")
    table.add_column("Check", style="bold cyan")
    table.add_column("Result")

    table.add_row("Environment", f"{summary['environment']} ({summary['base_url']})")
    key_style = "green" if summary["has_api_key"] else "red"
    table.add_row("API key", f"[{key_style}]{summary['api_key_preview']}[/{key_style}]")

    if connectivity.connected:
        table.add_row(
            "Connectivity",
            f"[green]connected[/green] [dim]{connectivity.latency_ms} ms, "
            f"HTTP {connectivity.status}[/dim]",
        )
    else:
        table.add_row("Connectivity", f"[red]unreachable[/red] [dim]{connectivity.error}[/dim]")

    if health.healthy:
        table.add_row("Health", "[green]healthy[/green]")
    else:
        reason = f"HTTP {health.status}" if health.status else health.error
        table.add_row("Health", f"[red]unhealthy[/red] [dim]{reason}[/dim]")

    if api_auth.authenticated:
        table.add_row("API auth", f"[green]accepted[/green] [dim]HTTP {api_auth.status}[/dim]")
    else:
        reason = f"HTTP {api_auth.status}" if api_auth.status else api_auth.error
        table.add_row("API auth", f"[red]rejected[/red] [dim]{reason}[/dim]")

    session = "logged in" if store.load_credentials() else "not logged in"
    table.add_row("Session", session)

    console.print(table)
    if not (connectivity.connected and health.healthy and api_auth.authenticated):
        raise typer.Exit(1)


def env(
    environment: Annotated[
        Optional[str],
        typer.Argument(help="production or local. Omit to show the current one."),
    ] = None,
) -> None:
    """Show or persist the API environment used by other commands."""
    if environment is None:
        config, _ = load_cli_config()
        console.print(f"{config.api.environment} [dim]({config.api.base_url})[/dim]")
        return

    if environment not in ENVIRONMENTS:
        choices = ", ".join(ENVIRONMENTS)
        console.print(f"[red]Unknown environment {environment!r}. Choose from: {choices}[/red]")
        raise typer.Exit(1)

    config, store = load_cli_config(environment)
    store.save_environment(environment)
    console.print(f"[green]Using {environment}[/green] [dim]({config.api.base_url})[/dim]")
