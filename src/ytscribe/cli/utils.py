"""Shared CLI utilities."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, NoReturn

import httpx
import typer
from rich.markup import escape

from ytscribe.auth.storage import StateStore
from ytscribe.core.config import ENVIRONMENTS, ScribeConfig, load_config
from ytscribe.core.errors import ScribeError, SessionExpired
from ytscribe.core.session import Services, create_services
from ytscribe.utils.console import console


def expand_inputs(inputs: list[str]) -> list[str]:
    """Expand URL list files into individual URLs."""
    expanded = []
    for inp in inputs:
        # URL — pass through
        if inp.startswith(("http://", "https://")):
            expanded.append(inp)
            continue

        path = Path(inp)

        # .txt file — read as URL list (one per line)
        if path.suffix == ".txt" and path.is_file():
            for line in path.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    expanded.append(line)
            continue

        # Bare video IDs and anything else go to the server as-is
        expanded.append(inp)

    return expanded


def load_cli_config(
    environment: str | None = None, **overrides: object
) -> tuple[ScribeConfig, StateStore]:
    """Load config and state, applying the persisted API environment.

    An explicit ``environment`` wins over the persisted one.
    """
    config = load_config(**overrides)
    store = StateStore(config.state_file)
    env = environment or store.load_environment()
    if env is not None:
        if env not in ENVIRONMENTS:
            choices = ", ".join(ENVIRONMENTS)
            console.print(f"[red]Unknown environment {env!r}. Choose from: {choices}[/red]")
            raise typer.Exit(1)
        config.api.environment = env
    return config, store


@asynccontextmanager
async def open_services(config: ScribeConfig, store: StateStore) -> AsyncIterator[Services]:
    async with httpx.AsyncClient(timeout=config.api.timeout) as http:
        yield create_services(config, http, store)


def fail(error: ScribeError) -> NoReturn:
    """Print a classified error and exit 1."""
    message = escape(error.message)
    if isinstance(error, SessionExpired):
        console.print(f"[red]{message}[/red] Run [bold]ytscribe login[/bold].")
    elif error.retries_exhausted:
        attempts = len(error.attempts)
        console.print(f"[red]{message}[/red] [dim](gave up after {attempts} attempts)[/dim]")
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)
