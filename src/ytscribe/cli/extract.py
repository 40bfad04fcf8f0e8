"""ytscribe extract command — fetch transcripts for one or more videos."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.table import Table

from ytscribe.cli.utils import expand_inputs, fail, load_cli_config, open_services
from ytscribe.core.errors import ScribeError
from ytscribe.core.events import RetryEvent
from ytscribe.core.session import TranscriptSession
from ytscribe.transcript.export import default_output_path, save_ass, save_transcript
from ytscribe.transcript.formats import (
    FORMATS,
    format_duration,
    format_upload_date,
    format_view_count,
)
from ytscribe.utils.console import console


def extract(
    inputs: Annotated[
        list[str],
        typer.Argument(help="Video URLs, or .txt files with one URL per line."),
    ],
    fmt: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: txt, paragraphs, srt, vtt, json, ass."),
    ] = "txt",
    language: Annotated[
        Optional[str],
        typer.Option("--language", "-l", help="Language to show (e.g. en, de, pt-BR)."),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to a file instead of stdout."),
    ] = None,
    list_languages: Annotated[
        bool,
        typer.Option("--list-languages", help="Show the languages available for the video."),
    ] = False,
    env: Annotated[
        Optional[str],
        typer.Option("--env", help="API environment: production or local."),
    ] = None,
) -> None:
    """Extract the transcript of a video and print or save it.

    All languages are fetched in one request, so --language only picks
    which one to show.
    """
    if fmt not in FORMATS and fmt != "ass":
        console.print(f"[red]Unknown format {fmt!r}. Choose from: {', '.join(FORMATS)}, ass[/red]")
        raise typer.Exit(1)

    expanded = expand_inputs(inputs)
    if not expanded:
        console.print("[red]No inputs resolved. Check your URLs or list files.[/red]")
        raise typer.Exit(1)

    config, store = load_cli_config(env)

    # Single input — print to stdout unless --output is given
    if len(expanded) == 1:
        try:
            asyncio.run(
                _extract_single(expanded[0], config, store, fmt, language, output, list_languages)
            )
        except ScribeError as e:
            fail(e)
        return

    # Batch mode — every transcript goes to its own file
    if output is not None:
        console.print("[yellow]--output ignored in batch mode (auto-naming per video).[/yellow]")

    results = asyncio.run(_extract_batch(expanded, config, store, fmt, language))

    table = Table(title=f"Batch Results ({len(expanded)} videos)")
    table.add_column("Input", style="cyan", max_width=50)
    table.add_column("Status")
    table.add_column("Output", style="dim")
    for inp, status, out in results:
        style = "green" if status == "ok" else "red"
        table.add_row(inp, f"[{style}]{escape(status)}[/{style}]", out)
    console.print(table)

    if any(status != "ok" for _, status, _ in results):
        raise typer.Exit(1)


async def _extract_single(url, config, store, fmt, language, output, list_languages) -> None:
    async with open_services(config, store) as services:
        session = TranscriptSession(services.extractor)
        with console.status(f"Extracting transcript for {url}...") as status:

            def on_retry(event: RetryEvent) -> None:
                status.update(
                    f"Retrying ({event.attempt_index}/{event.max_attempts}) "
                    f"in {event.delay_ms / 1000:.0f}s..."
                )

            result = await session.submit(url, on_retry=on_retry)

    if result is None:
        return

    _print_summary(session)
    if list_languages:
        _print_languages(session)

    if language and session.switch_language(language) is None:
        available = ", ".join(result.variants) or "none"
        console.print(
            f"[yellow]Language {language!r} not available (have: {available}); "
            f"showing {session.cache.selected_language}.[/yellow]"
        )

    _write_output(session, fmt, output)


async def _extract_batch(inputs, config, store, fmt, language) -> list[tuple[str, str, str]]:
    results: list[tuple[str, str, str]] = []
    async with open_services(config, store) as services:
        session = TranscriptSession(services.extractor)
        for i, url in enumerate(inputs, 1):
            console.print(f"\n[bold]({i}/{len(inputs)}) {url}[/bold]")
            try:
                result = await session.submit(url)
            except ScribeError as e:
                results.append((url, e.message, "-"))
                continue
            if result is None:
                continue
            if language:
                session.switch_language(language)
            path = default_output_path(result.source_id, session.cache.selected_language, fmt)
            _write_output(session, fmt, path)
            results.append((url, "ok", str(path)))
    return results


def _write_output(session: TranscriptSession, fmt: str, output: Path | None) -> None:
    if fmt == "ass":
        variant = session.transcript
        if variant is None:
            console.print("[red]ASS output needs a segmented transcript.[/red]")
            raise typer.Exit(1)
        result = session.result
        path = output or default_output_path(
            result.source_id if result else None, variant.language_code, fmt
        )
        save_ass(variant.segments, path)
        console.print(f"[green]Saved:[/green] {path}")
        return

    content = session.content(fmt) or ""
    if output is None:
        typer.echo(content)
        return
    save_transcript(content, output)
    console.print(f"[green]Saved:[/green] {output}")


def _print_summary(session: TranscriptSession) -> None:
    result = session.result
    if result is None:
        return
    meta = result.metadata
    if meta.title:
        console.print(f"[bold]{escape(meta.title)}[/bold]")
    details = [
        escape(meta.channel) if meta.channel else None,
        format_duration(meta.duration_seconds),
        f"{format_view_count(meta.view_count)} views" if meta.view_count is not None else None,
        format_upload_date(meta.upload_date),
    ]
    line = " · ".join(d for d in details if d)
    if line:
        console.print(f"[dim]{line}[/dim]")

    variant = session.transcript
    if variant is not None:
        kind = "auto-generated" if variant.is_generated else "manual"
        console.print(
            f"[dim]Language:[/dim] {escape(variant.display_name)} ({variant.language_code}, {kind})"
        )
        if variant.is_placeholder:
            console.print(
                "[yellow]This video is restricted; "
                "the server returned placeholder text.[/yellow]"
            )
    if result.saved:
        console.print("[dim]Saved to your account.[/dim]")


def _print_languages(session: TranscriptSession) -> None:
    table = Table(title="Available Languages")
    table.add_column("Code", style="bold cyan")
    table.add_column("Language")
    table.add_column("Type")
    for option in session.cache.available_languages:
        table.add_row(
            option.code, option.name, "auto-generated" if option.is_generated else "manual"
        )
    console.print(table)
