"""ytscribe CLI entry point."""

from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

from ytscribe import __version__
from ytscribe.cli.auth import login, logout, register, whoami
from ytscribe.cli.doctor import doctor, env
from ytscribe.cli.extract import extract

app = typer.Typer(
    name="ytscribe",
    help="ytscribe — Video transcripts in text, paragraph, SRT and VTT form.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ytscribe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """ytscribe — Video transcripts in text, paragraph, SRT and VTT form."""
    # Load .env file for the API key (YTSCRIBE_API__API_KEY)
    # Does not override existing env vars — shell exports take precedence
    load_dotenv(override=False)


app.command("extract")(extract)
app.command("login")(login)
app.command("register")(register)
app.command("logout")(logout)
app.command("whoami")(whoami)
app.command("doctor")(doctor)
app.command("env")(env)
