"""Main Typer application — entry point for the ``leakyloop`` CLI."""

from __future__ import annotations

import typer

from leakyloop import __version__
from leakyloop.cli.poll import poll_cmd
from leakyloop.cli.serve import serve_cmd

app = typer.Typer(
    name="leakyloop",
    help="Poll an HTTP endpoint forever, or serve a rate-limited one.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("poll", help="GET the target URL in a fixed-delay loop and print each body.")(poll_cmd)
app.command("serve", help="Serve /hello behind a leaky-bucket rate limiter.")(serve_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"leakyloop {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """leakyloop — poll an HTTP endpoint forever."""
