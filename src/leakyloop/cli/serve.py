"""``leakyloop serve`` — run the rate-limited ``/hello`` server."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from leakyloop._internal.config import load_config
from leakyloop._internal.errors import LeakyLoopError
from leakyloop._internal.logging import setup_logging
from leakyloop.server.app import run_server

console = Console(stderr=True)


def serve_cmd(
    host: str | None = typer.Option(
        None,
        "--host",
        help="Interface to bind (default: $LEAKYLOOP_HOST or 0.0.0.0).",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to listen on (default: $LEAKYLOOP_PORT or 8080).",
        min=1,
        max=65535,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Serve /hello behind a per-client leaky-bucket rate limiter."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    try:
        config = load_config()
    except LeakyLoopError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    bind_host = host or config.host
    bind_port = port or config.port
    console.print(
        Panel(
            f"[bold]Endpoint:[/bold] http://{bind_host}:{bind_port}/hello",
            title="leakyloop",
            border_style="cyan",
        )
    )
    run_server(bind_host, bind_port)
