"""``leakyloop poll`` — run the poller, printing a counter and a body per iteration."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from leakyloop._internal.config import load_config
from leakyloop._internal.errors import LeakyLoopError
from leakyloop._internal.logging import setup_logging
from leakyloop.metrics.stats import StatsSummary
from leakyloop.poller.loop import Poller

console = Console(stderr=True)


def _print_summary(summary: StatsSummary) -> None:
    """Print a latency and status table to stderr.

    Args:
        summary: Statistics for the finished run.
    """
    table = Table(
        title="Poll Complete",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Requests", str(summary.total_requests))
    table.add_row("Non-2xx", str(summary.non_2xx))
    for status, count in summary.status_counts.items():
        table.add_row(f"HTTP {status}", str(count))
    table.add_row("Min Latency", f"{summary.latency_min:.1f}ms")
    table.add_row("Mean Latency", f"{summary.latency_mean:.1f}ms")
    table.add_row("p50 Latency", f"{summary.latency_p50:.1f}ms")
    table.add_row("p95 Latency", f"{summary.latency_p95:.1f}ms")
    table.add_row("p99 Latency", f"{summary.latency_p99:.1f}ms")
    table.add_row("Max Latency", f"{summary.latency_max:.1f}ms")

    console.print(table)


def poll_cmd(
    url: str | None = typer.Option(
        None,
        "--url",
        help="URL to GET each iteration (default: $LEAKYLOOP_URL or http://localhost:8080/hello).",
    ),
    delay: float | None = typer.Option(
        None,
        "--delay",
        "-d",
        help="Seconds to sleep before each request (default: $LEAKYLOOP_DELAY or 0.1).",
        min=0.0,
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Request timeout in seconds (default: $LEAKYLOOP_TIMEOUT or none).",
        min=0.001,
    ),
    iterations: int | None = typer.Option(
        None,
        "--iterations",
        "-n",
        help="Stop after this many iterations and print a summary. Runs forever if omitted.",
        min=1,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging on stderr.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit log records as JSON lines.",
    ),
) -> None:
    """Poll the target URL with a fixed delay, printing counter and body each time."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING, json_format=json_logs)

    try:
        config = load_config()
        poller = Poller(
            url or config.url,
            delay=config.delay if delay is None else delay,
            timeout=config.timeout if timeout is None else timeout,
            write_line=typer.echo,
        )
        stats = asyncio.run(poller.run(max_iterations=iterations))
    except LeakyLoopError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    _print_summary(stats.summary())
