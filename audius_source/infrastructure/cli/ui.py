"""UI helpers for CLI interaction.

This module provides the Rich rendering of resolved Audius content and
the shared error handling for commands, keeping presentation apart from
resolution logic.
"""

from collections.abc import Callable
import functools
import json
from typing import Any, ParamSpec, TypeVar

from attrs import asdict
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import typer

from audius_source.config import get_logger
from audius_source.domain.entities import Collection, EmptyResult, LoadResult, Track

# Initialize console and logger
console = Console()
logger = get_logger(__name__).bind(service="cli")

P = ParamSpec("P")
R = TypeVar("R")


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Errors are logged with their traceback, shown to the user as a single
    red line and turned into exit code 1.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with integrated error handling
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except Exception as e:
                display_error(e, operation)
                raise typer.Exit(code=1) from e

    return wrapper


def display_error(error: Exception, operation: str) -> None:
    """Display error message with consistent formatting.

    Args:
        error: The exception that occurred
        operation: Description of the operation that failed
    """
    logger.opt(exception=error).error(f"Error during {operation}")
    console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {error}")


def format_duration(duration_ms: int | None) -> str:
    """Render milliseconds as ``m:ss``; unknown durations as ``unknown``."""
    if duration_ms is None:
        return "unknown"
    minutes, seconds = divmod(duration_ms // 1000, 60)
    return f"{minutes}:{seconds:02d}"


def result_to_dict(result: LoadResult) -> dict[str, Any]:
    """JSON-ready representation of a lookup result."""
    match result:
        case Track():
            return {"type": "track", **asdict(result)}
        case Collection():
            return {"type": str(result.kind), **asdict(result)}
        case _:
            return {"type": "empty"}


def display_track(track: Track) -> None:
    table = Table(title=f"[bold]{track.title}[/bold]", show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("ID", track.id)
    table.add_row("Artist", track.author)
    table.add_row("Duration", format_duration(track.duration_ms))
    table.add_row("URL", track.permalink)
    if track.artwork_url:
        table.add_row("Artwork", track.artwork_url)

    console.print(table)


def display_collection(collection: Collection) -> None:
    """Display a playlist, album or search result set as a track table."""
    if not collection.tracks:
        console.print(
            Panel(
                f"[yellow]{collection.title} has no playable tracks[/yellow]",
                title=f"[yellow]Empty {collection.kind}[/yellow]",
                border_style="yellow",
            )
        )
        return

    table = Table(
        title=f"[bold]{collection.title}[/bold]",
        caption=f"[dim]{len(collection.tracks)} tracks[/dim]",
        border_style="bright_blue",
        header_style="bold bright_blue",
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="magenta")
    table.add_column("Artist", style="cyan bold")
    table.add_column("Track", style="green")
    table.add_column("Duration", style="yellow", justify="right")

    for i, track in enumerate(collection.tracks, 1):
        table.add_row(
            str(i),
            track.id,
            track.author,
            track.title,
            format_duration(track.duration_ms),
        )

    console.print(table)


def display_result(result: LoadResult, output_format: str = "table") -> None:
    """Display any lookup result in the requested format."""
    if output_format == "json":
        console.print_json(json.dumps(result_to_dict(result)))
        return

    match result:
        case Track():
            display_track(result)
        case Collection():
            display_collection(result)
        case EmptyResult():
            console.print("[yellow]No results[/yellow]")
