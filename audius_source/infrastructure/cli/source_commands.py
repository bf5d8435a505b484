"""Audius source commands: resolve references, stream tracks, show provider."""

import asyncio
from pathlib import Path
from typing import Annotated

from rich.console import Console
import typer

from audius_source.application import AudiusSourceManager
from audius_source.config import get_logger
from audius_source.domain.entities import EmptyResult, LoadResult
from audius_source.infrastructure.cli.ui import command_error_handler, display_result

# Initialize console and logger
console = Console()
logger = get_logger(__name__).bind(service="cli")

OUTPUT_FORMATS = ("table", "json")


def register_source_commands(app: typer.Typer) -> None:
    """Register source commands with the Typer app."""
    app.command()(resolve)
    app.command()(stream)
    app.command()(provider)


async def _resolve(reference: str) -> LoadResult | None:
    async with await AudiusSourceManager.create() as source:
        return await source.load_item(reference)


async def _stream_to_file(track_id: str, output: Path) -> int | None:
    """Write a track's media bytes to ``output``; None when the id is unknown.

    Bytes go to a ``.part`` file that replaces ``output`` only once the
    whole stream has been copied.
    """
    async with await AudiusSourceManager.create() as source:
        track = await source.decode_track(track_id)
        if isinstance(track, EmptyResult):
            return None

        written = 0
        partial = output.with_name(f"{output.name}.part")
        try:
            async with source.open_stream(track) as media:
                with partial.open("wb") as fh:
                    async for chunk in media.iter_chunks():
                        fh.write(chunk)
                        written += len(chunk)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        partial.replace(output)

        logger.info(f"Wrote {written} bytes of track {track_id} to {output}")
        return written


async def _selected_provider() -> str | None:
    async with await AudiusSourceManager.create() as source:
        return source.provider.base_url if source.provider else None


@command_error_handler
def resolve(
    reference: Annotated[
        str,
        typer.Argument(help="Audius URL or audsearch:<query>"),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table or json"),
    ] = "table",
) -> None:
    """Resolve a track, playlist, album or search reference."""
    if output_format not in OUTPUT_FORMATS:
        console.print(f"[red]Unknown format '{output_format}'[/red]")
        raise typer.Exit(1)

    result = asyncio.run(_resolve(reference))
    if result is None:
        console.print(f"[yellow]Not an Audius reference:[/yellow] {reference}")
        raise typer.Exit(1)

    display_result(result, output_format)


@command_error_handler
def stream(
    track_id: Annotated[str, typer.Argument(help="Audius track id")],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="File to write the media bytes to"),
    ],
) -> None:
    """Open a track's stream and save the media bytes to a file."""
    written = asyncio.run(_stream_to_file(track_id, output))
    if written is None:
        console.print(f"[yellow]Track not found:[/yellow] {track_id}")
        raise typer.Exit(1)

    console.print(f"[green]✓ Wrote {written} bytes to {output}[/green]")


@command_error_handler
def provider() -> None:
    """Show the discovery provider selected at startup."""
    base_url = asyncio.run(_selected_provider())
    if base_url is None:
        console.print("[red]✗ No Audius discovery provider available[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Using provider[/green] {base_url}")
