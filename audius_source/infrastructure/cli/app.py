"""audius-source CLI - Main application entry point and app structure."""

from typing import Annotated

from rich.console import Console
import typer

from audius_source import __version__
from audius_source.config import get_logger, log_startup_info, setup_loguru_logger
from audius_source.infrastructure.cli.source_commands import register_source_commands

VERSION = __version__

# Initialize console and logger
console = Console()
logger = get_logger(__name__).bind(service="cli")

app = typer.Typer(
    help="audius-source - Resolve Audius references and stream tracks",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)

register_source_commands(app)


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"audius-source [bold]{VERSION}[/bold]")


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize audius-source CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)

    try:
        log_startup_info()
    except Exception as err:
        logger.exception("Error during startup")
        raise typer.Exit(1) from err


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
