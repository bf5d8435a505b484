"""Command line interface for audius-source."""

from audius_source.infrastructure.cli.app import app, main

__all__ = ["app", "main"]
