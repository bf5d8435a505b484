"""Infrastructure layer: upstream connectors, media streaming and the CLI."""
