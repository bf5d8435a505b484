"""Application layer exposing the Audius source to a playback host."""

from audius_source.application.source_manager import AudiusSourceManager

__all__ = ["AudiusSourceManager"]
