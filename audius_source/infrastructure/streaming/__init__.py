"""Deferred stream resolution and seekable HTTP media streams."""

from audius_source.infrastructure.streaming.http_stream import HttpByteStream
from audius_source.infrastructure.streaming.stream_handle import AudiusStreamHandle

__all__ = ["AudiusStreamHandle", "HttpByteStream"]
