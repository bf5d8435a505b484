"""Resolver and stream protocol definitions.

These protocols describe what a playback host relies on: a metadata resolver
turning references into Tracks and Collections, a deferred stream handle per
track, and the seekable byte source the handle opens. AudiusConnector,
AudiusStreamHandle and HttpByteStream implement them.
"""

from contextlib import AbstractAsyncContextManager
import io
from typing import Protocol, TypeAlias, runtime_checkable

from audius_source.domain.entities import Collection, EmptyResult, Track
from audius_source.infrastructure.connectors.provider_selector import Provider

TrackResult: TypeAlias = Track | EmptyResult
CollectionResult: TypeAlias = Collection | EmptyResult


@runtime_checkable
class ByteSource(Protocol):
    """Seekable async byte source handed to a decoder."""

    content_length: int | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...

    async def seek(self, offset: int, whence: int = io.SEEK_SET) -> int: ...

    def tell(self) -> int: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class MetadataResolver(Protocol):
    """Turns classified references into Tracks and Collections."""

    connector_name: str
    provider: Provider | None

    async def resolve_track_url(self, url: str) -> TrackResult: ...

    async def get_track(self, track_id: str) -> TrackResult: ...

    async def search(self, query: str) -> CollectionResult: ...

    async def load_playlist(self, url: str) -> CollectionResult: ...

    async def load_album(self, url: str) -> CollectionResult: ...


@runtime_checkable
class StreamHandle(Protocol):
    """Deferred access to one track's media bytes."""

    track_id: str

    async def resolve_stream_url(self) -> str: ...

    def open(self) -> AbstractAsyncContextManager[ByteSource]: ...

    def clone(self) -> "StreamHandle": ...
