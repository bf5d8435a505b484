"""Lazy stream handle for a resolved Audius track.

A handle is created at resolution time but does no I/O until playback
actually starts. Every ``open()`` performs a fresh stream lookup because
the media URLs Audius hands out are signed and short-lived.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from attrs import define, evolve, field

from audius_source.config import get_logger, settings
from audius_source.domain.exceptions import (
    NoStreamAvailableError,
    SourceNotInitializedError,
)
from audius_source.infrastructure.connectors.audius_client import AudiusApiClient
from audius_source.infrastructure.connectors.provider_selector import Provider
from audius_source.infrastructure.streaming.http_stream import HttpByteStream

logger = get_logger(__name__).bind(service="streaming")


@define(frozen=True, slots=True)
class AudiusStreamHandle:
    """Playback handle bound to one track id and one provider.

    Attributes:
        track_id: Audius id of the track to stream
        provider: Provider in effect when the track was resolved
        client: Upstream client used for the lookup and the media request
        app_name: Application identifier sent with the lookup
        chunk_size: Network read size for the media stream
    """

    track_id: str
    provider: Provider | None
    client: AudiusApiClient = field(repr=False, eq=False)
    app_name: str = field(factory=lambda: settings.audius.app_name)
    chunk_size: int = field(factory=lambda: settings.http.stream_chunk_size)

    async def resolve_stream_url(self) -> str:
        """Look up the current media URL for the track.

        Returns:
            Directly fetchable media URL

        Raises:
            SourceNotInitializedError: No provider was selected
            NoStreamAvailableError: Lookup returned nothing usable
            UpstreamProtocolError: Explicit error or malformed lookup response
            UpstreamTransportError: Network failure
        """
        if self.provider is None:
            logger.warning(
                "Audius discovery provider not available. Cannot stream track: {}",
                self.track_id,
            )
            raise SourceNotInitializedError(self.track_id)

        data = await self.client.get_data(
            self.provider.endpoint(f"/v1/tracks/{self.track_id}/stream"),
            params={"app_name": self.app_name, "no_redirect": "true"},
            identifier=self.track_id,
        )
        if not isinstance(data, str) or not data.strip():
            logger.warning("No stream URL returned for track {}", self.track_id)
            raise NoStreamAvailableError(
                f"No stream available for track ID: {self.track_id}",
                identifier=self.track_id,
            )

        logger.debug("Resolved stream URL for track {}", self.track_id)
        return data.strip()

    @asynccontextmanager
    async def open(self) -> AsyncIterator[HttpByteStream]:
        """Resolve the media URL and open a seekable byte stream over it.

        The stream is closed when the context exits, whether or not the
        body raised.
        """
        url = await self.resolve_stream_url()
        stream = HttpByteStream(
            self.client.http,
            url,
            chunk_size=self.chunk_size,
            identifier=self.track_id,
        )
        try:
            await stream.connect()
            logger.info(f"Opened Audius stream for track {self.track_id}")
            yield stream
        finally:
            await stream.aclose()

    def clone(self) -> "AudiusStreamHandle":
        """Copy carrying the same track identity and provider."""
        return evolve(self)
