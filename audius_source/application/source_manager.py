"""Host-facing façade over the Audius resolver and stream handles.

The manager owns the lifecycle the host sees: provider selection at
startup, ``load_item`` for any raw reference, a stream handle per resolved
track and shutdown of the pooled HTTP client.

Example:
    ```python
    async with await AudiusSourceManager.create() as source:
        result = await source.load_item("audsearch:lofi")
        if isinstance(result, Collection):
            async with source.open_stream(result.tracks[0]) as stream:
                header = await stream.read(4096)
    ```
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from attrs import define, field
import httpx

from audius_source.config import get_logger, resilient_operation
from audius_source.config import settings as default_settings
from audius_source.config.settings import Settings
from audius_source.domain.entities import NO_RESULTS, LoadResult, Track
from audius_source.domain.exceptions import SourceNotInitializedError
from audius_source.domain.references import (
    AlbumURL,
    PlaylistURL,
    SearchQuery,
    TrackURL,
    Unrecognized,
    classify_reference,
)
from audius_source.infrastructure.connectors import (
    AudiusApiClient,
    AudiusConnector,
    ByteSource,
    MetadataResolver,
    Provider,
    create_http_client,
    select_provider,
)
from audius_source.infrastructure.streaming import AudiusStreamHandle

logger = get_logger(__name__).bind(service="audius")


@define(slots=True)
class AudiusSourceManager:
    """Audius audio source as seen by a playback host.

    Attributes:
        connector: Metadata resolver bound to the selected provider
        client: Upstream client shared by resolution and streaming
        config: Settings the manager was created with
        owns_client: Whether ``aclose`` should close the HTTP client
    """

    connector: MetadataResolver
    client: AudiusApiClient = field(repr=False)
    config: Settings = field(factory=lambda: default_settings, repr=False)
    owns_client: bool = True

    source_name: str = "audius"

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> "AudiusSourceManager":
        """Select a discovery provider and build a ready manager.

        Provider selection runs exactly once here. When it fails the manager
        is still returned, but every recognized reference raises
        SourceNotInitializedError.

        Args:
            settings: Configuration to use instead of the module settings
            client: Existing HTTP client; the caller keeps ownership of it
        """
        config = settings or default_settings
        api = AudiusApiClient(client or create_http_client(config))

        provider = await select_provider(api, config.audius.discovery_url)
        if provider is None:
            logger.warning(
                "No Audius discovery provider selected; the source is disabled"
            )

        connector = AudiusConnector(
            api,
            provider,
            app_name=config.audius.app_name,
            web_base_url=config.audius.web_base_url,
        )
        return cls(connector, api, config=config, owns_client=client is None)

    @property
    def provider(self) -> Provider | None:
        return self.connector.provider

    @property
    def is_initialized(self) -> bool:
        return self.connector.provider is not None

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @resilient_operation("audius_load_item")
    async def load_item(self, identifier: str) -> LoadResult | None:
        """Resolve a raw reference.

        Args:
            identifier: Search (``audsearch:<query>``) or Audius URL

        Returns:
            None when the reference is not an Audius one, otherwise a Track,
            a Collection or NO_RESULTS

        Raises:
            SourceNotInitializedError: Recognized reference but no provider
            UpstreamProtocolError: Explicit upstream error or bad payload
            UpstreamTransportError: Network failure
            TrackValidationError: Resolved track is incomplete
        """
        reference = classify_reference(identifier)

        match reference:
            case Unrecognized():
                return None
            case SearchQuery(text=""):
                return NO_RESULTS

        if not self.is_initialized:
            logger.warning(
                "Audius discovery provider not available. Cannot load item: {}",
                identifier,
            )
            raise SourceNotInitializedError(identifier)

        match reference:
            case SearchQuery(text=text):
                return await self.connector.search(text)
            case AlbumURL(url=url):
                return await self.connector.load_album(url)
            case PlaylistURL(url=url):
                return await self.connector.load_playlist(url)
            case TrackURL(url=url):
                return await self.connector.resolve_track_url(url)

    @resilient_operation("audius_decode_track")
    async def decode_track(self, track_id: str) -> LoadResult:
        """Rebuild a Track from its persisted Audius id."""
        return await self.connector.get_track(track_id)

    # -------------------------------------------------------------------------
    # Streaming
    # -------------------------------------------------------------------------

    def stream_handle(self, track: Track) -> AudiusStreamHandle:
        """Handle bound to the track's id and the current provider.

        No network traffic happens until the handle is opened.
        """
        return AudiusStreamHandle(
            track.stream_identity,
            self.connector.provider,
            self.client,
            app_name=self.config.audius.app_name,
            chunk_size=self.config.http.stream_chunk_size,
        )

    @asynccontextmanager
    async def open_stream(self, track: Track) -> AsyncIterator[ByteSource]:
        """Resolve the track's media URL now and yield a seekable stream."""
        async with self.stream_handle(track).open() as stream:
            yield stream

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        if self.owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "AudiusSourceManager":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
