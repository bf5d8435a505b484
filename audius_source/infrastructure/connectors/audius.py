"""Audius metadata connector with domain model conversion.

This module drives the Audius REST API (https://docs.audius.org/api) to turn
classified references into domain Tracks and Collections.

Key components:
- AudiusConnector: track, search, playlist, album and track-by-id resolution
- convert_audius_track: upstream track object -> Track
- select_artwork_url: artwork size preference

Collections are aggregated with a per-member skip policy: an invalid or
incomplete member is logged and dropped, it never aborts the collection.
"""

from collections.abc import Iterable
import math
from typing import Any, ClassVar
from urllib.parse import urljoin

from attrs import define, field

from audius_source.config import get_logger, settings
from audius_source.domain.entities import (
    NO_RESULTS,
    UNKNOWN_ARTIST,
    Collection,
    CollectionKind,
    EmptyResult,
    Track,
)
from audius_source.domain.exceptions import (
    AudiusSourceError,
    ResourceTypeError,
    SourceNotInitializedError,
    UpstreamProtocolError,
)
from audius_source.infrastructure.connectors.audius_client import AudiusApiClient
from audius_source.infrastructure.connectors.provider_selector import Provider

logger = get_logger(__name__).bind(service="audius")

# Preferred first; the first non-empty entry wins
ARTWORK_SIZES = ("480x480", "150x150", "1000x1000")


def _text(value: Any) -> str | None:
    """Return a stripped string for str/int values, None otherwise."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | str):
        text = str(value).strip()
        return text or None
    return None


def select_artwork_url(artwork: Any) -> str | None:
    """Pick an artwork URL from the upstream ``artwork`` object.

    Args:
        artwork: Mapping of size keys to URLs, or anything else

    Returns:
        The URL for the most preferred size present, or None
    """
    if not isinstance(artwork, dict):
        return None
    for size in ARTWORK_SIZES:
        url = artwork.get(size)
        if isinstance(url, str) and url.strip():
            return url.strip()
    return None


def _duration_ms(value: Any) -> int | None:
    """Convert upstream seconds to milliseconds; None when unusable."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int | float) or value < 0:
        return None
    try:
        ms = float(value) * 1000
    except OverflowError:
        return None
    if not math.isfinite(ms):
        return None
    return int(ms)


def absolute_permalink(permalink: str | None, web_base_url: str) -> str | None:
    """Make a relative permalink such as ``/artist/slug`` absolute."""
    if not permalink:
        return None
    if permalink.startswith(("http://", "https://")):
        return permalink
    return urljoin(web_base_url.rstrip("/") + "/", permalink.lstrip("/"))


def convert_audius_track(node: Any, web_base_url: str | None = None) -> Track:
    """Convert an upstream track object to a domain Track.

    Args:
        node: Track object as returned in ``data``
        web_base_url: Base URL for relative permalinks

    Returns:
        Validated Track

    Raises:
        TrackValidationError: id, title or permalink missing
    """
    if not isinstance(node, dict):
        node = {}

    user = node.get("user")
    author = _text(user.get("name")) if isinstance(user, dict) else None

    return Track(
        id=_text(node.get("id")) or "",
        title=_text(node.get("title")) or "",
        permalink=absolute_permalink(
            _text(node.get("permalink")),
            web_base_url or settings.audius.web_base_url,
        )
        or "",
        author=author or UNKNOWN_ARTIST,
        duration_ms=_duration_ms(node.get("duration")),
        artwork_url=select_artwork_url(node.get("artwork")),
    )


@define(slots=True)
class AudiusConnector:
    """Metadata resolver over the selected discovery provider.

    The provider is injected once and never changed; with no provider every
    operation raises SourceNotInitializedError.
    """

    client: AudiusApiClient = field(repr=False)
    provider: Provider | None
    app_name: str = field(factory=lambda: settings.audius.app_name)
    web_base_url: str = field(factory=lambda: settings.audius.web_base_url)
    connector_name: str = "audius"

    SEARCH_TITLE: ClassVar[str] = "Audius search results for: {query}"

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_provider(self, identifier: str) -> Provider:
        if self.provider is None:
            logger.warning(
                "Audius discovery provider not available. Cannot load item: {}",
                identifier,
            )
            raise SourceNotInitializedError(identifier)
        return self.provider

    def _params(self, **extra: str) -> dict[str, str]:
        return {**extra, "app_name": self.app_name}

    def _convert_members(self, nodes: Iterable[Any], context: str) -> list[Track]:
        """Convert collection members independently, skipping bad ones."""
        tracks: list[Track] = []
        skipped = 0
        for position, node in enumerate(nodes):
            node_id = _text(node.get("id")) if isinstance(node, dict) else None
            if node_id is None:
                skipped += 1
                logger.warning(
                    "Skipping invalid entry {} in {} (missing id)", position, context
                )
                continue
            try:
                tracks.append(convert_audius_track(node, self.web_base_url))
            except AudiusSourceError as e:
                skipped += 1
                logger.warning(
                    "Skipping track {} in {}: {}", node_id, context, e
                )
            except Exception as e:
                skipped += 1
                logger.opt(exception=e).error(
                    "Unexpected error converting track {} in {}", node_id, context
                )
        if skipped:
            logger.info(
                f"Kept {len(tracks)} tracks, skipped {skipped}",
                context=context,
            )
        return tracks

    async def _resolve(self, url: str) -> Any | None:
        provider = self._require_provider(url)
        return await self.client.get_data(
            provider.endpoint("/v1/resolve"),
            params=self._params(url=url),
            identifier=url,
        )

    # -------------------------------------------------------------------------
    # Tracks
    # -------------------------------------------------------------------------

    def _track_from_resolved(self, resource: Any, identifier: str) -> Track:
        if not isinstance(resource, dict) or _text(resource.get("id")) is None:
            raise UpstreamProtocolError(
                "Could not resolve Audius URL: invalid data structure in response",
                identifier=identifier,
            )
        if _text(resource.get("title")) is None:
            logger.warning(
                "Resolved {} to resource {} but unable to determine its type",
                identifier,
                resource.get("id"),
            )
            raise ResourceTypeError(
                "Could not resolve Audius URL: unable to determine resource type",
                identifier=identifier,
            )
        return convert_audius_track(resource, self.web_base_url)

    async def resolve_track_url(self, url: str) -> Track | EmptyResult:
        """Resolve a track page URL through ``/v1/resolve``.

        Returns:
            The Track, or NO_RESULTS when the URL resolves to nothing

        Raises:
            UpstreamProtocolError: Invalid payload or explicit upstream error
            ResourceTypeError: Resource has an id but no title
            TrackValidationError: Track fields incomplete
        """
        logger.info(f"Resolving Audius URL {url}")
        resource = await self._resolve(url)
        if resource is None:
            logger.info(f"Audius URL {url} did not resolve to a resource")
            return NO_RESULTS

        track = self._track_from_resolved(resource, url)
        logger.info(f"Resolved URL {url} to track {track.id}")
        return track

    async def get_track(self, track_id: str) -> Track | EmptyResult:
        """Fetch a single track by its Audius id."""
        provider = self._require_provider(track_id)
        resource = await self.client.get_data(
            provider.endpoint(f"/v1/tracks/{track_id}"),
            params=self._params(),
            identifier=track_id,
        )
        if resource is None:
            return NO_RESULTS
        return self._track_from_resolved(resource, track_id)

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search(self, query: str) -> Collection | EmptyResult:
        """Search tracks by free text.

        Returns:
            Search-kind Collection of valid tracks, or NO_RESULTS
        """
        query = query.strip()
        if not query:
            return NO_RESULTS

        provider = self._require_provider(query)
        logger.info(f"Searching Audius for '{query}' using {provider.base_url}")
        nodes = await self.client.get_data(
            provider.endpoint("/v1/tracks/search"),
            params=self._params(query=query),
            identifier=query,
        )
        if not isinstance(nodes, list) or not nodes:
            logger.info(f"Audius search for '{query}' returned no results")
            return NO_RESULTS

        tracks = self._convert_members(nodes, f"search '{query}'")
        if not tracks:
            logger.info(f"Audius search for '{query}' returned no valid tracks")
            return NO_RESULTS

        return Collection.titled(
            self.SEARCH_TITLE.format(query=query), CollectionKind.SEARCH, tracks
        )

    # -------------------------------------------------------------------------
    # Playlists and albums
    # -------------------------------------------------------------------------

    async def _load_collection(
        self, url: str, kind: CollectionKind
    ) -> Collection | EmptyResult:
        logger.info(f"Loading Audius {kind} from {url}")

        resolved = await self._resolve(url)
        if isinstance(resolved, list):
            resolved = resolved[0] if resolved else None
        if resolved is None:
            logger.info(f"Audius {kind} URL {url} did not resolve")
            return NO_RESULTS

        if (
            not isinstance(resolved, dict)
            or _text(resolved.get("id")) is None
            or resolved.get("playlist_name") is None
        ):
            raise UpstreamProtocolError(
                f"Could not load Audius {kind}: invalid data structure in response",
                identifier=url,
            )
        if kind is CollectionKind.ALBUM and not resolved.get("is_album"):
            raise UpstreamProtocolError(
                "Could not load Audius album: resolved resource is not an album",
                identifier=url,
            )

        collection_id = _text(resolved["id"])
        title = _text(resolved.get("playlist_name"))
        permalink = absolute_permalink(
            _text(resolved.get("permalink")), self.web_base_url
        )

        tracks = await self._fetch_members(collection_id, url, kind)
        logger.info(f"Loaded {kind} '{title}' with {len(tracks)} tracks from {url}")
        return Collection.titled(
            title,
            kind,
            tracks,
            collection_id=collection_id,
            permalink=permalink,
        )

    async def _fetch_members(
        self, collection_id: str, url: str, kind: CollectionKind
    ) -> list[Track]:
        """Fetch member tracks; any failure yields an empty member list."""
        provider = self._require_provider(url)
        try:
            nodes = await self.client.get_data(
                provider.endpoint(f"/v1/playlists/{collection_id}/tracks"),
                params=self._params(),
                identifier=collection_id,
            )
        except AudiusSourceError as e:
            logger.warning(
                "Could not fetch tracks of {} {}: {}", kind, collection_id, e
            )
            return []

        if not isinstance(nodes, list):
            logger.info(f"{kind} {collection_id} returned no track data")
            return []
        return self._convert_members(nodes, f"{kind} {url}")

    async def load_playlist(self, url: str) -> Collection | EmptyResult:
        """Load a playlist and its tracks."""
        return await self._load_collection(url, CollectionKind.PLAYLIST)

    async def load_album(self, url: str) -> Collection | EmptyResult:
        """Load an album and its tracks; the resource must be marked ``is_album``."""
        return await self._load_collection(url, CollectionKind.ALBUM)
