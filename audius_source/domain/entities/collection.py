"""Collection-related domain entities.

Playlists, albums and search result sets share one immutable shape: an
ordered list of tracks with display metadata.
"""

from enum import StrEnum

from attrs import define, field, validators

from .track import Track


class CollectionKind(StrEnum):
    """What a collection represents, for host display purposes."""

    PLAYLIST = "playlist"
    ALBUM = "album"
    SEARCH = "search"


DEFAULT_TITLES: dict[CollectionKind, str] = {
    CollectionKind.PLAYLIST: "Unknown Playlist",
    CollectionKind.ALBUM: "Unknown Album",
    CollectionKind.SEARCH: "Search results",
}


@define(frozen=True, slots=True)
class Collection:
    """Ordered group of tracks resolved from one reference.

    Track order is upstream order; duplicates are kept. The list may be
    empty (an existing but empty playlist) but never holds None.
    """

    title: str = field(validator=validators.instance_of(str))
    kind: CollectionKind = field(validator=validators.instance_of(CollectionKind))
    tracks: list[Track] = field(
        factory=list,
        validator=validators.deep_iterable(
            member_validator=validators.instance_of(Track),
            iterable_validator=validators.instance_of(list),
        ),
    )
    collection_id: str | None = field(default=None)
    permalink: str | None = field(default=None)

    @classmethod
    def titled(
        cls,
        title: str | None,
        kind: CollectionKind,
        tracks: list[Track] | None = None,
        **kwargs,
    ) -> "Collection":
        """Build a collection, falling back to the kind's default title."""
        return cls(
            title=title or DEFAULT_TITLES[kind],
            kind=kind,
            tracks=list(tracks or []),
            **kwargs,
        )

    @property
    def is_search_result(self) -> bool:
        return self.kind is CollectionKind.SEARCH
