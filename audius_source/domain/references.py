"""Reference classification for Audius lookups.

Turns the raw string a host wants resolved into a tagged reference. The
URL shapes overlap (every album and playlist URL also matches the generic
``/<user>/<slug>`` shape), so rules are kept in one ordered table and the
first match wins.
"""

from collections.abc import Callable
import re

from attrs import define

SEARCH_PREFIX = "audsearch:"

_AUDIUS_HOST = r"^https?://(?:www\.)?audius\.co"

ALBUM_URL_PATTERN = re.compile(_AUDIUS_HOST + r"/([^/]+)/album/([^/?#]+)(?:[/?#].*)?$")
PLAYLIST_URL_PATTERN = re.compile(
    _AUDIUS_HOST + r"/([^/]+)/playlist/([^/?#]+)(?:[/?#].*)?$"
)
RESOURCE_URL_PATTERN = re.compile(_AUDIUS_HOST + r"/([^/]+)/([^/?#]+)(?:[/?#].*)?$")


@define(frozen=True, slots=True)
class SearchQuery:
    """Free-text search; may be empty after trimming."""

    text: str


@define(frozen=True, slots=True)
class TrackURL:
    url: str


@define(frozen=True, slots=True)
class PlaylistURL:
    url: str


@define(frozen=True, slots=True)
class AlbumURL:
    url: str


@define(frozen=True, slots=True)
class Unrecognized:
    """Not an Audius reference; the host should try other sources."""

    identifier: str


ClassifiedReference = SearchQuery | TrackURL | PlaylistURL | AlbumURL | Unrecognized


def _search_rule(identifier: str) -> ClassifiedReference | None:
    if identifier.startswith(SEARCH_PREFIX):
        return SearchQuery(identifier[len(SEARCH_PREFIX) :].strip())
    return None


def _pattern_rule(
    pattern: re.Pattern[str], factory: Callable[[str], ClassifiedReference]
) -> Callable[[str], ClassifiedReference | None]:
    def rule(identifier: str) -> ClassifiedReference | None:
        return factory(identifier) if pattern.match(identifier) else None

    return rule


# Order matters: album and playlist must be tried before the generic shape
CLASSIFICATION_RULES: tuple[Callable[[str], ClassifiedReference | None], ...] = (
    _search_rule,
    _pattern_rule(ALBUM_URL_PATTERN, AlbumURL),
    _pattern_rule(PLAYLIST_URL_PATTERN, PlaylistURL),
    _pattern_rule(RESOURCE_URL_PATTERN, TrackURL),
)


def classify_reference(identifier: str) -> ClassifiedReference:
    """Classify a raw reference string.

    Pure and total: every string maps to exactly one variant.

    Args:
        identifier: Raw reference from the host

    Returns:
        The first matching variant, or Unrecognized
    """
    candidate = identifier.strip()
    for rule in CLASSIFICATION_RULES:
        classified = rule(candidate)
        if classified is not None:
            return classified
    return Unrecognized(identifier)
