"""Core domain entities representing resolved Audius content."""

from .collection import DEFAULT_TITLES, Collection, CollectionKind
from .results import NO_RESULTS, EmptyResult, LoadResult
from .track import UNKNOWN_ARTIST, Track

__all__ = [
    # Track entities
    "Track",
    "UNKNOWN_ARTIST",
    # Collection entities
    "Collection",
    "CollectionKind",
    "DEFAULT_TITLES",
    # Lookup results
    "EmptyResult",
    "LoadResult",
    "NO_RESULTS",
]
