"""Lookup result values returned to the host."""

from attrs import define

from .collection import Collection
from .track import Track


@define(frozen=True, slots=True)
class EmptyResult:
    """The reference was understood but nothing matched it."""

    def __bool__(self) -> bool:
        return False


NO_RESULTS = EmptyResult()

# What a successful lookup of a recognized reference produces
LoadResult = Track | Collection | EmptyResult
