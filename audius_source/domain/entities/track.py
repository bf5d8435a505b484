"""Track-related domain entities.

Pure track representations and related value objects with zero external
dependencies beyond attrs.
"""

from typing import Any

from attrs import define, field, validators

from audius_source.domain.exceptions import TrackValidationError

UNKNOWN_ARTIST = "Unknown Artist"


def _require_text(instance: Any, attribute: Any, value: Any) -> None:
    """attrs validator: value must be a non-empty, non-blank string."""
    if not isinstance(value, str) or not value.strip():
        raise TrackValidationError(
            f"Audius track details are incomplete: missing {attribute.name}",
            identifier=getattr(instance, "id", None) if attribute.name != "id" else None,
        )


def _duration_validator(instance: Any, attribute: Any, value: Any) -> None:
    if value is not None and (
        isinstance(value, bool) or not isinstance(value, int) or value < 0
    ):
        raise TrackValidationError(
            f"Invalid duration for track: {value!r}",
            identifier=getattr(instance, "id", None),
        )


@define(frozen=True, slots=True)
class Track:
    """Immutable track resolved from Audius.

    A track is never observable with an empty id, title or permalink:
    construction raises TrackValidationError instead.

    Attributes:
        id: Opaque Audius track identifier, also the streaming identity
        title: Track title
        permalink: Canonical absolute URL of the track page
        author: Display name of the uploading user
        duration_ms: Length in milliseconds, None when unknown
        artwork_url: Cover art URL if the upstream reports one
        isrc: Reserved, Audius does not expose ISRCs
    """

    id: str = field(validator=_require_text)
    title: str = field(validator=_require_text)
    permalink: str = field(validator=_require_text)
    author: str = field(default=UNKNOWN_ARTIST, validator=validators.instance_of(str))
    duration_ms: int | None = field(default=None, validator=_duration_validator)
    artwork_url: str | None = field(default=None)
    isrc: str | None = field(default=None)

    @property
    def stream_identity(self) -> str:
        """Identifier used to look up the media stream."""
        return self.id

    @property
    def is_duration_known(self) -> bool:
        return self.duration_ms is not None
