"""Audius source exceptions.

"Nothing matched" is not an error and has no exception here; resolvers
return the canonical empty result for it instead.
"""


class AudiusSourceError(Exception):
    """Base exception for Audius resolution and streaming operations.

    Attributes:
        identifier: The reference, URL or track id being processed, if known
    """

    def __init__(self, message: str, identifier: str | None = None):
        self.identifier = identifier
        super().__init__(message)


class SourceNotInitializedError(AudiusSourceError):
    """Raised when no discovery provider was selected at startup."""

    def __init__(self, identifier: str | None = None):
        super().__init__(
            "Audius source is not initialized. Discovery provider not available.",
            identifier,
        )


class UpstreamProtocolError(AudiusSourceError):
    """Raised on an explicit upstream error or a structurally invalid payload."""


class ResourceTypeError(UpstreamProtocolError):
    """Raised when a resolved resource has an id but is neither track nor collection."""


class UpstreamTransportError(AudiusSourceError):
    """Raised when the network request itself fails."""


class TrackValidationError(AudiusSourceError, ValueError):
    """Raised when a track would be built without id, title or permalink."""


class NoStreamAvailableError(AudiusSourceError):
    """Raised when the stream endpoint yields no usable media URL."""
