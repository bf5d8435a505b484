"""Connectors for the Audius REST API."""

from audius_source.infrastructure.connectors.audius import (
    AudiusConnector,
    convert_audius_track,
    select_artwork_url,
)
from audius_source.infrastructure.connectors.audius_client import (
    AudiusApiClient,
    ResponseKind,
    UpstreamResponse,
    classify_payload,
    create_http_client,
)
from audius_source.infrastructure.connectors.protocols import (
    ByteSource,
    MetadataResolver,
    StreamHandle,
)
from audius_source.infrastructure.connectors.provider_selector import (
    Provider,
    select_provider,
)

__all__ = [
    "AudiusApiClient",
    "AudiusConnector",
    "ByteSource",
    "MetadataResolver",
    "Provider",
    "ResponseKind",
    "StreamHandle",
    "UpstreamResponse",
    "classify_payload",
    "convert_audius_track",
    "create_http_client",
    "select_artwork_url",
    "select_provider",
]
