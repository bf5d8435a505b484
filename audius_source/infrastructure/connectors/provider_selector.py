"""Discovery provider selection.

Audius serves its API from many independent discovery nodes. At startup
the discovery root is asked for the current list and the first entry is
committed to for the lifetime of the process: no health check, no load
balancing, and no second attempt if discovery fails.
"""

from attrs import define, field

from audius_source.config import get_logger
from audius_source.domain.exceptions import AudiusSourceError
from audius_source.infrastructure.connectors.audius_client import (
    AudiusApiClient,
    ResponseKind,
)

logger = get_logger(__name__).bind(service="audius")


def _normalize_base_url(value: str) -> str:
    return value.strip().rstrip("/")


@define(frozen=True, slots=True)
class Provider:
    """Selected discovery node; immutable once created."""

    base_url: str = field(converter=_normalize_base_url)

    @base_url.validator
    def _check_base_url(self, attribute, value: str) -> None:
        if not value:
            raise ValueError("Provider base URL must not be empty")

    def endpoint(self, path: str) -> str:
        """Absolute URL for an API path such as ``/v1/resolve``."""
        return f"{self.base_url}/{path.lstrip('/')}"


async def select_provider(client: AudiusApiClient, discovery_url: str) -> Provider | None:
    """Fetch the discovery list and commit to its first entry.

    Never raises for upstream problems: any failure is logged and yields
    None, which callers treat as "source not initialized".

    Args:
        client: Upstream client to issue the discovery request with
        discovery_url: Discovery root returning ``{"data": [url, ...]}``

    Returns:
        The selected Provider, or None when none could be selected
    """
    logger.info(f"Fetching Audius discovery providers from {discovery_url}")

    try:
        response = await client.fetch(discovery_url, identifier=discovery_url)
    except AudiusSourceError as e:
        logger.error(f"Failed to fetch Audius discovery providers: {e}")
        return None

    if response.kind is not ResponseKind.SUCCESS:
        logger.error(
            f"Audius discovery endpoint returned {response.kind}: {response.error}"
        )
        return None

    candidates = response.data
    if not isinstance(candidates, list) or not candidates:
        logger.error("Audius discovery providers list is empty or not a list")
        return None

    first = candidates[0]
    if not isinstance(first, str) or not _normalize_base_url(first):
        logger.error(f"First Audius discovery provider entry is invalid: {first!r}")
        return None

    provider = Provider(first)
    logger.info(f"Selected Audius discovery provider: {provider.base_url}")
    return provider
