"""Upstream HTTP client for the Audius API.

Performs one idempotent GET per call, decodes the ``{data, error}``
envelope used by every Audius endpoint and classifies the outcome:

- SUCCESS: ``data`` present, no error
- NOT_FOUND: HTTP 404, an empty or ``null`` body, or an error message
  that reports a missing resource
- UPSTREAM_ERROR: any other explicit error
- MALFORMED: a successful response without ``data``, or not a JSON object

The classification is a pure function (``classify_payload``) so that
resolver behaviour can be reasoned about without a network.
"""

from enum import StrEnum
import json
from typing import Any

from attrs import define, field
import httpx

from audius_source.config import get_logger, settings
from audius_source.config.settings import Settings
from audius_source.domain.exceptions import (
    UpstreamProtocolError,
    UpstreamTransportError,
)

logger = get_logger(__name__).bind(service="audius")

# Lower-cased fragments the API uses when a resource does not exist
NOT_FOUND_MARKERS = ("not found", "resource for id")


class ResponseKind(StrEnum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED = "malformed"


@define(frozen=True, slots=True)
class UpstreamResponse:
    """Classified outcome of one upstream request."""

    kind: ResponseKind
    url: str
    data: Any = None
    error: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.kind is ResponseKind.SUCCESS


def is_not_found_message(message: str | None) -> bool:
    """Check whether an upstream error message means "no such resource"."""
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in NOT_FOUND_MARKERS)


def classify_payload(payload: Any, url: str, status_code: int = 200) -> UpstreamResponse:
    """Classify a decoded response body.

    Args:
        payload: Decoded JSON body, or None for an empty body
        url: Request URL, kept for diagnostics
        status_code: HTTP status of the response

    Returns:
        UpstreamResponse describing the outcome
    """
    successful = 200 <= status_code < 300

    if status_code == 404 or payload is None:
        return UpstreamResponse(ResponseKind.NOT_FOUND, url, status_code=status_code)

    if not isinstance(payload, dict):
        kind = ResponseKind.MALFORMED if successful else ResponseKind.UPSTREAM_ERROR
        return UpstreamResponse(
            kind,
            url,
            error=f"Unexpected response body of type {type(payload).__name__}",
            status_code=status_code,
        )

    error = payload.get("error")
    if error is not None:
        message = str(error)
        kind = (
            ResponseKind.NOT_FOUND
            if is_not_found_message(message)
            else ResponseKind.UPSTREAM_ERROR
        )
        return UpstreamResponse(kind, url, error=message, status_code=status_code)

    if not successful:
        return UpstreamResponse(
            ResponseKind.UPSTREAM_ERROR,
            url,
            error=f"HTTP {status_code}",
            status_code=status_code,
        )

    if payload.get("data") is None:
        return UpstreamResponse(
            ResponseKind.MALFORMED,
            url,
            error="Response is missing the 'data' field",
            status_code=status_code,
        )

    return UpstreamResponse(
        ResponseKind.SUCCESS, url, data=payload["data"], status_code=status_code
    )


def create_http_client(config: Settings | None = None) -> httpx.AsyncClient:
    """Create the pooled async HTTP client shared by all upstream calls.

    Every request gets bounded connect and read timeouts; redirects are
    followed because ``/v1/resolve`` answers with a redirect to the
    canonical resource endpoint.
    """
    config = config or settings
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http.timeout, connect=config.http.connect_timeout),
        limits=httpx.Limits(max_connections=config.http.max_connections),
        headers={
            "User-Agent": config.http.user_agent,
            "Accept": "application/json",
        },
        follow_redirects=True,
    )


@define(slots=True)
class AudiusApiClient:
    """Thin JSON client over a shared ``httpx.AsyncClient``.

    Holds no per-request state; safe to use from many concurrent tasks.
    """

    http: httpx.AsyncClient = field(repr=False)

    async def fetch(
        self,
        url: str,
        params: dict[str, str] | None = None,
        identifier: str | None = None,
    ) -> UpstreamResponse:
        """Issue one GET and classify the response.

        Args:
            url: Absolute endpoint URL
            params: Query parameters
            identifier: What is being looked up, attached to transport errors

        Returns:
            Classified UpstreamResponse

        Raises:
            UpstreamTransportError: Network, timeout or protocol failure
        """
        logger.debug("GET {}", url, params=params)
        try:
            response = await self.http.get(url, params=params)
        except httpx.RequestError as e:
            logger.warning(
                "Request to {} failed: {}",
                url,
                e.__class__.__name__,
                identifier=identifier,
            )
            raise UpstreamTransportError(
                f"Failed to reach Audius API for '{identifier or url}': {e}",
                identifier=identifier,
            ) from e

        request_url = str(response.request.url)

        if not response.content.strip():
            payload = None
        else:
            try:
                payload = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                successful = response.is_success
                logger.warning(
                    "Non-JSON response from {}",
                    request_url,
                    status_code=response.status_code,
                )
                if response.status_code == 404:
                    return UpstreamResponse(
                        ResponseKind.NOT_FOUND, request_url, status_code=404
                    )
                return UpstreamResponse(
                    ResponseKind.MALFORMED if successful else ResponseKind.UPSTREAM_ERROR,
                    request_url,
                    error=f"HTTP {response.status_code} with a non-JSON body",
                    status_code=response.status_code,
                )

        classified = classify_payload(payload, request_url, response.status_code)
        if classified.kind is ResponseKind.NOT_FOUND:
            logger.info(f"Audius API resource not found for {request_url}")
        elif not classified.ok:
            logger.warning(
                f"Audius API endpoint {request_url} returned {classified.kind}: {classified.error}"
            )
        return classified

    async def get_data(
        self,
        url: str,
        params: dict[str, str] | None = None,
        identifier: str | None = None,
    ) -> Any | None:
        """Fetch and unwrap ``data``.

        Returns:
            The ``data`` value, or None when the upstream reports not-found

        Raises:
            UpstreamProtocolError: Explicit upstream error or malformed success
            UpstreamTransportError: Network failure
        """
        response = await self.fetch(url, params=params, identifier=identifier)
        match response.kind:
            case ResponseKind.SUCCESS:
                return response.data
            case ResponseKind.NOT_FOUND:
                return None
            case ResponseKind.UPSTREAM_ERROR:
                raise UpstreamProtocolError(
                    f"Audius API error for '{identifier or url}': {response.error}",
                    identifier=identifier,
                )
            case _:
                raise UpstreamProtocolError(
                    f"Malformed Audius API response for '{identifier or url}': {response.error}",
                    identifier=identifier,
                )

    async def aclose(self) -> None:
        await self.http.aclose()
