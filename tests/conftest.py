"""Shared fixtures: a fake Audius upstream served through httpx.MockTransport."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from audius_source.infrastructure.connectors import (
    AudiusApiClient,
    AudiusConnector,
    Provider,
)

DISCOVERY_URL = "https://api.audius.test"
PROVIDER_URL = "https://discovery.audius.test"
WEB_BASE_URL = "https://audius.co"
APP_NAME = "test-app"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeAudius:
    """Routes requests by host and path; records every request it serves."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def on(
        self,
        url: str,
        json: Any = None,
        status_code: int = 200,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        handler: Handler | None = None,
    ) -> None:
        """Register a canned response (rebuilt per request) or a handler."""
        parsed = httpx.URL(url)

        def respond(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status_code, content=content, headers=headers)
            return httpx.Response(status_code, json=json, headers=headers)

        self.routes[(parsed.host, parsed.path)] = handler or respond

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.url.host, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "Route not found"})
        return route(request)


@pytest.fixture
def upstream():
    """Fake Audius network with no routes registered."""
    return FakeAudius()


@pytest.fixture
async def http_client(upstream):
    """httpx client whose traffic is answered by the fake upstream."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    yield client
    await client.aclose()


@pytest.fixture
def api_client(http_client):
    return AudiusApiClient(http_client)


@pytest.fixture
def provider():
    return Provider(PROVIDER_URL)


@pytest.fixture
def connector(api_client, provider):
    return AudiusConnector(
        api_client, provider, app_name=APP_NAME, web_base_url=WEB_BASE_URL
    )


@pytest.fixture
def make_track_node():
    """Factory for upstream track objects as found under ``data``."""

    def _make(track_id: str = "D7KyD", **overrides: Any) -> dict[str, Any]:
        node = {
            "id": track_id,
            "title": f"Track {track_id}",
            "permalink": f"/artist/track-{track_id.lower()}",
            "duration": 215,
            "user": {"name": "Artist"},
            "artwork": {
                "150x150": f"https://img.audius.test/{track_id}/150.jpg",
                "480x480": f"https://img.audius.test/{track_id}/480.jpg",
            },
        }
        node.update(overrides)
        return node

    return _make
