"""Stream handle tests: lazy lookup at playback time, fresh URL per open."""

import httpx
import pytest

from audius_source.domain.exceptions import (
    NoStreamAvailableError,
    SourceNotInitializedError,
    UpstreamProtocolError,
    UpstreamTransportError,
)
from audius_source.infrastructure.connectors.protocols import ByteSource, StreamHandle
from audius_source.infrastructure.streaming import AudiusStreamHandle

NODE = "https://discovery.audius.test"
STREAM_ENDPOINT = f"{NODE}/v1/tracks/D7KyD/stream"
MEDIA_URL = "https://creatornode.audius.test/tracks/stream/D7KyD.mp3?signature=abc"
AUDIO = b"ID3" + bytes(2000)


@pytest.fixture
def handle(api_client, provider):
    return AudiusStreamHandle("D7KyD", provider, api_client, app_name="test-app")


class TestResolveStreamUrl:
    @pytest.mark.asyncio
    async def test_requests_non_redirecting_lookup(self, upstream, handle):
        upstream.on(STREAM_ENDPOINT, json={"data": MEDIA_URL})

        assert await handle.resolve_stream_url() == MEDIA_URL
        params = upstream.requests[0].url.params
        assert params["no_redirect"] == "true"
        assert params["app_name"] == "test-app"

    @pytest.mark.parametrize("data", ["", "   ", 42, ["url"]])
    @pytest.mark.asyncio
    async def test_unusable_url_is_no_stream(self, upstream, handle, data):
        upstream.on(STREAM_ENDPOINT, json={"data": data})

        with pytest.raises(NoStreamAvailableError) as exc_info:
            await handle.resolve_stream_url()
        assert exc_info.value.identifier == "D7KyD"

    @pytest.mark.asyncio
    async def test_not_found_is_no_stream(self, upstream, handle):
        upstream.on(STREAM_ENDPOINT, status_code=404, json={"error": "Track not found"})

        with pytest.raises(NoStreamAvailableError):
            await handle.resolve_stream_url()

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, upstream, handle):
        upstream.on(STREAM_ENDPOINT, status_code=503, json={"error": "overloaded"})

        with pytest.raises(UpstreamProtocolError):
            await handle.resolve_stream_url()

    @pytest.mark.asyncio
    async def test_no_provider(self, upstream, api_client):
        handle = AudiusStreamHandle("D7KyD", None, api_client, app_name="test-app")

        with pytest.raises(SourceNotInitializedError):
            await handle.resolve_stream_url()
        assert upstream.requests == []


class TestOpen:
    @pytest.mark.asyncio
    async def test_open_yields_media_bytes(self, upstream, handle):
        upstream.on(STREAM_ENDPOINT, json={"data": MEDIA_URL})
        upstream.on(MEDIA_URL, content=AUDIO, headers={"Content-Type": "audio/mpeg"})

        async with handle.open() as stream:
            assert await stream.read() == AUDIO
            assert stream.content_type == "audio/mpeg"
            assert isinstance(stream, ByteSource)

        assert stream.closed

    @pytest.mark.asyncio
    async def test_empty_url_produces_no_stream(self, upstream, handle):
        upstream.on(STREAM_ENDPOINT, json={"data": ""})

        with pytest.raises(NoStreamAvailableError):
            async with handle.open():
                pytest.fail("no stream should be produced")

        assert upstream.paths() == ["/v1/tracks/D7KyD/stream"]

    @pytest.mark.asyncio
    async def test_each_open_resolves_a_fresh_url(self, upstream, handle):
        upstream.on(STREAM_ENDPOINT, json={"data": MEDIA_URL})
        upstream.on(MEDIA_URL, content=AUDIO)

        for _ in range(2):
            async with handle.open() as stream:
                await stream.read(3)

        assert upstream.paths().count("/v1/tracks/D7KyD/stream") == 2

    @pytest.mark.asyncio
    async def test_media_transport_error_mentions_track(self, upstream, handle):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        upstream.on(STREAM_ENDPOINT, json={"data": MEDIA_URL})
        upstream.on(MEDIA_URL, handler=refuse)

        with pytest.raises(UpstreamTransportError, match="D7KyD"):
            async with handle.open():
                pass

    @pytest.mark.asyncio
    async def test_stream_closed_when_body_raises(self, upstream, handle):
        upstream.on(STREAM_ENDPOINT, json={"data": MEDIA_URL})
        upstream.on(MEDIA_URL, content=AUDIO)

        with pytest.raises(RuntimeError):
            async with handle.open() as stream:
                raise RuntimeError("decoder failed")

        assert stream.closed


class TestClone:
    @pytest.mark.asyncio
    async def test_handle_satisfies_stream_protocol(self, handle):
        assert isinstance(handle, StreamHandle)

    @pytest.mark.asyncio
    async def test_clone_keeps_identity_and_provider(self, handle):
        clone = handle.clone()

        assert clone == handle
        assert clone is not handle
        assert clone.track_id == "D7KyD"
        assert clone.provider is handle.provider
        assert clone.client is handle.client

    @pytest.mark.asyncio
    async def test_clone_does_not_touch_the_network(self, upstream, handle):
        handle.clone()

        assert upstream.requests == []
