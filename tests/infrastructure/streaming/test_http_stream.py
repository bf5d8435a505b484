"""Seekable HTTP byte stream tests."""

import io

import httpx
import pytest

from audius_source.domain.exceptions import UpstreamTransportError
from audius_source.infrastructure.streaming.http_stream import HttpByteStream

MEDIA_URL = "https://creatornode.audius.test/tracks/stream/D7KyD.mp3"
AUDIO = bytes(range(256)) * 40


def serve_media(request: httpx.Request) -> httpx.Response:
    """Media server honouring open-ended byte ranges."""
    range_header = request.headers.get("Range")
    if range_header is None:
        return httpx.Response(200, content=AUDIO, headers={"Content-Type": "audio/mpeg"})

    start = int(range_header.removeprefix("bytes=").rstrip("-"))
    if start >= len(AUDIO):
        return httpx.Response(416)
    return httpx.Response(
        206,
        content=AUDIO[start:],
        headers={
            "Content-Type": "audio/mpeg",
            "Content-Range": f"bytes {start}-{len(AUDIO) - 1}/{len(AUDIO)}",
        },
    )


@pytest.fixture
def media(upstream):
    upstream.on(MEDIA_URL, handler=serve_media)
    return upstream


@pytest.fixture
async def stream(media, http_client):
    byte_stream = HttpByteStream(http_client, MEDIA_URL, chunk_size=4096, identifier="D7KyD")
    yield byte_stream
    await byte_stream.aclose()


class TestReading:
    @pytest.mark.asyncio
    async def test_reads_in_order(self, stream):
        assert await stream.read(100) == AUDIO[:100]
        assert stream.tell() == 100
        assert await stream.read(50) == AUDIO[100:150]

    @pytest.mark.asyncio
    async def test_read_all_remaining(self, stream):
        await stream.read(10)

        assert await stream.read() == AUDIO[10:]
        assert await stream.read() == b""

    @pytest.mark.asyncio
    async def test_reports_length_and_type(self, stream):
        await stream.connect()

        assert stream.content_length == len(AUDIO)
        assert stream.content_type == "audio/mpeg"

    @pytest.mark.asyncio
    async def test_iter_chunks_yields_whole_stream(self, stream):
        chunks = [chunk async for chunk in stream.iter_chunks()]

        assert b"".join(chunks) == AUDIO
        assert all(len(chunk) <= 4096 for chunk in chunks)

    @pytest.mark.asyncio
    async def test_lazy_until_first_read(self, media, stream):
        assert media.requests == []

        await stream.read(1)

        assert len(media.requests) == 1

    @pytest.mark.asyncio
    async def test_media_request_overrides_json_accept(self, media):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(media.handler),
            headers={"Accept": "application/json"},
        )
        async with client:
            async with HttpByteStream(client, MEDIA_URL) as byte_stream:
                await byte_stream.read(1)

        accept = media.requests[0].headers["Accept"]
        assert accept.startswith("audio/")
        assert "application/json" not in accept


class TestSeeking:
    @pytest.mark.asyncio
    async def test_seek_reopens_with_range_request(self, media, stream):
        await stream.read(10)

        assert await stream.seek(5000) == 5000
        assert await stream.read(10) == AUDIO[5000:5010]
        assert media.requests[-1].headers["Range"] == "bytes=5000-"
        assert stream.content_length == len(AUDIO)

    @pytest.mark.asyncio
    async def test_seek_relative_and_from_end(self, stream):
        await stream.read(100)

        await stream.seek(-50, io.SEEK_CUR)
        assert await stream.read(5) == AUDIO[50:55]

        await stream.seek(-10, io.SEEK_END)
        assert await stream.read() == AUDIO[-10:]

    @pytest.mark.asyncio
    async def test_seek_to_same_position_keeps_connection(self, media, stream):
        await stream.read(10)
        await stream.seek(10)
        await stream.read(10)

        assert len(media.requests) == 1

    @pytest.mark.asyncio
    async def test_seek_from_end_needs_known_length(self, stream):
        with pytest.raises(io.UnsupportedOperation):
            await stream.seek(-1, io.SEEK_END)

    @pytest.mark.asyncio
    async def test_negative_position_rejected(self, stream):
        with pytest.raises(ValueError):
            await stream.seek(-1)

    @pytest.mark.asyncio
    async def test_server_ignoring_range_is_skipped_forward(self, upstream, http_client):
        upstream.on(
            MEDIA_URL,
            handler=lambda request: httpx.Response(200, content=AUDIO),
        )
        byte_stream = HttpByteStream(http_client, MEDIA_URL, chunk_size=1000)

        await byte_stream.seek(2500)
        assert await byte_stream.read(10) == AUDIO[2500:2510]
        await byte_stream.aclose()

    @pytest.mark.asyncio
    async def test_seek_past_end_reads_nothing(self, stream):
        await stream.seek(len(AUDIO) + 100)

        assert await stream.read(10) == b""


class TestFailures:
    @pytest.mark.asyncio
    async def test_http_error_status_mentions_track(self, upstream, http_client):
        upstream.on(MEDIA_URL, status_code=403, content=b"expired signature")
        byte_stream = HttpByteStream(http_client, MEDIA_URL, identifier="D7KyD")

        with pytest.raises(UpstreamTransportError, match="D7KyD"):
            await byte_stream.read(10)

    @pytest.mark.asyncio
    async def test_connect_failure_wrapped(self, upstream, http_client):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        upstream.on(MEDIA_URL, handler=refuse)
        byte_stream = HttpByteStream(http_client, MEDIA_URL, identifier="D7KyD")

        with pytest.raises(UpstreamTransportError, match="track ID: D7KyD") as exc_info:
            await byte_stream.connect()
        assert exc_info.value.identifier == "D7KyD"

    @pytest.mark.asyncio
    async def test_closed_stream_rejects_io(self, stream):
        await stream.read(1)
        await stream.aclose()

        assert stream.closed
        with pytest.raises(ValueError):
            await stream.read(1)
        with pytest.raises(ValueError):
            await stream.seek(0)
