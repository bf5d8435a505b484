"""Seekable byte stream over an HTTP media URL.

The connection is opened lazily and reopened with a ``Range`` header after
every seek, so a decoder can jump around an MP3 without downloading it
whole. Only one response is open at a time and it is always closed on
seek, on close and on context exit.
"""

from collections.abc import AsyncIterator
import io
import re

from attrs import define, field
import httpx

from audius_source.config import get_logger
from audius_source.domain.exceptions import UpstreamTransportError

logger = get_logger(__name__).bind(service="streaming")

_CONTENT_RANGE_TOTAL = re.compile(r"/(\d+)\s*$")

# Overrides the API client's default JSON Accept header
MEDIA_ACCEPT = "audio/*, */*;q=0.8"


@define(slots=True)
class HttpByteStream:
    """Async, seekable reader over one media URL.

    Attributes:
        client: Shared HTTP client the requests are issued with
        url: Final, directly fetchable media URL
        chunk_size: Size of network reads
        identifier: Track id attached to errors
        content_length: Total size in bytes once known
        content_type: Media type reported by the server
    """

    client: httpx.AsyncClient = field(repr=False)
    url: str
    chunk_size: int = 64 * 1024
    identifier: str | None = None
    content_length: int | None = field(default=None, init=False)
    content_type: str | None = field(default=None, init=False)
    _position: int = field(default=0, init=False)
    _response: httpx.Response | None = field(default=None, init=False, repr=False)
    _chunks: AsyncIterator[bytes] | None = field(default=None, init=False, repr=False)
    _buffer: bytearray = field(factory=bytearray, init=False, repr=False)
    _closed: bool = field(default=False, init=False)

    # -------------------------------------------------------------------------
    # Connection management
    # -------------------------------------------------------------------------

    def _transport_error(self, message: str) -> UpstreamTransportError:
        label = self.identifier or self.url
        return UpstreamTransportError(
            f"{message} for track ID: {label}", identifier=self.identifier
        )

    async def connect(self) -> None:
        """Open the media response at the current position."""
        if self._closed:
            raise ValueError("I/O operation on closed stream")
        if self._response is not None:
            return

        headers = {"Accept": MEDIA_ACCEPT}
        if self._position:
            headers["Range"] = f"bytes={self._position}-"
        request = self.client.build_request("GET", self.url, headers=headers)
        logger.debug(f"Opening media stream at byte {self._position}", url=self.url)

        try:
            response = await self.client.send(request, stream=True)
        except httpx.RequestError as e:
            raise self._transport_error("Error opening Audius stream") from e

        if response.status_code == 416 and self._position:
            # Seeked to or past the end
            await response.aclose()
            self.content_length = self.content_length or self._position
            return
        if response.status_code not in (200, 206):
            await response.aclose()
            raise self._transport_error(
                f"Media server responded with HTTP {response.status_code}"
            )

        self._response = response
        self._chunks = response.aiter_bytes(self.chunk_size)
        self.content_type = response.headers.get("Content-Type", self.content_type)
        self._update_length(response)

        if response.status_code == 200 and self._position:
            # Server ignored the range; discard up to the requested position
            await self._discard(self._position)

    def _update_length(self, response: httpx.Response) -> None:
        content_range = response.headers.get("Content-Range")
        if content_range:
            match = _CONTENT_RANGE_TOTAL.search(content_range)
            if match:
                self.content_length = int(match.group(1))
                return
        length = response.headers.get("Content-Length")
        if length and length.isdigit():
            offset = self._position if response.status_code == 206 else 0
            self.content_length = int(length) + offset

    async def _discard(self, count: int) -> None:
        while count > 0:
            chunk = await self._next_chunk()
            if chunk is None:
                return
            if len(chunk) > count:
                self._buffer.extend(chunk[count:])
            count -= len(chunk)

    async def _next_chunk(self) -> bytes | None:
        if self._chunks is None:
            return None
        try:
            return await anext(self._chunks)
        except StopAsyncIteration:
            return None
        except httpx.RequestError as e:
            await self._disconnect()
            raise self._transport_error("Error reading Audius stream") from e

    async def _disconnect(self) -> None:
        response, self._response, self._chunks = self._response, None, None
        self._buffer.clear()
        if response is not None:
            await response.aclose()

    # -------------------------------------------------------------------------
    # File-like API
    # -------------------------------------------------------------------------

    def tell(self) -> int:
        return self._position

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def seekable(self) -> bool:
        return True

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; all remaining bytes when negative."""
        if self._closed:
            raise ValueError("I/O operation on closed stream")
        if size == 0:
            return b""
        if self.content_length is not None and self._position >= self.content_length:
            return b""
        if self._response is None:
            await self.connect()

        while size < 0 or len(self._buffer) < size:
            chunk = await self._next_chunk()
            if chunk is None:
                break
            self._buffer.extend(chunk)

        if size < 0 or size >= len(self._buffer):
            data = bytes(self._buffer)
            self._buffer.clear()
        else:
            data = bytes(self._buffer[:size])
            del self._buffer[:size]

        self._position += len(data)
        return data

    async def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move to a new position; the next read reopens with a Range request."""
        if self._closed:
            raise ValueError("I/O operation on closed stream")

        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._position + offset
        elif whence == io.SEEK_END:
            if self.content_length is None:
                raise io.UnsupportedOperation("Stream length is unknown")
            target = self.content_length + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")

        if target < 0:
            raise ValueError(f"Negative seek position {target}")

        if target != self._position:
            await self._disconnect()
            self._position = target
        return self._position

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the rest of the stream in ``chunk_size`` pieces."""
        while chunk := await self.read(self.chunk_size):
            yield chunk

    async def aclose(self) -> None:
        await self._disconnect()
        self._closed = True

    async def __aenter__(self) -> "HttpByteStream":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
