"""HTTP proxying utilities for upstream requests."""

import asyncio
import contextlib
from collections.abc import AsyncIterator

import httpx
from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from core.config import Config
from core.exceptions import RelayIOError, UpstreamTransportError
from core.headers import copy_response_headers_filtered
from core.protocols import RequestLogger
from core.request_types import PreparedRequest

# Chunks read ahead of the caller before the upstream read blocks.
RELAY_QUEUE_SIZE = 8

_END = object()


def create_http_client(
    config: Config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared upstream client with a fixed idle-connection pool."""
    limits = httpx.Limits(
        max_connections=100,
        max_keepalive_connections=config.upstream.max_idle_connections,
    )
    return httpx.AsyncClient(
        timeout=config.upstream.timeout,
        limits=limits,
        transport=transport,
    )


class StreamRelay:
    """Producer/consumer pair moving upstream chunks to the caller.

    The producer task pulls raw chunks from the upstream response into a
    bounded queue; ``stream()`` drains it in arrival order. A full queue
    stops the producer, so a slow caller throttles the upstream read.
    """

    def __init__(
        self,
        response: httpx.Response,
        logger: RequestLogger | None = None,
        maxsize: int = RELAY_QUEUE_SIZE,
    ) -> None:
        self._response = response
        self._logger = logger
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._producer: asyncio.Task | None = None

    def start(self) -> "StreamRelay":
        self._producer = asyncio.create_task(self._produce())
        return self

    async def _produce(self) -> None:
        try:
            async for chunk in self._response.aiter_raw():
                await self._queue.put(chunk)
        except Exception as e:
            # Handed to the consumer, which ends the outbound stream.
            await self._queue.put(e)
            return
        await self._queue.put(_END)

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield upstream chunks until the upstream body ends."""
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, Exception):
                if self._logger:
                    self._logger.log_error("upstream", self._response.status_code, f"stream error: {item}")
                raise RelayIOError(f"upstream stream error: {item}") from item
            yield item

    async def aclose(self) -> None:
        """Stop the producer and release the upstream response."""
        if self._producer and not self._producer.done():
            self._producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._producer
        await self._response.aclose()


class RelayResponse(StreamingResponse):
    """Streaming response that always releases its relay once sending stops."""

    def __init__(self, relay: StreamRelay, status_code: int, headers: list[tuple[bytes, bytes]]) -> None:
        super().__init__(relay.stream(), status_code=status_code)
        self.raw_headers.extend(headers)
        self._relay = relay

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self._relay.aclose()


class UpstreamClient:
    """Proxy requests to the upstream API with streaming support."""

    def __init__(self, client: httpx.AsyncClient, logger: RequestLogger) -> None:
        self._client = client
        self._logger = logger

    async def send(self, prepared: PreparedRequest) -> RelayResponse:
        """Send the prepared request and relay the response as it arrives."""
        # A bare request carries no client default headers (accept-encoding, user-agent)
        req = httpx.Request(
            prepared.method,
            prepared.url,
            headers=prepared.headers,
            content=prepared.body,
        )
        try:
            response = await self._client.send(req, stream=True)
        except httpx.RequestError as e:
            raise UpstreamTransportError(f"upstream send error: {e}") from e

        headers: list[tuple[bytes, bytes]] = []
        dropped = copy_response_headers_filtered(response.headers.raw, headers)
        for name in dropped:
            self._logger.log_warning(f"dropped invalid response header: {name}")

        relay = StreamRelay(response, self._logger).start()
        return RelayResponse(relay, response.status_code, headers)
