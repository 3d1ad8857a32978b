"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: HTTP behavior is faked with
``httpx.MockTransport`` so the real transport code path is exercised.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
import json
from typing import TYPE_CHECKING, Any

import httpx

from claudius.client import Client
from claudius.config import Config
from claudius.transport import HttpTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterable


def sse(event: str | None, data: dict[str, Any] | str) -> bytes:
    """Render one SSE event."""
    payload = data if isinstance(data, str) else json.dumps(data)
    head = f"event: {event}\n" if event else ""
    return f"{head}data: {payload}\n\n".encode()


def split_every(data: bytes, size: int) -> list[bytes]:
    """Split *data* into chunks of at most *size* bytes."""
    return [data[i : i + size] for i in range(0, len(data), size)]


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in fixed chunks, optionally failing afterwards."""

    def __init__(self, chunks: Iterable[bytes], *, error: Exception | None = None) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.delivered = 0
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            self.delivered += 1
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class RecordingHandler:
    """MockTransport handler that records requests and replays a response."""

    respond: Callable[[httpx.Request], httpx.Response]
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@asynccontextmanager
async def mock_client(
    handler: Callable[[httpx.Request], httpx.Response],
    config: Config | None = None,
) -> AsyncIterator[Client]:
    """Yield a Client whose HTTP traffic goes to *handler*."""
    config = config or Config(api_key="test-key", base_url="https://api.test")
    transport = HttpTransport(
        str(config.base_url),
        str(config.api_key),
        http_transport=httpx.MockTransport(handler),
    )
    try:
        async with Client(config, transport=transport) as client:
            yield client
    finally:
        await transport.aclose()


def byte_source(
    chunks: Iterable[bytes],
    *,
    error: Exception | None = None,
    closed: list[bool] | None = None,
) -> Callable[[], Any]:
    """An ``open_stream`` callable for EventStream without any HTTP."""
    chunk_list = list(chunks)

    @asynccontextmanager
    async def open_stream() -> AsyncIterator[AsyncIterator[bytes]]:
        async def gen() -> AsyncIterator[bytes]:
            for chunk in chunk_list:
                yield chunk
            if error is not None:
                raise error

        try:
            yield gen()
        finally:
            if closed is not None:
                closed.append(True)

    return open_stream
