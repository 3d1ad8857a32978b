"""Incremental decoding of server-sent event streams.

Bytes arrive in arbitrary chunks from the transport. ``SSEDecoder`` turns
them into discrete events, an event parser turns each event into a typed
fragment, and ``EventStream`` exposes the result as a lazy, single-pass
async sequence of ``StreamItem`` values.

Errors never escape the iteration as exceptions: a transport, framing or
decode failure becomes exactly one error item, after which the sequence ends.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import json
import logging
import re
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from claudius.errors import (
    ClaudiusError,
    DecodeError,
    RateLimitError,
    StreamFramingError,
    TransportError,
)
from claudius.types import (
    MESSAGE_EVENT_TYPES,
    CompletionResponse,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessagesResponse,
    MessageStartEvent,
    MessageStopEvent,
    StopReason,
    TextDelta,
    decode_completion,
    decode_message_event,
    decode_messages,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Callable, Iterator
    from contextlib import AbstractAsyncContextManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LINE_END = re.compile(rb"\r\n|\r|\n")
_DONE = "[DONE]"
_RETRYABLE_ERROR_TYPES = frozenset({"overloaded_error", "api_error", "rate_limit_error"})


# --- Framing ---


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched server-sent event."""

    event: str | None = None
    data: str = ""
    id: str | None = None
    retry: int | None = None

    def json(self) -> Any:
        """Parse ``data`` as JSON."""
        try:
            return json.loads(self.data)
        except ValueError as exc:
            raise DecodeError(f"Malformed JSON in {self.event or 'message'} event: {exc}") from exc


class SSEDecoder:
    """Byte-level SSE decoder that tolerates any chunk boundaries.

    Lines are split on ``\\r\\n``, ``\\r`` or ``\\n``. A trailing ``\\r`` is held
    back until the next chunk shows whether a ``\\n`` follows it.

    ``feed()`` and ``close()`` return lazy iterators: each line is decoded
    only when the caller asks for the next event, so a caller that stops at a
    terminal event never touches the bytes after it.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        # Bytes before this offset are known to hold no line terminator.
        self._scan = 0
        self._event: str | None = None
        self._data: list[str] = []
        self._last_id: str | None = None
        self._retry: int | None = None

    def feed(self, chunk: bytes) -> Iterator[ServerSentEvent]:
        """Consume *chunk* and iterate over every event it completes."""
        self._buffer += chunk
        return self._drain(final=False)

    def close(self) -> Iterator[ServerSentEvent]:
        """Flush at end of input.

        Iteration raises ``StreamFramingError`` once the remaining events are
        consumed if the input stopped in the middle of an event.
        """
        yield from self._drain(final=True)
        if self._buffer:
            tail = bytes(self._buffer)
            self._buffer.clear()
            self._scan = 0
            event = self._process_line(self._decode(tail))
            if event is not None:
                yield event
        if self._data or self._event is not None:
            raise StreamFramingError(
                "Stream ended inside an unterminated event",
                hint="The connection may have been cut before the final blank line.",
            )

    def _drain(self, *, final: bool) -> Iterator[ServerSentEvent]:
        while (raw := self._next_line(final=final)) is not None:
            event = self._process_line(self._decode(raw))
            if event is not None:
                yield event

    def _next_line(self, *, final: bool) -> bytes | None:
        buf = self._buffer
        m = _LINE_END.search(buf, self._scan)
        if m is None:
            self._scan = len(buf)
            return None
        if not final and m.group() == b"\r" and m.end() == len(buf):
            self._scan = m.start()
            return None
        line = bytes(buf[: m.start()])
        del buf[: m.end()]
        self._scan = 0
        return line

    @staticmethod
    def _decode(raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StreamFramingError(f"Event line is not valid UTF-8: {exc}") from exc

    def _process_line(self, line: str) -> ServerSentEvent | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self._last_id = value
        elif name == "retry":
            if value.isdigit():
                self._retry = int(value)
        # Unknown fields are ignored.
        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._data:
            self._event = None
            return None
        event = ServerSentEvent(
            event=self._event,
            data="\n".join(self._data),
            id=self._last_id,
            retry=self._retry,
        )
        self._event = None
        self._data = []
        return event


# --- Event parsing ---


def _server_error(payload: Any) -> TransportError:
    error: Any = payload.get("error") if isinstance(payload, dict) else None
    error_type = None
    message = "unknown error"
    if isinstance(error, dict):
        if isinstance(error.get("type"), str):
            error_type = error["type"]
        if isinstance(error.get("message"), str):
            message = error["message"]
    err_cls = RateLimitError if error_type == "rate_limit_error" else TransportError
    return err_cls(
        f"Server reported {error_type or 'an error'} mid-stream: {message}",
        error_type=error_type,
        retryable=error_type in _RETRYABLE_ERROR_TYPES,
    )


def parse_completion_event(sse: ServerSentEvent) -> CompletionResponse | None:
    """Parse a Text Completions stream event; ``None`` means skip it."""
    if sse.event == "ping":
        return None
    if sse.event == "error":
        raise _server_error(sse.json())
    if sse.event not in (None, "completion"):
        logger.debug("Skipping unknown completion stream event %r", sse.event)
        return None
    return decode_completion(sse.data)


def parse_message_event(sse: ServerSentEvent) -> Any:
    """Parse a Messages stream event; ``None`` means skip it."""
    payload = sse.json()
    if not isinstance(payload, dict):
        raise DecodeError(f"Stream event payload must be an object, got {type(payload).__name__}")
    kind = payload.get("type", sse.event)
    if kind == "error" or sse.event == "error":
        raise _server_error(payload)
    if kind == "ping":
        return None
    if kind not in MESSAGE_EVENT_TYPES:
        if kind is None:
            raise DecodeError("Stream event has no type")
        logger.debug("Skipping unknown message stream event %r", kind)
        return None
    return decode_message_event(payload)


def is_terminal(fragment: Any) -> bool:
    """Whether no further fragments should follow *fragment*."""
    if isinstance(fragment, MessageStopEvent):
        return True
    return getattr(fragment, "stop_reason", None) == StopReason.STOP_SEQUENCE


# --- Lazy sequence ---


@dataclass(frozen=True)
class StreamItem(Generic[T]):
    """One element of an ``EventStream``: a fragment or a terminal error."""

    fragment: T | None = None
    error: ClaudiusError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the fragment, raising the carried error instead if present."""
        if self.error is not None:
            raise self.error
        return self.fragment  # type: ignore[return-value]


class EventStream(Generic[T]):
    """Lazy, single-pass async sequence of ``StreamItem[T]``.

    Nothing is sent until the first item is pulled. Call ``aclose()`` or use
    ``async with`` to stop early; the HTTP response is released either way.

    Example:
        async with client.stream_messages(request) as stream:
            async for item in stream:
                if not item.ok:
                    ...
    """

    def __init__(
        self,
        open_stream: Callable[[], AbstractAsyncContextManager[AsyncIterator[bytes]]],
        parse: Callable[[ServerSentEvent], T | None],
    ) -> None:
        self._open_stream = open_stream
        self._parse = parse
        self._iterator: AsyncGenerator[StreamItem[T], None] | None = None
        self._closed = False

    def __aiter__(self) -> EventStream[T]:
        return self

    async def __anext__(self) -> StreamItem[T]:
        if self._closed:
            raise StopAsyncIteration
        if self._iterator is None:
            self._iterator = self._iterate()
        return await self._iterator.__anext__()

    async def __aenter__(self) -> EventStream[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop decoding and release the underlying connection."""
        self._closed = True
        iterator, self._iterator = self._iterator, None
        if iterator is not None:
            await iterator.aclose()

    async def fragments(self) -> AsyncIterator[T]:
        """Yield bare fragments, raising the first error item instead.

        Leaving the loop early, or closing this generator, closes the stream.
        """
        try:
            async for item in self:
                yield item.unwrap()
        finally:
            await self.aclose()

    async def _iterate(self) -> AsyncGenerator[StreamItem[T], None]:
        decoder = SSEDecoder()
        try:
            async with self._open_stream() as chunks:
                async for chunk in chunks:
                    for sse in decoder.feed(chunk):
                        item, terminal = self._handle(sse)
                        if item is not None:
                            yield item
                        if terminal:
                            logger.debug("Terminal stream event; ignoring remaining bytes")
                            return
                for sse in decoder.close():
                    item, terminal = self._handle(sse)
                    if item is not None:
                        yield item
                    if terminal:
                        return
        except asyncio.CancelledError:
            raise
        except ClaudiusError as exc:
            logger.debug("Stream ended with %s: %s", type(exc).__name__, exc)
            yield StreamItem(error=exc)

    def _handle(self, sse: ServerSentEvent) -> tuple[StreamItem[T] | None, bool]:
        if sse.data == _DONE:
            return None, True
        fragment = self._parse(sse)
        if fragment is None:
            return None, False
        return StreamItem(fragment=fragment), is_terminal(fragment)


# --- Accumulation ---


async def accumulate_message(stream: EventStream[Any]) -> MessagesResponse:
    """Fold a Messages event stream into one complete ``MessagesResponse``.

    Raises the first error item of the stream.
    """
    message: dict[str, Any] | None = None
    blocks: dict[int, dict[str, Any]] = {}
    partial_json: dict[int, list[str]] = {}

    async for event in stream.fragments():
        if isinstance(event, MessageStartEvent):
            message = event.message.model_dump(mode="json")
        elif isinstance(event, ContentBlockStartEvent):
            blocks[event.index] = event.content_block.model_dump(mode="json")
        elif isinstance(event, ContentBlockDeltaEvent):
            block = blocks.setdefault(event.index, {"type": "text", "text": ""})
            if isinstance(event.delta, TextDelta):
                block["text"] = block.get("text", "") + event.delta.text
            elif isinstance(event.delta, InputJsonDelta):
                partial_json.setdefault(event.index, []).append(event.delta.partial_json)
        elif isinstance(event, MessageDeltaEvent) and message is not None:
            message["stop_reason"] = event.delta.stop_reason
            message["stop_sequence"] = event.delta.stop_sequence
            if event.usage is not None:
                message["usage"]["output_tokens"] = event.usage.output_tokens

    if message is None:
        raise DecodeError("Stream ended before a message_start event")

    for index, pieces in partial_json.items():
        raw = "".join(pieces)
        if raw:
            try:
                blocks[index]["input"] = json.loads(raw)
            except ValueError as exc:
                raise DecodeError(f"Malformed tool input JSON in block {index}: {exc}") from exc

    message["content"] = [blocks[i] for i in sorted(blocks)]
    return decode_messages(message)


async def accumulate_completion(stream: EventStream[Any]) -> CompletionResponse:
    """Concatenate streamed completion fragments into one response.

    Raises the first error item of the stream.
    """
    pieces: list[str] = []
    stop_reason: StopReason | None = None
    async for fragment in stream.fragments():
        pieces.append(fragment.completion)
        if fragment.stop_reason is not None:
            stop_reason = fragment.stop_reason
    return CompletionResponse(completion="".join(pieces), stop_reason=stop_reason)
