"""API client: single and streaming calls for completions and messages."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from claudius._http import COMPLETE_PATH, MESSAGES_PATH
from claudius.builders import CompletionRequestBuilder, MessagesRequestBuilder
from claudius.streaming import EventStream, parse_completion_event, parse_message_event
from claudius.transport import HttpTransport
from claudius.types import DEFAULT_MODEL, decode_completion, decode_messages

if TYPE_CHECKING:
    from types import TracebackType

    from claudius.config import Config
    from claudius.types import (
        CompletionRequest,
        CompletionResponse,
        MessagesRequest,
        MessagesResponse,
    )

logger = logging.getLogger(__name__)


class Client:
    """Stateless client for the Text Completions and Messages APIs.

    Each call is independent: no retries, no caching, and requests are sent
    exactly as built.

    Example:
        async with Client(Config()) as client:
            request = client.messages_builder().user("Hello AI").max_tokens(256).build()
            response = await client.messages(request)
    """

    def __init__(self, config: Config, *, transport: HttpTransport | None = None) -> None:
        """Initialize from a resolved Config.

        ``transport`` overrides the HTTP layer; it is then owned by the caller.
        """
        self.config = config
        self._owns_transport = transport is None
        if transport is None:
            http_transport = None
            if config.use_mock:
                from claudius.mock import mock_transport

                http_transport = mock_transport()
            transport = HttpTransport(
                str(config.base_url),
                config.api_key or "mock",
                api_version=config.api_version,
                timeout_s=config.timeout_s,
                http_transport=http_transport,
            )
        self._transport = transport

    def completion_builder(self) -> CompletionRequestBuilder:
        """Return a builder seeded with the configured default model."""
        return CompletionRequestBuilder(default_model=self.config.default_model or DEFAULT_MODEL)

    def messages_builder(self) -> MessagesRequestBuilder:
        """Return a builder seeded with the configured default model."""
        return MessagesRequestBuilder(default_model=self.config.default_model or DEFAULT_MODEL)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send a completion request and return the full response."""
        body = await self._post(COMPLETE_PATH, request.to_payload(stream=False), request.model.value)
        return decode_completion(body)

    def stream_complete(self, request: CompletionRequest) -> EventStream[CompletionResponse]:
        """Return a lazy stream of completion fragments.

        The request is sent when the first item is pulled.
        """
        payload = request.to_payload(stream=True)
        logger.debug("Streaming %s (model=%s)", COMPLETE_PATH, request.model.value)
        return EventStream(
            lambda: self._transport.stream(COMPLETE_PATH, payload),
            parse_completion_event,
        )

    async def messages(self, request: MessagesRequest) -> MessagesResponse:
        """Send a messages request and return the full response."""
        body = await self._post(MESSAGES_PATH, request.to_payload(), request.model.value)
        return decode_messages(body)

    def stream_messages(self, request: MessagesRequest) -> EventStream[Any]:
        """Return a lazy stream of Messages API events.

        The request is sent when the first item is pulled.
        """
        payload = request.to_payload(stream=True)
        logger.debug("Streaming %s (model=%s)", MESSAGES_PATH, request.model.value)
        return EventStream(
            lambda: self._transport.stream(MESSAGES_PATH, payload),
            parse_message_event,
        )

    async def _post(self, path: str, payload: dict[str, Any], model: str) -> bytes:
        logger.debug("POST %s (model=%s)", path, model)
        return await self._transport.post_json(path, payload)

    async def aclose(self) -> None:
        """Close transport resources this client created."""
        if not self._owns_transport:
            return
        try:
            await self._transport.aclose()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Cleanup should never mask the primary failure.
            logger.warning("Transport cleanup failed: %s", exc)

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"Client({self.config!r})"
