"""HTTP transport on top of ``httpx.AsyncClient``.

Every failure leaves this module as a ``TransportError`` carrying the status
code and retry metadata, so callers can tell retryable conditions from
permanent ones without brittle substring matching.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from claudius._http import DEFAULT_API_VERSION, RETRYABLE_STATUS_CODES
from claudius.errors import RateLimitError, TransportError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

logger = logging.getLogger(__name__)


def _user_agent() -> str:
    from claudius import __version__

    return f"claudius/{__version__}"


def extract_retry_after_s(headers: Mapping[str, str] | None) -> float | None:
    """Parse a ``Retry-After`` header given in seconds."""
    if headers is None:
        return None
    raw = headers.get("retry-after")
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        seconds = float(raw)
    except ValueError:
        # HTTP-date form is not used by the API.
        return None
    return seconds if seconds >= 0 else None


def _auth_hint(status_code: int | None) -> str | None:
    if status_code in {401, 403}:
        return "Check credentials/permissions (set ANTHROPIC_API_KEY or Config.api_key)."
    return None


def error_from_response(
    status_code: int, headers: Mapping[str, str] | None, body: bytes
) -> TransportError:
    """Build a TransportError from a non-2xx HTTP response."""
    error_type: str | None = None
    detail = body.decode("utf-8", errors="replace").strip()
    try:
        parsed: Any = json.loads(body)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("error"), dict):
        err = parsed["error"]
        if isinstance(err.get("type"), str):
            error_type = err["type"]
        if isinstance(err.get("message"), str):
            detail = err["message"]

    retry_after_s = extract_retry_after_s(headers)
    retryable = retry_after_s is not None or status_code in RETRYABLE_STATUS_CODES

    err_cls: type[TransportError] = RateLimitError if status_code == 429 else TransportError
    kind = f" {error_type}" if error_type else ""
    message = f"HTTP {status_code}{kind}"
    if detail:
        message = f"{message}: {detail}"
    return err_cls(
        message,
        hint=_auth_hint(status_code),
        status_code=status_code,
        error_type=error_type,
        retryable=retryable,
        retry_after_s=retry_after_s,
    )


def wrap_transport_error(exc: BaseException, *, phase: str) -> TransportError:
    """Map httpx exceptions into TransportError with stable retry metadata."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc
    if isinstance(exc, TransportError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        return TransportError(
            f"{phase} timed out: {exc}",
            hint="Increase Config.timeout_s or retry later.",
            retryable=True,
        )
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        return error_from_response(
            response.status_code, response.headers, response.content
        )
    retryable = isinstance(exc, httpx.RequestError)
    cause = str(exc) or type(exc).__name__
    return TransportError(f"{phase} failed: {cause}", retryable=retryable)


class HttpTransport:
    """Authenticated JSON/SSE exchange with the API.

    Pass ``http_client`` to control the underlying ``httpx.AsyncClient``
    (proxies, event hooks); an injected client is never closed here.
    ``http_transport`` swaps the network layer of a client created here,
    e.g. ``httpx.MockTransport`` for offline use.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        timeout_s: float | None = 600.0,
        http_client: httpx.AsyncClient | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with endpoint and credentials."""
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._api_version = api_version
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_s, transport=http_transport
        )

    def _headers(self, *, accept: str) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
            "content-type": "application/json",
            "accept": accept,
            "user-agent": _user_agent(),
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def post_json(self, path: str, payload: dict[str, Any]) -> bytes:
        """Send one request and return the full response body."""
        try:
            response = await self._client.post(
                self._url(path),
                json=payload,
                headers=self._headers(accept="application/json"),
            )
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as e:
            raise wrap_transport_error(e, phase=f"POST {path}") from e

        if response.is_error:
            raise error_from_response(
                response.status_code, response.headers, response.content
            )
        return response.content

    @asynccontextmanager
    async def stream(
        self, path: str, payload: dict[str, Any]
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a streaming exchange and yield its raw byte chunks.

        The response is released when the context exits, whether the body
        was fully read or not.
        """
        request = self._client.build_request(
            "POST",
            self._url(path),
            json=payload,
            headers=self._headers(accept="text/event-stream"),
        )
        try:
            response = await self._client.send(request, stream=True)
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as e:
            raise wrap_transport_error(e, phase=f"POST {path}") from e

        logger.debug("Stream opened: %s (status=%s)", path, response.status_code)
        try:
            if response.is_error:
                try:
                    body = await response.aread()
                except httpx.HTTPError as e:
                    raise wrap_transport_error(e, phase=f"POST {path}") from e
                raise error_from_response(response.status_code, response.headers, body)
            yield _iter_chunks(response, path)
        finally:
            await response.aclose()
            logger.debug("Stream closed: %s", path)

    async def aclose(self) -> None:
        """Close the underlying client when this transport created it."""
        if self._owns_client:
            await self._client.aclose()


async def _iter_chunks(response: httpx.Response, path: str) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except asyncio.CancelledError:
        raise
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise wrap_transport_error(e, phase=f"reading {path}") from e
