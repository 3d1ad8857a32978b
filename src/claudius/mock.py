"""Mock HTTP transport for offline use and testing.

Answers both endpoints with deterministic echo responses, as JSON or as a
server-sent event stream depending on the request's ``stream`` flag.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from claudius._http import COMPLETE_PATH, MESSAGES_PATH

MOCK_MESSAGE_ID = "msg_mock"


def _echo_text(text: str) -> str:
    return f"echo: {text[:100]}"


def _last_user_text(messages: list[dict[str, Any]]) -> str:
    for message in reversed(messages):
        if message.get("role") != "user":
            continue
        content = message.get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                b.get("text", "") for b in content if isinstance(b, dict) and b.get("type") == "text"
            )
    return ""


def sse_body(events: list[tuple[str, dict[str, Any]]]) -> bytes:
    """Render ``(event, data)`` pairs with SSE framing."""
    return "".join(
        f"event: {name}\ndata: {json.dumps(data)}\n\n" for name, data in events
    ).encode("utf-8")


def message_events(
    text: str, *, model: str, input_tokens: int = 10, stop_reason: str = "end_turn"
) -> list[tuple[str, dict[str, Any]]]:
    """Messages API stream events that spell out *text* word by word."""
    words = text.split(" ")
    deltas = [w if i == 0 else f" {w}" for i, w in enumerate(words)]
    events: list[tuple[str, dict[str, Any]]] = [
        (
            "message_start",
            {
                "type": "message_start",
                "message": {
                    "id": MOCK_MESSAGE_ID,
                    "type": "message",
                    "role": "assistant",
                    "content": [],
                    "model": model,
                    "stop_reason": None,
                    "stop_sequence": None,
                    "usage": {"input_tokens": input_tokens, "output_tokens": 0},
                },
            },
        ),
        (
            "content_block_start",
            {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        ),
        ("ping", {"type": "ping"}),
    ]
    events.extend(
        (
            "content_block_delta",
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": d}},
        )
        for d in deltas
    )
    events.extend(
        [
            ("content_block_stop", {"type": "content_block_stop", "index": 0}),
            (
                "message_delta",
                {
                    "type": "message_delta",
                    "delta": {"stop_reason": stop_reason, "stop_sequence": None},
                    "usage": {"output_tokens": len(deltas)},
                },
            ),
            ("message_stop", {"type": "message_stop"}),
        ]
    )
    return events


def _handle(request: httpx.Request) -> httpx.Response:
    try:
        body: dict[str, Any] = json.loads(request.content or b"{}")
    except ValueError:
        return httpx.Response(
            400,
            json={"type": "error", "error": {"type": "invalid_request_error", "message": "invalid JSON"}},
        )
    stream = bool(body.get("stream"))
    model = str(body.get("model", ""))

    if request.url.path == MESSAGES_PATH:
        text = _echo_text(_last_user_text(body.get("messages", [])))
        if stream:
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=sse_body(message_events(text, model=model)),
            )
        return httpx.Response(
            200,
            json={
                "id": MOCK_MESSAGE_ID,
                "type": "message",
                "role": "assistant",
                "content": [{"type": "text", "text": text}],
                "model": model,
                "stop_reason": "end_turn",
                "stop_sequence": None,
                "usage": {"input_tokens": 10, "output_tokens": len(text.split())},
            },
        )

    if request.url.path == COMPLETE_PATH:
        text = _echo_text(str(body.get("prompt", "")).strip())
        if stream:
            events = [
                ("completion", {"type": "completion", "completion": f" {w}", "stop_reason": None, "model": model})
                for w in text.split(" ")
            ]
            events.append(
                ("completion", {"type": "completion", "completion": "", "stop_reason": "stop_sequence", "model": model})
            )
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=sse_body(events),
            )
        return httpx.Response(
            200,
            json={"type": "completion", "completion": text, "stop_reason": "stop_sequence", "model": model},
        )

    return httpx.Response(
        404,
        json={"type": "error", "error": {"type": "not_found_error", "message": f"{request.url.path} not found"}},
    )


def mock_transport() -> httpx.MockTransport:
    """Return an httpx transport that answers without network access."""
    return httpx.MockTransport(_handle)
