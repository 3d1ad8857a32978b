"""Real API integration tests.

These tests make real Anthropic calls and are intentionally compact:
- ENABLE_API_TESTS=1 is required to run any API tests
- ANTHROPIC_API_KEY is required by the fixture
"""

from __future__ import annotations

import pytest

from claudius import Client, Config, Model, StopReason, TransportError, accumulate_message

pytestmark = [pytest.mark.api]

_MODEL = Model.CLAUDE_3_HAIKU_20240307


@pytest.mark.asyncio
async def test_messages_single_call(anthropic_api_key: str) -> None:
    async with Client(Config(api_key=anthropic_api_key)) as client:
        request = (
            client.messages_builder()
            .model(_MODEL)
            .system("Answer with a single word.")
            .user("What color is a clear daytime sky?")
            .max_tokens(10)
            .temperature(0.0)
            .build()
        )
        response = await client.messages(request)

    assert response.id
    assert response.text.strip()
    assert response.usage.output_tokens > 0


@pytest.mark.asyncio
async def test_messages_stream_matches_stop_sequence(anthropic_api_key: str) -> None:
    async with Client(Config(api_key=anthropic_api_key)) as client:
        request = (
            client.messages_builder()
            .model(_MODEL)
            .user("Count from 1 to 10 separated by spaces.")
            .max_tokens(50)
            .stop_sequences(["5"])
            .build()
        )
        message = await accumulate_message(client.stream_messages(request))

    assert message.stop_reason is StopReason.STOP_SEQUENCE
    assert "6" not in message.text


@pytest.mark.asyncio
async def test_bad_key_is_rejected(anthropic_api_key: str) -> None:
    del anthropic_api_key
    async with Client(Config(api_key="sk-ant-invalid")) as client:
        request = client.messages_builder().user("hi").max_tokens(1).build()
        with pytest.raises(TransportError) as exc:
            await client.messages(request)

    assert exc.value.status_code == 401
    assert exc.value.retryable is False
