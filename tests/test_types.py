"""Wire-format contract tests for request and response models.

These are characterization tests: field names and enum strings are consumed
by the remote API, so drift here is a compatibility break.
"""

from __future__ import annotations

import json

import pytest

from claudius.errors import DecodeError, ValidationError
from claudius.types import (
    DEFAULT_MODEL,
    CompletionRequest,
    ImageBlock,
    Message,
    MessagesRequest,
    Model,
    Role,
    StopReason,
    TextBlock,
    UnknownBlock,
    decode_completion,
    decode_message_event,
    decode_messages,
)

pytestmark = pytest.mark.contract

_EXAMPLE_RESPONSE = {
    "id": "msg_1",
    "content": [{"type": "text", "text": "I'm doing well!"}],
    "model": "claude-3-haiku-20240307",
    "stop_reason": "end_turn",
    "stop_sequence": None,
    "usage": {"input_tokens": 10, "output_tokens": 5},
}


def _response(**overrides: object) -> dict[str, object]:
    data = dict(_EXAMPLE_RESPONSE)
    data.update(overrides)
    return data


# =============================================================================
# Enumerations
# =============================================================================


@pytest.mark.parametrize(
    ("model", "wire"),
    [
        (Model.CLAUDE_3_OPUS_20240229, "claude-3-opus-20240229"),
        (Model.CLAUDE_3_SONNET_20240229, "claude-3-sonnet-20240229"),
        (Model.CLAUDE_3_HAIKU_20240307, "claude-3-haiku-20240307"),
        (Model.CLAUDE_2_1, "claude-2.1"),
        (Model.CLAUDE_2_0, "claude-2.0"),
        (Model.CLAUDE_INSTANT_1_2, "claude-instant-1.2"),
    ],
)
def test_model_identifier_round_trips_through_response(model: Model, wire: str) -> None:
    decoded = decode_messages(_response(model=wire))

    assert decoded.model is model
    assert decoded.model_dump(mode="json")["model"] == wire


def test_default_model_is_haiku() -> None:
    assert DEFAULT_MODEL is Model.CLAUDE_3_HAIKU_20240307


def test_stop_reason_wire_values() -> None:
    assert [r.value for r in StopReason] == [
        "max_tokens",
        "stop_sequence",
        "end_turn",
        "tool_use",
    ]


def test_unknown_stop_reason_fails_decoding() -> None:
    with pytest.raises(DecodeError, match="stop_reason"):
        decode_messages(_response(stop_reason="ran_out_of_ideas"))


def test_unknown_model_fails_decoding() -> None:
    with pytest.raises(DecodeError, match="model"):
        decode_messages(_response(model="claude-99"))


# =============================================================================
# Responses
# =============================================================================


def test_example_messages_response_decodes() -> None:
    response = decode_messages(json.dumps(_EXAMPLE_RESPONSE).encode())

    assert response.id == "msg_1"
    assert response.stop_reason is StopReason.END_TURN
    assert response.stop_sequence is None
    assert response.usage.input_tokens == 10
    assert response.usage.output_tokens == 5
    assert response.content == [TextBlock(text="I'm doing well!")]
    assert response.text == "I'm doing well!"


def test_unknown_response_fields_are_ignored() -> None:
    data = _response(type="message", role="assistant", brand_new_field={"x": 1})
    data["usage"] = {"input_tokens": 1, "output_tokens": 2, "cache_read_input_tokens": 7}

    response = decode_messages(data)

    assert response.usage.output_tokens == 2
    assert "brand_new_field" not in response.model_dump()


def test_unknown_content_block_is_preserved() -> None:
    tool_block = {"type": "tool_use", "id": "tu_1", "name": "lookup", "input": {"q": "x"}}
    response = decode_messages(_response(content=[tool_block]))

    block = response.content[0]
    assert isinstance(block, UnknownBlock)
    assert block.type == "tool_use"
    assert block.model_dump() == tool_block
    assert response.text == ""


def test_missing_required_field_fails_decoding() -> None:
    data = _response()
    del data["usage"]

    with pytest.raises(DecodeError, match="usage"):
        decode_messages(data)


@pytest.mark.parametrize("body", [b"", b"{not json", b"\xff\xfe"])
def test_malformed_json_fails_decoding(body: bytes) -> None:
    with pytest.raises(DecodeError):
        decode_messages(body)


def test_negative_usage_fails_decoding() -> None:
    with pytest.raises(DecodeError):
        decode_messages(_response(usage={"input_tokens": -1, "output_tokens": 0}))


def test_completion_response_decodes_without_stop_reason() -> None:
    response = decode_completion({"completion": " Hello", "model": "claude-2.1"})

    assert response.completion == " Hello"
    assert response.stop_reason is None


def test_stream_event_decodes_delta() -> None:
    event = decode_message_event(
        {
            "type": "message_delta",
            "delta": {"stop_reason": "stop_sequence", "stop_sequence": "\n\nHuman:"},
            "usage": {"output_tokens": 12},
        }
    )

    assert event.stop_reason is StopReason.STOP_SEQUENCE
    assert event.delta.stop_sequence == "\n\nHuman:"
    assert event.usage.output_tokens == 12


# =============================================================================
# Requests
# =============================================================================


def test_example_messages_request_omits_absent_optionals() -> None:
    request = MessagesRequest(
        model=Model.CLAUDE_3_HAIKU_20240307,
        messages=[Message(role=Role.USER, content="Hello AI")],
        max_tokens=4096,
        temperature=0.5,
        system="Ask how the user is doing?",
    )

    assert request.to_payload() == {
        "model": "claude-3-haiku-20240307",
        "system": "Ask how the user is doing?",
        "temperature": 0.5,
        "messages": [{"role": "user", "content": "Hello AI"}],
        "max_tokens": 4096,
    }


def test_payload_never_contains_null() -> None:
    request = MessagesRequest(messages=[Message.user("hi")], max_tokens=1)

    payload = request.to_payload(stream=True)

    assert None not in payload.values()
    assert set(payload) == {"model", "messages", "max_tokens", "stream"}
    assert payload["stream"] is True


def test_completion_request_payload() -> None:
    request = CompletionRequest(
        prompt="\n\nHuman: Hi\n\nAssistant:",
        max_tokens_to_sample=64,
        stop_sequences=["\n\nHuman:"],
    )

    assert request.to_payload() == {
        "prompt": "\n\nHuman: Hi\n\nAssistant:",
        "model": "claude-3-haiku-20240307",
        "max_tokens_to_sample": 64,
        "stop_sequences": ["\n\nHuman:"],
        "stream": False,
    }
    assert request.to_payload(stream=True)["stream"] is True


def test_block_content_serializes_as_tagged_list() -> None:
    message = Message(
        role=Role.USER,
        content=[
            TextBlock(text="What is this?"),
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"}},
        ],
    )

    assert isinstance(message.content[1], ImageBlock)
    assert message.model_dump(mode="json") == {
        "role": "user",
        "content": [
            {"type": "text", "text": "What is this?"},
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"}},
        ],
    }


@pytest.mark.parametrize("temperature", [-0.1, 1.01])
def test_temperature_outside_unit_interval_is_rejected(temperature: float) -> None:
    with pytest.raises(ValidationError) as exc:
        MessagesRequest(messages=[], max_tokens=1, temperature=temperature)
    assert exc.value.field == "temperature"


def test_non_positive_max_tokens_to_sample_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc:
        CompletionRequest(prompt="x", max_tokens_to_sample=0)
    assert exc.value.field == "max_tokens_to_sample"


def test_requests_are_immutable() -> None:
    request = CompletionRequest(prompt="x", max_tokens_to_sample=1)

    with pytest.raises(Exception):  # noqa: B017
        request.prompt = "y"  # type: ignore[misc]
