"""Wire types for the Text Completions and Messages APIs.

Field names and enum values mirror the remote schema exactly. Requests are
validated on construction; responses ignore unknown fields so that additions
on the server side never break decoding.
"""

from __future__ import annotations

from enum import Enum
import json
from typing import Annotated, Any, Literal, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError

from claudius.errors import DecodeError, ValidationError


class Model(str, Enum):
    """Supported model identifiers and their wire names."""

    CLAUDE_3_OPUS_20240229 = "claude-3-opus-20240229"
    CLAUDE_3_SONNET_20240229 = "claude-3-sonnet-20240229"
    CLAUDE_3_HAIKU_20240307 = "claude-3-haiku-20240307"
    CLAUDE_2_1 = "claude-2.1"
    CLAUDE_2_0 = "claude-2.0"
    CLAUDE_INSTANT_1_2 = "claude-instant-1.2"


DEFAULT_MODEL = Model.CLAUDE_3_HAIKU_20240307


class StopReason(str, Enum):
    """Why the model stopped generating."""

    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


# --- Content blocks ---


class TextBlock(BaseModel):
    """Plain text content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageSource(BaseModel):
    """Inline base64 image payload."""

    model_config = ConfigDict(frozen=True)

    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class ImageBlock(BaseModel):
    """Image content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    source: ImageSource


class UnknownBlock(BaseModel):
    """A block kind this client does not model; all fields are preserved."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str


_KNOWN_BLOCK_TYPES = frozenset({"text", "image"})


def _block_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in _KNOWN_BLOCK_TYPES else "unknown"


ContentBlock = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ImageBlock, Tag("image")],
        Annotated[UnknownBlock, Tag("unknown")],
    ],
    Discriminator(_block_tag),
]

#: A bare string is the text variant; a list holds typed blocks.
Content = Union[str, list[ContentBlock]]


class Message(BaseModel):
    """One conversation turn."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: Content

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role=Role.USER, content=text)

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role=Role.ASSISTANT, content=text)


# --- Requests ---


class _Request(BaseModel):
    """Base for request models: immutable, strict field set, typed errors."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as exc:
            raise _as_validation_error(exc, type(self).__name__) from exc

    def to_payload(self, *, stream: bool | None = None) -> dict[str, Any]:
        """Return the JSON-ready body with absent optionals omitted."""
        payload = self.model_dump(mode="json", exclude_none=True)
        if stream is not None:
            payload["stream"] = stream
        return payload


class CompletionRequest(_Request):
    """Text Completions API request."""

    prompt: str
    model: Model = DEFAULT_MODEL
    max_tokens_to_sample: int = Field(gt=0)
    stop_sequences: list[str] | None = None
    stream: bool = False


class MessagesRequest(_Request):
    """Messages API request.

    ``messages`` may be empty here; the server decides whether that is valid.
    """

    model: Model = DEFAULT_MODEL
    system: str | None = None
    #: Randomness in [0.0, 1.0]; the server defaults to 1.0 when omitted.
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)
    #: Only sample from the top K options for each token.
    top_k: int | None = Field(default=None, gt=0)
    messages: list[Message]
    max_tokens: int = Field(gt=0)
    stop_sequences: list[str] | None = None


# --- Responses ---


class Usage(BaseModel):
    """Token accounting for one call."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(ge=0)
    output_tokens: int = Field(ge=0)


class CompletionResponse(BaseModel):
    """Text Completions API response, or one streamed fragment of it."""

    model_config = ConfigDict(frozen=True)

    completion: str
    stop_reason: StopReason | None = None


class MessagesResponse(BaseModel):
    """Messages API response."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: list[ContentBlock]
    model: Model
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    usage: Usage

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))


# --- Messages streaming events ---


class TextDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text_delta"] = "text_delta"
    text: str


class InputJsonDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


class UnknownDelta(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    type: str


_KNOWN_DELTA_TYPES = frozenset({"text_delta", "input_json_delta"})


def _delta_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in _KNOWN_DELTA_TYPES else "unknown"


BlockDelta = Annotated[
    Union[
        Annotated[TextDelta, Tag("text_delta")],
        Annotated[InputJsonDelta, Tag("input_json_delta")],
        Annotated[UnknownDelta, Tag("unknown")],
    ],
    Discriminator(_delta_tag),
]


class _StreamEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def stop_reason(self) -> StopReason | None:
        return None


class MessageStartEvent(_StreamEvent):
    type: Literal["message_start"] = "message_start"
    message: MessagesResponse

    @property
    def stop_reason(self) -> StopReason | None:
        return self.message.stop_reason


class ContentBlockStartEvent(_StreamEvent):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: ContentBlock


class ContentBlockDeltaEvent(_StreamEvent):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: BlockDelta


class ContentBlockStopEvent(_StreamEvent):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    stop_reason: StopReason | None = None
    stop_sequence: str | None = None


class DeltaUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    output_tokens: int = Field(ge=0)


class MessageDeltaEvent(_StreamEvent):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDelta
    usage: DeltaUsage | None = None

    @property
    def stop_reason(self) -> StopReason | None:
        return self.delta.stop_reason


class MessageStopEvent(_StreamEvent):
    type: Literal["message_stop"] = "message_stop"


MessageStreamEvent = Annotated[
    Union[
        MessageStartEvent,
        ContentBlockStartEvent,
        ContentBlockDeltaEvent,
        ContentBlockStopEvent,
        MessageDeltaEvent,
        MessageStopEvent,
    ],
    Field(discriminator="type"),
]

MESSAGE_EVENT_TYPES = frozenset(
    {
        "message_start",
        "content_block_start",
        "content_block_delta",
        "content_block_stop",
        "message_delta",
        "message_stop",
    }
)

_message_event_adapter: TypeAdapter[Any] = TypeAdapter(MessageStreamEvent)


# --- Decoding helpers ---

T = TypeVar("T", bound=BaseModel)


def _load(data: bytes | str | dict[str, Any]) -> Any:
    if isinstance(data, dict):
        return data
    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Malformed JSON payload: {exc}") from exc


def _decode(model: type[T], data: bytes | str | dict[str, Any]) -> T:
    raw = _load(data)
    try:
        return model.model_validate(raw)
    except PydanticValidationError as exc:
        raise DecodeError(
            f"Invalid {model.__name__} payload: {_summarize(exc)}"
        ) from exc


def decode_completion(data: bytes | str | dict[str, Any]) -> CompletionResponse:
    """Decode a Text Completions response body."""
    return _decode(CompletionResponse, data)


def decode_messages(data: bytes | str | dict[str, Any]) -> MessagesResponse:
    """Decode a Messages response body."""
    return _decode(MessagesResponse, data)


def decode_message_event(data: bytes | str | dict[str, Any]) -> Any:
    """Decode one Messages streaming event into its typed model."""
    raw = _load(data)
    try:
        return _message_event_adapter.validate_python(raw)
    except PydanticValidationError as exc:
        raise DecodeError(f"Invalid stream event: {_summarize(exc)}") from exc


def _summarize(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def _as_validation_error(
    exc: PydanticValidationError, model_name: str
) -> ValidationError:
    errors = exc.errors()
    field = None
    if errors and errors[0].get("loc"):
        field = str(errors[0]["loc"][0])
    return ValidationError(
        f"Invalid {model_name}: {_summarize(exc)}",
        field=field,
        hint="Check required fields and value ranges before sending.",
    )
