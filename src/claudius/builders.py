"""Fluent builders for request models.

Builders hold mutable scratch state for a single construction. ``build()``
either returns an immutable request or raises ``ValidationError``; nothing
here touches the network.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from claudius.errors import ValidationError
from claudius.types import (
    DEFAULT_MODEL,
    CompletionRequest,
    Message,
    MessagesRequest,
    Model,
    Role,
    _summarize,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from claudius.types import Content


def _coerce_model(model: Model | str) -> Model:
    if isinstance(model, Model):
        return model
    try:
        return Model(model)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in Model)
        raise ValidationError(
            f"Unknown model: {model!r}",
            field="model",
            hint=f"Use one of: {allowed}.",
        ) from exc


def _snapshot(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: list(v) if isinstance(v, list) else v for k, v in fields.items()}


def _require(fields: dict[str, Any], names: Iterable[str], target: str) -> None:
    for name in names:
        if fields.get(name) is None:
            raise ValidationError(
                f"{target} is missing required field {name!r}",
                field=name,
                hint=f"Call .{name}(...) before build().",
            )


class CompletionRequestBuilder:
    """Builder for ``CompletionRequest``.

    Example:
        request = (
            CompletionRequestBuilder()
            .prompt("\\n\\nHuman: Hello\\n\\nAssistant:")
            .max_tokens_to_sample(256)
            .build()
        )
    """

    _REQUIRED = ("prompt", "max_tokens_to_sample")

    def __init__(self, *, default_model: Model | str = DEFAULT_MODEL) -> None:
        self._fields: dict[str, Any] = {"model": _coerce_model(default_model)}

    def prompt(self, prompt: str) -> CompletionRequestBuilder:
        self._fields["prompt"] = prompt
        return self

    def model(self, model: Model | str) -> CompletionRequestBuilder:
        self._fields["model"] = _coerce_model(model)
        return self

    def max_tokens_to_sample(self, count: int) -> CompletionRequestBuilder:
        self._fields["max_tokens_to_sample"] = count
        return self

    def stop_sequences(self, sequences: Iterable[str]) -> CompletionRequestBuilder:
        self._fields["stop_sequences"] = list(sequences)
        return self

    def stream(self, enabled: bool = True) -> CompletionRequestBuilder:
        self._fields["stream"] = enabled
        return self

    def build(self) -> CompletionRequest:
        """Validate the collected fields and return an immutable request."""
        _require(self._fields, self._REQUIRED, "CompletionRequest")
        return CompletionRequest(**_snapshot(self._fields))

    def __repr__(self) -> str:
        return f"CompletionRequestBuilder({self._fields!r})"


class MessagesRequestBuilder:
    """Builder for ``MessagesRequest``.

    Example:
        request = (
            MessagesRequestBuilder()
            .model(Model.CLAUDE_3_HAIKU_20240307)
            .system("Ask how the user is doing?")
            .user("Hello AI")
            .max_tokens(4096)
            .temperature(0.5)
            .build()
        )
    """

    _REQUIRED = ("messages", "max_tokens")

    def __init__(self, *, default_model: Model | str = DEFAULT_MODEL) -> None:
        self._fields: dict[str, Any] = {"model": _coerce_model(default_model)}

    def model(self, model: Model | str) -> MessagesRequestBuilder:
        self._fields["model"] = _coerce_model(model)
        return self

    def system(self, text: str) -> MessagesRequestBuilder:
        self._fields["system"] = text
        return self

    def temperature(self, value: float) -> MessagesRequestBuilder:
        self._fields["temperature"] = value
        return self

    def top_k(self, value: int) -> MessagesRequestBuilder:
        self._fields["top_k"] = value
        return self

    def messages(self, messages: Iterable[Message]) -> MessagesRequestBuilder:
        """Replace the conversation with *messages*."""
        self._fields["messages"] = list(messages)
        return self

    def message(self, role: Role | str, content: Content) -> MessagesRequestBuilder:
        """Append one turn to the conversation."""
        try:
            turn = Message(role=role, content=content)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid message: {_summarize(exc)}", field="messages"
            ) from exc
        self._fields.setdefault("messages", []).append(turn)
        return self

    def user(self, text: str) -> MessagesRequestBuilder:
        return self.message(Role.USER, text)

    def assistant(self, text: str) -> MessagesRequestBuilder:
        return self.message(Role.ASSISTANT, text)

    def max_tokens(self, count: int) -> MessagesRequestBuilder:
        self._fields["max_tokens"] = count
        return self

    def stop_sequences(self, sequences: Iterable[str]) -> MessagesRequestBuilder:
        self._fields["stop_sequences"] = list(sequences)
        return self

    def build(self) -> MessagesRequest:
        """Validate the collected fields and return an immutable request."""
        _require(self._fields, self._REQUIRED, "MessagesRequest")
        return MessagesRequest(**_snapshot(self._fields))

    def __repr__(self) -> str:
        return f"MessagesRequestBuilder({self._fields!r})"
