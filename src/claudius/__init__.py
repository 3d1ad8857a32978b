"""Claudius: typed async client for the Anthropic Completions and Messages APIs.

Public API:
    - Client: single and streaming calls
    - Config: credentials, endpoint, and defaults
    - CompletionRequestBuilder / MessagesRequestBuilder: validated requests
    - EventStream: lazy streaming results
"""

from __future__ import annotations

import logging

from claudius.builders import CompletionRequestBuilder, MessagesRequestBuilder
from claudius.client import Client
from claudius.config import Config
from claudius.errors import (
    ClaudiusError,
    ConfigError,
    DecodeError,
    RateLimitError,
    StreamFramingError,
    TransportError,
    ValidationError,
)
from claudius.streaming import (
    EventStream,
    StreamItem,
    accumulate_completion,
    accumulate_message,
)
from claudius.types import (
    DEFAULT_MODEL,
    CompletionRequest,
    CompletionResponse,
    ImageBlock,
    ImageSource,
    Message,
    MessagesRequest,
    MessagesResponse,
    Model,
    Role,
    StopReason,
    TextBlock,
    UnknownBlock,
    Usage,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("claudius-client")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("claudius").addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_MODEL",
    "ClaudiusError",
    "Client",
    "CompletionRequest",
    "CompletionRequestBuilder",
    "CompletionResponse",
    "Config",
    "ConfigError",
    "DecodeError",
    "EventStream",
    "ImageBlock",
    "ImageSource",
    "Message",
    "MessagesRequest",
    "MessagesRequestBuilder",
    "MessagesResponse",
    "Model",
    "RateLimitError",
    "Role",
    "StopReason",
    "StreamFramingError",
    "StreamItem",
    "TextBlock",
    "TransportError",
    "UnknownBlock",
    "Usage",
    "ValidationError",
    "accumulate_completion",
    "accumulate_message",
]
