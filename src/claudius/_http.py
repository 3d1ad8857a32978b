"""Small HTTP-related constants shared across Claudius.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_API_VERSION = "2023-06-01"

COMPLETE_PATH = "/v1/complete"
MESSAGES_PATH = "/v1/messages"

# Status codes a caller may reasonably retry. Claudius only reports them.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504, 529})
