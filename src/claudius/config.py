"""Configuration: frozen Config with credential and endpoint resolution."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from claudius._http import DEFAULT_API_VERSION, DEFAULT_BASE_URL
from claudius.errors import ConfigError
from claudius.types import DEFAULT_MODEL, Model

load_dotenv()

API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"
BASE_URL_ENV_VAR = "ANTHROPIC_BASE_URL"
MODEL_ENV_VAR = "ANTHROPIC_MODEL"


@dataclass(frozen=True)
class Config:
    """Immutable configuration for a Claudius client.

    Unset fields are auto-resolved from standard environment variables.

    Example:
        config = Config()
        # API key is resolved from ANTHROPIC_API_KEY
    """

    #: Auto-resolved from ``ANTHROPIC_API_KEY`` when *None*.
    api_key: str | None = None
    #: Auto-resolved from ``ANTHROPIC_BASE_URL`` when *None*.
    base_url: str | None = None
    api_version: str = DEFAULT_API_VERSION
    #: Seed for builders created via the client; ``ANTHROPIC_MODEL`` when *None*.
    default_model: Model | None = None
    #: Passed to httpx; *None* disables the timeout.
    timeout_s: float | None = 600.0
    use_mock: bool = False

    def __post_init__(self) -> None:
        """Auto-resolve unset fields and validate configuration."""
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ConfigError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="Pass timeout_s=None to disable the HTTP timeout.",
            )

        if self.base_url is None:
            resolved_url = os.environ.get(BASE_URL_ENV_VAR, "").strip()
            object.__setattr__(self, "base_url", resolved_url or DEFAULT_BASE_URL)
        object.__setattr__(self, "base_url", str(self.base_url).rstrip("/"))
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigError(
                f"base_url must be an http(s) URL, got {self.base_url!r}",
                hint=f"Set {BASE_URL_ENV_VAR} or pass base_url='https://...'.",
            )

        model = self.default_model
        if model is None:
            model = os.environ.get(MODEL_ENV_VAR, "").strip() or DEFAULT_MODEL
        try:
            object.__setattr__(self, "default_model", Model(model))
        except ValueError as exc:
            allowed = ", ".join(m.value for m in Model)
            raise ConfigError(
                f"Unknown model: {model!r}",
                hint=f"Set {MODEL_ENV_VAR} to one of: {allowed}.",
            ) from exc

        if self.api_key is None and not self.use_mock:
            resolved_key = os.environ.get(API_KEY_ENV_VAR, "").strip()
            object.__setattr__(self, "api_key", resolved_key or None)

        # Real API calls need a key
        if not self.use_mock and not self.api_key:
            raise ConfigError(
                "API key required",
                hint=f"Set {API_KEY_ENV_VAR} environment variable or pass api_key=...",
            )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        model = self.default_model.value if self.default_model else None
        return (
            f"Config(base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"default_model={model!r}, use_mock={self.use_mock})"
        )

    __repr__ = __str__
