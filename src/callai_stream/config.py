"""
Client configuration.

Values come from explicit arguments or from the environment:

- CALLAI_ENDPOINT: API base URL
- CALLAI_API_KEY (or OPENROUTER_API_KEY): bearer credential
- CALLAI_MODEL: default model id
- CALLAI_FALLBACK_MODEL: model used when the requested one is rejected
- CALLAI_TIMEOUT_SECS: request timeout in seconds
- CALLAI_SKIP_RETRY: "1"/"true" disables the invalid-model fallback
"""

from __future__ import annotations

import os
from contextlib import suppress
from dataclasses import dataclass, field, replace
from typing import Any

from callai_stream.types.request import DEFAULT_MODEL

DEFAULT_ENDPOINT = "https://openrouter.ai/api/v1"
CHAT_COMPLETIONS_PATH = "/chat/completions"
FALLBACK_MODEL = "openrouter/auto"
DEFAULT_TIMEOUT = 30.0
DEFAULT_REFERER = "https://vibes.diy"
DEFAULT_TITLE = "Vibes"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class ClientConfig:
    """Configuration for ChatClient.

    Attributes:
        endpoint: API base URL; requests go to ``{endpoint}/chat/completions``
        api_key: Bearer credential
        default_model: Model used when a request names none
        fallback_model: Model retried once when the requested one is invalid
        timeout: Request timeout in seconds
        referer: Value of the HTTP-Referer header
        title: Value of the X-Title header
        headers: Extra request headers
        skip_retry: Disable the invalid-model fallback for every request
    """

    endpoint: str = DEFAULT_ENDPOINT
    api_key: str | None = field(default=None, repr=False)
    default_model: str = DEFAULT_MODEL
    fallback_model: str = FALLBACK_MODEL
    timeout: float = DEFAULT_TIMEOUT
    referer: str = DEFAULT_REFERER
    title: str = DEFAULT_TITLE
    headers: dict[str, str] = field(default_factory=dict)
    skip_retry: bool = False

    @property
    def chat_url(self) -> str:
        """Full chat-completions URL."""
        return self.endpoint.rstrip("/") + CHAT_COMPLETIONS_PATH

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Create configuration from environment variables.

        Explicit keyword arguments win over the environment. Numeric values
        that do not parse are ignored.

        Returns:
            ClientConfig instance
        """
        values: dict[str, Any] = {}

        if endpoint := os.getenv("CALLAI_ENDPOINT"):
            values["endpoint"] = endpoint
        if api_key := os.getenv("CALLAI_API_KEY") or os.getenv("OPENROUTER_API_KEY"):
            values["api_key"] = api_key
        if model := os.getenv("CALLAI_MODEL"):
            values["default_model"] = model
        if fallback := os.getenv("CALLAI_FALLBACK_MODEL"):
            values["fallback_model"] = fallback
        if timeout := os.getenv("CALLAI_TIMEOUT_SECS"):
            with suppress(ValueError):
                parsed = float(timeout)
                if parsed > 0:
                    values["timeout"] = parsed
        if skip := os.getenv("CALLAI_SKIP_RETRY"):
            values["skip_retry"] = skip.strip().lower() in _TRUE_VALUES

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_api_key(self, api_key: str) -> ClientConfig:
        """Copy with a different credential."""
        return replace(self, api_key=api_key)
