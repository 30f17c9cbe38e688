"""Root pytest fixtures for callai-stream tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from callai_stream.config import ClientConfig

_ENV_VARS = (
    "CALLAI_ENDPOINT",
    "CALLAI_API_KEY",
    "OPENROUTER_API_KEY",
    "CALLAI_MODEL",
    "CALLAI_FALLBACK_MODEL",
    "CALLAI_TIMEOUT_SECS",
    "CALLAI_SKIP_RETRY",
)

TEST_ENDPOINT = "https://llm.test/api/v1"
TEST_CHAT_URL = f"{TEST_ENDPOINT}/chat/completions"


def sse(*payloads: Any, done: bool = True) -> bytes:
    """Encode payloads as an SSE body; dicts become JSON, strings pass through."""
    lines = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def chunk(content: str | None = None, **delta_fields: Any) -> dict[str, Any]:
    """Build a minimal streaming chat-completion payload."""
    delta: dict[str, Any] = dict(delta_fields)
    if content is not None:
        delta["content"] = content
    return {"id": "gen-1", "model": "openai/gpt-4o", "choices": [{"index": 0, "delta": delta}]}


@pytest.fixture(name="sse")
def sse_fixture() -> Any:
    """SSE body builder."""
    return sse


@pytest.fixture(name="chunk")
def chunk_fixture() -> Any:
    """Streaming payload builder."""
    return chunk


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real credentials and settings out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> ClientConfig:
    """Client configuration pointing at the mocked endpoint."""
    return ClientConfig(endpoint=TEST_ENDPOINT, api_key="sk-test-key")


@pytest.fixture
def chat_url() -> str:
    """Chat-completions URL of the mocked endpoint."""
    return TEST_CHAT_URL
