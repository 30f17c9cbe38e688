"""
Integration test helper utilities.

Shared fixtures for driving ChatClient against a mocked chat-completions
endpoint.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

    import pytest_httpx


def mock_chat_response(
    content: str | None = "Hello!",
    model: str = "openai/gpt-4o",
    finish_reason: str = "stop",
    usage: dict | None = None,
    tool_calls: list[dict] | None = None,
) -> dict:
    """Create a mock non-streaming chat response."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    response: dict[str, Any] = {
        "id": "gen-123",
        "object": "chat.completion",
        "created": 1699012345,
        "model": model,
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
    }
    if usage:
        response["usage"] = usage
    return response


def mock_streaming_chunks(content: str, model: str = "openai/gpt-4o", piece: int = 4) -> list[dict]:
    """Split content into streaming chunks of a few characters each."""
    chunks = [
        {
            "id": "gen-123",
            "object": "chat.completion.chunk",
            "created": 1699012345,
            "model": model,
            "choices": [{"index": 0, "delta": {"content": content[i : i + piece]}, "finish_reason": None}],
        }
        for i in range(0, len(content), piece)
    ]
    chunks.append(
        {
            "id": "gen-123",
            "object": "chat.completion.chunk",
            "model": model,
            "choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 34, "total_tokens": 46},
        }
    )
    return chunks


def encode_sse(chunks: list[dict]) -> bytes:
    """Encode chunks as an SSE body ending in [DONE]."""
    body = ": OPENROUTER PROCESSING\n\n"
    body += "".join(f"data: {json.dumps(c)}\n\n" for c in chunks)
    return (body + "data: [DONE]\n\n").encode("utf-8")


@pytest.fixture
def mock_chat_stream(
    httpx_mock: pytest_httpx.HTTPXMock, chat_url: str
) -> Callable[..., list[dict]]:
    """Register one streaming response; returns the chunks sent."""

    def _add(content: str = "Hello from the stream!", model: str = "openai/gpt-4o") -> list[dict]:
        chunks = mock_streaming_chunks(content, model)
        httpx_mock.add_response(
            url=chat_url,
            method="POST",
            content=encode_sse(chunks),
            headers={"Content-Type": "text/event-stream"},
        )
        return chunks

    return _add


@pytest.fixture
def mock_chat_error(httpx_mock: pytest_httpx.HTTPXMock, chat_url: str) -> Callable[..., None]:
    """Register one error response."""

    def _add(status_code: int, message: str) -> None:
        httpx_mock.add_response(
            url=chat_url,
            method="POST",
            status_code=status_code,
            json={"error": {"message": message, "code": status_code}},
        )

    return _add


@pytest.fixture
def mock_chat_json(httpx_mock: pytest_httpx.HTTPXMock, chat_url: str) -> Callable[..., dict]:
    """Register one non-streaming response; returns the body sent."""

    def _add(**kwargs: Any) -> dict:
        body = mock_chat_response(**kwargs)
        httpx_mock.add_response(url=chat_url, method="POST", json=body)
        return body

    return _add


@pytest.fixture
def mock_chat_chunks(httpx_mock: pytest_httpx.HTTPXMock, chat_url: str) -> Callable[[list[dict]], None]:
    """Register one streaming response made of the given chunks."""

    def _add(chunks: list[dict]) -> None:
        httpx_mock.add_response(
            url=chat_url,
            method="POST",
            content=encode_sse(chunks),
            headers={"Content-Type": "text/event-stream"},
        )

    return _add
