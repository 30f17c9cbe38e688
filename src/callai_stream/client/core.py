"""
Core ChatClient implementation.
"""

from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING, Any

from callai_stream.client.result import ChatResult
from callai_stream.config import ClientConfig
from callai_stream.errors import CallAiError, ErrorContext
from callai_stream.pipeline import ChatStream, to_delta_shape
from callai_stream.resilience import FallbackOrchestrator
from callai_stream.telemetry import (
    LogContext,
    get_log_context,
    get_logger,
    set_log_context,
)
from callai_stream.transport import HttpTransport, resolve_api_key
from callai_stream.types.request import ChatRequest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    import httpx

    from callai_stream.resilience import Attempt
    from callai_stream.types.events import StreamEvent
    from callai_stream.types.message import Message

logger = get_logger("callai_stream.client")


class ChatClient:
    """Client for a streaming chat-completions API.

    Two access modes:

    - ``stream(request)``: iterate events as they are parsed
    - ``complete(request)``: await the folded ``ChatResult``

    Example:
        >>> async with ChatClient(ClientConfig.from_env()) as client:
        ...     async for event in client.stream("Write a haiku"):
        ...         if isinstance(event, TextFragment):
        ...             print(event.text, end="")
        ...     result = await client.complete("Show me some code")
        ...     print(result.code_blocks)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: HttpTransport | None = None,
        refresh_credential: Callable[[str | None], Awaitable[str | None]] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration (default: from environment)
            transport: Transport to send with (default: HttpTransport(config))
            refresh_credential: Coroutine returning a replacement API key
                after a 401, or None
        """
        self._config = config or ClientConfig.from_env()
        self._transport = transport or HttpTransport(self._config)
        self._refresh = refresh_credential
        self._last_attempts: list[Attempt] = []

    @property
    def config(self) -> ClientConfig:
        """Client configuration."""
        return self._config

    @property
    def last_attempts(self) -> list[Attempt]:
        """Sends made by the most recent request."""
        return list(self._last_attempts)

    def prepare(self, request: ChatRequest | str | list[Message]) -> ChatRequest:
        """Fill in configured defaults for a request.

        Args:
            request: Request, prompt text or message list

        Returns:
            Request carrying a model, credential and retry setting
        """
        if not isinstance(request, ChatRequest):
            request = ChatRequest.from_prompt(request, model=self._config.default_model)

        updates: dict[str, Any] = {}
        if not request.api_key:
            api_key = resolve_api_key(self._config.api_key)
            if api_key:
                updates["api_key"] = api_key
        if self._config.skip_retry and not request.skip_retry:
            updates["skip_retry"] = True
        return request.model_copy(update=updates) if updates else request

    async def stream(
        self, request: ChatRequest | str | list[Message]
    ) -> AsyncIterator[StreamEvent]:
        """Send a request and iterate its events.

        Args:
            request: Request, prompt text or message list

        Yields:
            Stream events in emission order

        Raises:
            RemoteError: When the API rejects the request
        """
        request = self.prepare(request)
        if not request.stream:
            for event in await self._complete_events(request):
                yield event
            return

        response = await self._send(request)
        parser = ChatStream()
        try:
            async for event in parser.events(response.aiter_bytes()):
                yield event
        finally:
            await response.aclose()

        if parser.decoder.error_count:
            logger.debug(
                "Stream contained malformed payloads",
                dropped=parser.decoder.error_count,
                parsed=parser.decoder.payload_count,
            )

    async def complete(self, request: ChatRequest | str | list[Message]) -> ChatResult:
        """Send a request and wait for the whole result.

        Args:
            request: Request, prompt text or message list

        Returns:
            ChatResult folded from every event

        Raises:
            RemoteError: When the API rejects the request
        """
        request = self.prepare(request)
        previous = get_log_context()
        set_log_context(LogContext(request_id=str(uuid.uuid4()), model=request.model))
        try:
            if request.stream:
                events = [event async for event in self.stream(request)]
            else:
                events = await self._complete_events(request)
        finally:
            set_log_context(previous)

        result = ChatResult.from_events(events)
        result.attempts = self.last_attempts
        return result

    async def _send(self, request: ChatRequest) -> httpx.Response:
        orchestrator: FallbackOrchestrator[httpx.Response] = FallbackOrchestrator(
            self._transport.send,
            refresh_credential=self._refresh,
            fallback_model=self._config.fallback_model,
        )
        try:
            return await orchestrator.execute(request)
        finally:
            self._last_attempts = orchestrator.attempts

    async def _complete_events(self, request: ChatRequest) -> list[StreamEvent]:
        """Send a non-streaming request and parse it like a stream."""
        response = await self._send(request)
        try:
            body = await response.aread()
        finally:
            await response.aclose()

        try:
            document = json.loads(body)
        except ValueError as e:
            raise CallAiError(
                "Response body is not valid JSON",
                ErrorContext(source="client", details={"status_code": response.status_code}),
            ) from e

        parser = ChatStream()
        events = parser.feed_document(to_delta_shape(document))
        events.extend(parser.finalize())
        return events

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> ChatClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
