"""
ChatStream: the assembled parsing pipeline for one logical stream.

```
chunks -> LineSplitter -> SSEDecoder -> ChatDeltaNormalizer -+-> events
                                                              |
                         ContentDelta -> CodeFenceDetector ---+
                   ToolCallDelta/Done -> ToolCallAccumulator -+
```

Every normalized event is emitted, immediately followed by the events
derived from it by the fence detector or the tool accumulator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from callai_stream.pipeline.accumulate import ToolCallAccumulator
from callai_stream.pipeline.base import EventEmitter
from callai_stream.pipeline.decode import SSEDecoder
from callai_stream.pipeline.fence import CodeFenceDetector
from callai_stream.pipeline.lines import LineSplitter
from callai_stream.pipeline.normalize import ChatDeltaNormalizer
from callai_stream.types.events import ContentDelta, Done, ToolCallDelta
from callai_stream.types.records import SSEPayload

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable

    from callai_stream.types.events import DeltaEvent, StreamEvent
    from callai_stream.types.records import SplitRecord


class ChatStream:
    """Incremental parser for a chat-completion SSE stream.

    Two access modes produce identical sequences:

    - push: ``on_event(handler)`` plus ``feed(chunk)`` / ``finalize()``,
      which also return the events they produced
    - pull: ``async for event in stream.events(chunks)``

    A ``data: [DONE]`` line closes the stream early; later input is
    ignored.

    Example:
        >>> stream = ChatStream()
        >>> stream.on_event(print)
        >>> stream.feed(b'data: {"choices": [{"delta": {"content": "Hi"}}]}\\n\\n')
        >>> stream.finalize()
    """

    def __init__(self) -> None:
        self.splitter = LineSplitter()
        self.decoder = SSEDecoder()
        self.normalizer = ChatDeltaNormalizer()
        self.fences = CodeFenceDetector()
        self.tools = ToolCallAccumulator()
        self._emitter: EventEmitter[StreamEvent] = EventEmitter()
        self._closed = False
        self._document_count = 0

    @property
    def closed(self) -> bool:
        """Whether the stream has been finalized, explicitly or by [DONE]."""
        return self._closed

    def on_event(self, handler: Callable[[StreamEvent], None]) -> Callable[[], None]:
        """Register a push-mode handler.

        Handlers run synchronously, in registration order, before ``feed``
        or ``finalize`` returns.

        Returns:
            A callable that unregisters the handler
        """
        return self._emitter.on(handler)

    def feed(self, chunk: str | bytes) -> list[StreamEvent]:
        """Consume one raw chunk.

        Args:
            chunk: Text or bytes, split anywhere

        Returns:
            Events decided by this chunk
        """
        if self._closed:
            return []

        out: list[StreamEvent] = []
        self._records(self.splitter.feed(chunk), out)
        if self.decoder.done:
            out.extend(self._close())
        return self._publish(out)

    def feed_document(self, document: Any) -> list[StreamEvent]:
        """Consume one already-parsed payload, such as a non-streaming response.

        Args:
            document: Parsed JSON, in streaming (``delta``) shape

        Returns:
            Events decided by this payload
        """
        if self._closed:
            return []

        out: list[StreamEvent] = []
        payload = SSEPayload.of(self._document_count, document)
        self._document_count += 1
        self._route(self.normalizer.feed(payload), out)
        return self._publish(out)

    def finalize(self) -> list[StreamEvent]:
        """Signal end of input and flush every stage. Idempotent."""
        if self._closed:
            return []
        return self._publish(self._close())

    def reset(self) -> None:
        """Discard all state so the instance can parse a new stream.

        Handlers stay registered.
        """
        for stage in (self.splitter, self.decoder, self.normalizer, self.fences, self.tools):
            stage.reset()
        self._closed = False
        self._document_count = 0

    def run(self, chunks: Iterable[str | bytes]) -> list[StreamEvent]:
        """Feed every chunk, then finalize."""
        out: list[StreamEvent] = []
        for chunk in chunks:
            out.extend(self.feed(chunk))
        out.extend(self.finalize())
        return out

    async def events(self, chunks: AsyncIterable[str | bytes]) -> AsyncIterator[StreamEvent]:
        """Pull-style access.

        Args:
            chunks: Async iterable of raw chunks

        Yields:
            Stream events, in the same order ``feed``/``finalize`` return them
        """
        async for chunk in chunks:
            for event in self.feed(chunk):
                yield event
            if self._closed:
                break
        for event in self.finalize():
            yield event

    def _close(self) -> list[StreamEvent]:
        out: list[StreamEvent] = []
        self._records(self.splitter.finalize(), out)
        for payload in self.decoder.finalize():
            self._route(self.normalizer.feed(payload), out)
        self._route(self.normalizer.finalize(), out)
        out.extend(self.fences.finalize())
        out.extend(self.tools.finalize())
        self._closed = True
        return out

    def _records(self, records: list[SplitRecord], out: list[StreamEvent]) -> None:
        for record in records:
            for payload in self.decoder.feed(record):
                self._route(self.normalizer.feed(payload), out)

    def _route(self, deltas: list[DeltaEvent], out: list[StreamEvent]) -> None:
        for delta in deltas:
            out.append(delta)
            if isinstance(delta, ContentDelta):
                out.extend(self.fences.feed(delta))
            elif isinstance(delta, (ToolCallDelta, Done)):
                out.extend(self.tools.feed(delta))

    def _publish(self, events: list[StreamEvent]) -> list[StreamEvent]:
        for event in events:
            self._emitter.emit(event)
        return events
