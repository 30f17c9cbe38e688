"""
Base abstractions for the pipeline layer.

Every stage is a small synchronous state machine with two entry points:

- ``feed(item)`` consumes one upstream item and returns the downstream
  items it can decide on now
- ``finalize()`` flushes buffered input and closes open constructs

``transform()`` drives the same two methods from an async iterator, so the
push style (``feed``) and the pull style (``async for``) yield identical
sequences.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterable

In = TypeVar("In")
Out = TypeVar("Out")
E = TypeVar("E")


class Stage(ABC, Generic[In, Out]):
    """Abstract pipeline stage.

    Subclasses implement ``_feed``, ``_finalize`` and ``_reset``. The base
    class makes ``finalize`` idempotent and ignores input fed after it.
    """

    def __init__(self) -> None:
        self._finalized = False

    @property
    def finalized(self) -> bool:
        """Whether ``finalize`` has run since the last reset."""
        return self._finalized

    def feed(self, item: In) -> list[Out]:
        """Consume one upstream item.

        Args:
            item: Upstream item

        Returns:
            Downstream items decided by this input, in order
        """
        if self._finalized:
            return []
        return self._feed(item)

    def finalize(self) -> list[Out]:
        """Flush buffered input and close open constructs.

        A second call returns an empty list.
        """
        if self._finalized:
            return []
        self._finalized = True
        return self._finalize()

    def reset(self) -> None:
        """Discard all state, as if freshly constructed."""
        self._finalized = False
        self._reset()

    def run(self, items: Iterable[In]) -> list[Out]:
        """Feed every item, then finalize.

        Args:
            items: Upstream items

        Returns:
            All downstream items
        """
        out: list[Out] = []
        for item in items:
            out.extend(self.feed(item))
        out.extend(self.finalize())
        return out

    async def transform(self, items: AsyncIterator[In]) -> AsyncIterator[Out]:
        """Pull-style driver over an async iterator.

        Args:
            items: Async iterator of upstream items

        Yields:
            Downstream items
        """
        async for item in items:
            for out in self.feed(item):
                yield out
        for out in self.finalize():
            yield out

    @abstractmethod
    def _feed(self, item: In) -> list[Out]: ...

    @abstractmethod
    def _finalize(self) -> list[Out]: ...

    @abstractmethod
    def _reset(self) -> None: ...


class EventEmitter(Generic[E]):
    """Synchronous observer list.

    Handlers run in registration order, on the caller's thread, before
    ``emit`` returns.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable[[E], None]] = []

    def on(self, handler: Callable[[E], None]) -> Callable[[], None]:
        """Register a handler.

        Returns:
            A callable that unregisters the handler
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, event: E) -> None:
        """Invoke every handler with ``event``."""
        for handler in list(self._handlers):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)
