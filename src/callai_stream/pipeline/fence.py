"""
Code-fence detector: splits assistant text into prose and fenced code.

Consumes ``ContentDelta`` text one character at a time, so a fence split
across deltas is found exactly as if it had arrived whole. Concatenating
every ``TextFragment.text``, ``CodeStart.fence``, ``CodeFragment.text`` and
``CodeEnd.fence`` reproduces the input.
"""

from __future__ import annotations

from enum import Enum

from callai_stream.pipeline.base import Stage
from callai_stream.types.events import (
    CodeEnd,
    CodeFragment,
    CodeStart,
    ContentDelta,
    SegmentEvent,
    TextFragment,
)

FENCE = "```"


class FenceState(str, Enum):
    """Detector states."""

    TEXT = "text"
    MAYBE_FENCE = "maybe_fence"
    IN_CODE = "in_code"
    MAYBE_CLOSE = "maybe_close"


class CodeFenceDetector(Stage["ContentDelta | str", SegmentEvent]):
    """Incremental markdown code-fence detector.

    Example:
        >>> detector = CodeFenceDetector()
        >>> detector.run(["Here is code:\\n", "```jsx\\n", "const x = 1;", "\\n```\\n"])
        [TextFragment(...), CodeStart(..., language='jsx'), CodeFragment(...), CodeEnd(...)]
    """

    def __init__(self) -> None:
        super().__init__()
        self._reset()

    def _reset(self) -> None:
        self._state = FenceState.TEXT
        self._seq = 0
        self._block_counter = 0
        self._block_id: str | None = None
        self._language: str | None = None
        self._held = ""
        self._info = ""
        self._text = ""
        self._code = ""
        self._line_start = False

    @property
    def state(self) -> FenceState:
        """Current detector state."""
        return self._state

    @property
    def in_code(self) -> bool:
        """Whether a code block is open."""
        return self._block_id is not None

    def _feed(self, item: ContentDelta | str) -> list[SegmentEvent]:
        text = item.text if isinstance(item, ContentDelta) else item
        events: list[SegmentEvent] = []
        for ch in text:
            if self._state is FenceState.TEXT:
                self._on_text(ch)
            elif self._state is FenceState.MAYBE_FENCE:
                self._on_maybe_fence(ch, events)
            elif self._state is FenceState.IN_CODE:
                self._on_code(ch)
            else:
                self._on_maybe_close(ch, events)
        self._flush(events)
        return events

    def _finalize(self) -> list[SegmentEvent]:
        events: list[SegmentEvent] = []
        if self._state is FenceState.TEXT:
            self._text += self._held
        elif self._state is FenceState.MAYBE_FENCE:
            self._text += self._held + self._info
            self._info = ""
        elif self._state is FenceState.IN_CODE:
            self._code += self._held
        fence = self._held
        self._held = ""

        self._flush(events)
        if self._state is FenceState.MAYBE_CLOSE:
            self._close(events, fence=fence)
        elif self._block_id is not None:
            self._close(events, fence="", synthetic=True)
        self._state = FenceState.TEXT
        return events

    def _on_text(self, ch: str) -> None:
        if ch == "`":
            self._held += ch
            if self._held == FENCE:
                self._state = FenceState.MAYBE_FENCE
                self._info = ""
            return
        self._text += self._held + ch
        self._held = ""

    def _on_maybe_fence(self, ch: str, events: list[SegmentEvent]) -> None:
        if ch != "\n":
            self._info += ch
            return
        self._flush(events)
        self._block_counter += 1
        self._block_id = f"block-{self._block_counter}"
        self._language = self._info.strip() or None
        events.append(
            CodeStart(
                seq=self._next_seq(),
                block_id=self._block_id,
                language=self._language,
                fence=self._held + self._info + ch,
            )
        )
        self._held = ""
        self._info = ""
        self._line_start = True
        self._state = FenceState.IN_CODE

    def _on_code(self, ch: str) -> None:
        if ch == "\n":
            self._code += self._held
            self._held = ch
            return
        if ch == "`":
            self._held += ch
            if self._held.count("`") == len(FENCE):
                self._state = FenceState.MAYBE_CLOSE
            return
        if ch in " \t" and "`" not in self._held and (self._held or self._line_start):
            self._held += ch
            return
        self._code += self._held + ch
        self._held = ""
        self._line_start = False

    def _on_maybe_close(self, ch: str, events: list[SegmentEvent]) -> None:
        if ch == "`":
            self._held += ch
        elif ch == "\n":
            self._flush(events)
            self._close(events, fence=self._held + ch)
            self._held = ""
            self._state = FenceState.TEXT
        elif ch in " \t\r":
            self._flush(events)
            self._close(events, fence=self._held)
            self._held = ""
            self._text = ch
            self._state = FenceState.TEXT
        else:
            self._code += self._held + ch
            self._held = ""
            self._line_start = False
            self._state = FenceState.IN_CODE

    def _flush(self, events: list[SegmentEvent]) -> None:
        if self._text:
            events.append(TextFragment(seq=self._next_seq(), text=self._text))
            self._text = ""
        if self._code and self._block_id is not None:
            events.append(
                CodeFragment(seq=self._next_seq(), block_id=self._block_id, text=self._code)
            )
            self._code = ""

    def _close(self, events: list[SegmentEvent], *, fence: str, synthetic: bool = False) -> None:
        if self._block_id is None:
            return
        events.append(
            CodeEnd(
                seq=self._next_seq(),
                block_id=self._block_id,
                language=self._language,
                fence=fence,
                synthetic=synthetic,
            )
        )
        self._block_id = None
        self._language = None
        self._line_start = False

    def _next_seq(self) -> int:
        seq = self._seq
        self._seq += 1
        return seq

