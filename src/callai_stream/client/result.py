"""
Result types for client operations.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from callai_stream.types.events import (
    CodeEnd,
    CodeFragment,
    CodeStart,
    ContentDelta,
    Done,
    Image,
    Meta,
    StreamError,
    ToolComplete,
    Usage,
)
from callai_stream.types.message import Message

if TYPE_CHECKING:
    from collections.abc import Iterable

    from callai_stream.resilience import Attempt
    from callai_stream.types.events import StreamEvent


@dataclass
class CodeBlock:
    """A fenced code block found in the response text.

    Attributes:
        block_id: Block id from the fence detector
        language: Info string after the opening fence
        code: Block content, without fences
        closed: False when the stream ended inside the block
    """

    block_id: str
    language: str | None = None
    code: str = ""
    closed: bool = False


@dataclass
class ToolCall:
    """A fully assembled tool call.

    Attributes:
        call_id: Tool call id
        name: Function name
        arguments: Raw JSON arguments text
    """

    call_id: str
    name: str | None = None
    arguments: str = ""

    def parse_arguments(self) -> dict[str, Any] | None:
        """Parse arguments as a JSON object; None if they are not one."""
        try:
            parsed = json.loads(self.arguments) if self.arguments else {}
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None


@dataclass
class ChatResult:
    """Everything a completed chat stream produced.

    Attributes:
        text: Concatenated content text, fences included
        code_blocks: Code blocks, in order of appearance
        tool_calls: Completed tool calls, in index order of first sighting
        usage: Token usage, if reported
        meta: Response metadata, if reported
        finish_reason: Why the model stopped generating
        images: Generated images
        errors: In-band error payloads
        events: Every event, in emission order
        attempts: Sends made for this result
    """

    text: str = ""
    code_blocks: list[CodeBlock] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: Usage | None = None
    meta: Meta | None = None
    finish_reason: str | None = None
    images: list[Image] = field(default_factory=list)
    errors: list[Any] = field(default_factory=list)
    events: list[StreamEvent] = field(default_factory=list, repr=False)
    attempts: list[Attempt] = field(default_factory=list, repr=False)

    @classmethod
    def from_events(cls, events: Iterable[StreamEvent]) -> ChatResult:
        """Fold a stream's events into a result."""
        result = cls()
        parts: list[str] = []
        blocks: dict[str, CodeBlock] = {}

        for event in events:
            result.events.append(event)
            if isinstance(event, ContentDelta):
                parts.append(event.text)
            elif isinstance(event, CodeStart):
                block = CodeBlock(block_id=event.block_id, language=event.language)
                blocks[event.block_id] = block
                result.code_blocks.append(block)
            elif isinstance(event, CodeFragment):
                blocks[event.block_id].code += event.text
            elif isinstance(event, CodeEnd):
                blocks[event.block_id].closed = not event.synthetic
            elif isinstance(event, ToolComplete):
                result.tool_calls.append(
                    ToolCall(
                        call_id=event.call_id,
                        name=event.function_name,
                        arguments=event.arguments,
                    )
                )
            elif isinstance(event, Usage):
                result.usage = event
            elif isinstance(event, Meta):
                result.meta = event
            elif isinstance(event, Done):
                result.finish_reason = event.finish_reason
            elif isinstance(event, Image):
                result.images.append(event)
            elif isinstance(event, StreamError):
                result.errors.append(event.error)

        result.text = "".join(parts)
        return result

    @property
    def has_tool_calls(self) -> bool:
        """Check if the result contains tool calls."""
        return len(self.tool_calls) > 0

    @property
    def model(self) -> str | None:
        """Model that served the response, if reported."""
        return self.meta.model if self.meta and self.meta.model else None

    def structured(self) -> Any:
        """Parse the answer to a request sent with an ``output_schema``.

        A tool-mode answer is the first tool call's arguments. Otherwise the
        answer is the response text, or the first code block's content when
        the model wrapped its JSON in a fence.

        Returns:
            The decoded JSON value

        Raises:
            ValueError: If the answer is not valid JSON
        """
        if self.tool_calls:
            source = self.tool_calls[0].arguments
        elif self.code_blocks and not self.text.lstrip().startswith(("{", "[")):
            source = self.code_blocks[0].code
        else:
            source = self.text
        try:
            return json.loads(source)
        except json.JSONDecodeError as e:
            raise ValueError("Response is not a JSON answer") from e

    def to_message(self) -> Message:
        """Convert the result to an assistant message."""
        return Message.assistant(self.text)
