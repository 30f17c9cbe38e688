"""
Typed events emitted by the chat stream pipeline.

Three families:
- Normalized delta events (Meta, ContentDelta, ToolCallDelta, Usage, Image,
  Done, StreamError), produced from API payloads by the normalizer
- Code segment events (TextFragment, CodeStart, CodeFragment, CodeEnd),
  produced from content deltas by the fence detector
- Tool events (ToolStart, ToolArguments, ToolComplete), produced from
  tool-call deltas by the accumulator

Every event carries a literal ``type`` discriminator, so consumers can
branch on ``event.type`` or on ``isinstance``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


# Normalized delta events


class Meta(_Event):
    """Response metadata, emitted at most once per stream."""

    type: Literal["meta"] = "meta"
    id: str = Field(description="Response id")
    provider: str = Field(default="", description="Upstream provider name")
    model: str = Field(default="", description="Model that served the request")
    created: int = Field(default=0, description="Unix creation timestamp")
    fingerprint: str = Field(default="", description="System fingerprint")


class ContentDelta(_Event):
    """Incremental generated text. Never empty."""

    type: Literal["content.delta"] = "content.delta"
    text: str = Field(description="Text fragment")


class ToolCallDelta(_Event):
    """Fragment of a tool call; any subset of the optional fields may be set."""

    type: Literal["tool_call.delta"] = "tool_call.delta"
    index: int = Field(default=0, description="Call index, stable within one response")
    call_id: str | None = Field(default=None, description="Tool call id")
    function_name: str | None = Field(default=None, description="Function name")
    arguments_fragment: str | None = Field(
        default=None, description="Raw fragment of the JSON arguments text"
    )


class Usage(_Event):
    """Token usage for the request."""

    type: Literal["usage"] = "usage"
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float | None = None


class Image(_Event):
    """Generated image, either inline base64 or a URL."""

    type: Literal["image"] = "image"
    index: int = Field(description="Position in the image list")
    base64: str | None = Field(default=None, description="Base64 image data")
    url: str | None = Field(default=None, description="Image URL")


class Done(_Event):
    """Finish reason reported by the API."""

    type: Literal["done"] = "done"
    finish_reason: str = Field(description="e.g. 'stop', 'length', 'tool_calls'")


class StreamError(_Event):
    """In-band error payload received mid-stream."""

    type: Literal["stream.error"] = "stream.error"
    error: Any = Field(description="Error payload as sent by the API")


DeltaEvent = Annotated[
    Union[Meta, ContentDelta, ToolCallDelta, Usage, Image, Done, StreamError],
    Field(discriminator="type"),
]


# Code segment events


class TextFragment(_Event):
    """Text outside any fenced code block."""

    type: Literal["text.fragment"] = "text.fragment"
    seq: int
    text: str


class CodeStart(_Event):
    """Opening fence of a code block."""

    type: Literal["code.start"] = "code.start"
    seq: int
    block_id: str = Field(description="Block id, stable for the life of the block")
    language: str | None = Field(default=None, description="Info string after the fence")
    fence: str = Field(default="```\n", description="Exact opening markup consumed")


class CodeFragment(_Event):
    """Text inside a code block."""

    type: Literal["code.fragment"] = "code.fragment"
    seq: int
    block_id: str
    text: str


class CodeEnd(_Event):
    """Closing fence of a code block."""

    type: Literal["code.end"] = "code.end"
    seq: int
    block_id: str
    language: str | None = None
    fence: str = Field(default="", description="Exact closing markup consumed")
    synthetic: bool = Field(
        default=False, description="True when closed by end of stream, not a fence"
    )


SegmentEvent = Annotated[
    Union[TextFragment, CodeStart, CodeFragment, CodeEnd],
    Field(discriminator="type"),
]


# Tool events


class ToolStart(_Event):
    """First sighting of a tool call index."""

    type: Literal["tool.start"] = "tool.start"
    index: int
    call_id: str
    function_name: str | None = None


class ToolArguments(_Event):
    """One raw arguments fragment, in arrival order."""

    type: Literal["tool.arguments"] = "tool.arguments"
    index: int
    call_id: str
    fragment: str


class ToolComplete(_Event):
    """A tool call whose arguments are fully assembled. Emitted once per call."""

    type: Literal["tool.complete"] = "tool.complete"
    index: int
    call_id: str
    function_name: str | None = None
    arguments: str = Field(description="Concatenated JSON arguments text")


ToolEvent = Annotated[
    Union[ToolStart, ToolArguments, ToolComplete],
    Field(discriminator="type"),
]


StreamEvent = Union[
    Meta,
    ContentDelta,
    ToolCallDelta,
    Usage,
    Image,
    Done,
    StreamError,
    TextFragment,
    CodeStart,
    CodeFragment,
    CodeEnd,
    ToolStart,
    ToolArguments,
    ToolComplete,
]
