"""
Types layer - records and events flowing through the pipeline.

- LineRecord and brace records from the line splitter
- SSEPayload from the event-stream decoder
- Normalized delta, code segment and tool events
- ChatRequest / Message for outgoing requests
"""

from callai_stream.types.events import (
    CodeEnd,
    CodeFragment,
    CodeStart,
    ContentDelta,
    DeltaEvent,
    Done,
    Image,
    Meta,
    SegmentEvent,
    StreamError,
    StreamEvent,
    TextFragment,
    ToolArguments,
    ToolCallDelta,
    ToolComplete,
    ToolEvent,
    ToolStart,
    Usage,
)
from callai_stream.types.message import Message, MessageRole
from callai_stream.types.records import (
    BlockClose,
    BlockContent,
    BlockOpen,
    BraceRecord,
    LineRecord,
    SplitRecord,
    SSEPayload,
)
from callai_stream.types.request import ChatRequest, OutputSchema, SchemaMode

__all__ = [
    "BlockClose",
    "BlockContent",
    "BlockOpen",
    "BraceRecord",
    "ChatRequest",
    "CodeEnd",
    "CodeFragment",
    "CodeStart",
    "ContentDelta",
    "DeltaEvent",
    "Done",
    "Image",
    "LineRecord",
    "Message",
    "MessageRole",
    "Meta",
    "OutputSchema",
    "SSEPayload",
    "SchemaMode",
    "SegmentEvent",
    "SplitRecord",
    "StreamError",
    "StreamEvent",
    "TextFragment",
    "ToolArguments",
    "ToolCallDelta",
    "ToolComplete",
    "ToolEvent",
    "ToolStart",
    "Usage",
]
