"""
Pipeline layer - incremental stream processing stages.

- LineSplitter: raw chunks into lines (or brace-delimited regions)
- SSEDecoder: complete lines into parsed ``data:`` payloads
- ChatDeltaNormalizer: provider payloads into normalized delta events
- CodeFenceDetector: content text into prose and code segments
- ToolCallAccumulator: tool call fragments into complete calls
- ChatStream: all of the above wired for one stream
"""

from callai_stream.pipeline.accumulate import ToolCallAccumulation, ToolCallAccumulator
from callai_stream.pipeline.base import EventEmitter, Stage
from callai_stream.pipeline.decode import SSEDecoder
from callai_stream.pipeline.fence import CodeFenceDetector, FenceState
from callai_stream.pipeline.lines import LineSplitter, SplitMode
from callai_stream.pipeline.normalize import (
    ChatDeltaNormalizer,
    PayloadShape,
    classify_payload,
    to_delta_shape,
)
from callai_stream.pipeline.stream import ChatStream

__all__ = [
    # Base abstractions
    "EventEmitter",
    "Stage",
    # Stages
    "ChatDeltaNormalizer",
    "CodeFenceDetector",
    "FenceState",
    "LineSplitter",
    "PayloadShape",
    "SSEDecoder",
    "SplitMode",
    "ToolCallAccumulation",
    "ToolCallAccumulator",
    "classify_payload",
    "to_delta_shape",
    # Wiring
    "ChatStream",
]
