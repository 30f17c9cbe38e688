"""
callai-stream: incremental parsing of streaming chat-completion responses.

Turns the raw Server-Sent Events stream of an OpenRouter/OpenAI-compatible
API into typed events: content text, code blocks, reassembled tool calls,
usage and metadata. Chunk boundaries can fall anywhere.
"""
from __future__ import annotations

from callai_stream.client import ChatClient, ChatResult, CodeBlock, ToolCall
from callai_stream.config import ClientConfig
from callai_stream.errors import CallAiError, PipelineError, RemoteError
from callai_stream.pipeline import ChatStream
from callai_stream.resilience import FallbackOrchestrator
from callai_stream.types.events import (
    CodeEnd,
    CodeFragment,
    CodeStart,
    ContentDelta,
    Done,
    Image,
    Meta,
    StreamError,
    StreamEvent,
    TextFragment,
    ToolArguments,
    ToolCallDelta,
    ToolComplete,
    ToolStart,
    Usage,
)
from callai_stream.types.message import Message, MessageRole
from callai_stream.types.request import ChatRequest, OutputSchema, SchemaMode

__version__ = "0.1.0"

__all__ = [
    # Client
    "ChatClient",
    "ChatRequest",
    "ChatResult",
    "ClientConfig",
    "CodeBlock",
    "OutputSchema",
    "SchemaMode",
    "ToolCall",
    # Pipeline
    "ChatStream",
    "FallbackOrchestrator",
    # Errors
    "CallAiError",
    "PipelineError",
    "RemoteError",
    # Types - Message
    "Message",
    "MessageRole",
    # Types - Events
    "CodeEnd",
    "CodeFragment",
    "CodeStart",
    "ContentDelta",
    "Done",
    "Image",
    "Meta",
    "StreamError",
    "StreamEvent",
    "TextFragment",
    "ToolArguments",
    "ToolCallDelta",
    "ToolComplete",
    "ToolStart",
    "Usage",
    # Version
    "__version__",
]
