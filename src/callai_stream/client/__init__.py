"""
Client layer - ChatClient and result types.
"""

from callai_stream.client.core import ChatClient
from callai_stream.client.result import ChatResult, CodeBlock, ToolCall

__all__ = [
    "ChatClient",
    "ChatResult",
    "CodeBlock",
    "ToolCall",
]
