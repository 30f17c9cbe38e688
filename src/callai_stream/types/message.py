"""
Chat messages sent to the completion API.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Message role enumeration."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class Message(BaseModel):
    """A single chat message.

    Example:
        >>> Message.user("Write a haiku")
        >>> Message.system("You are terse.")
    """

    model_config = ConfigDict(extra="allow")

    role: MessageRole = Field(description="Message author role")
    content: str | list[dict[str, Any]] | None = Field(
        default=None, description="Text or multi-part content"
    )
    tool_call_id: str | None = Field(default=None, description="For tool results")

    @classmethod
    def system(cls, content: str) -> Message:
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str | list[dict[str, Any]]) -> Message:
        """Create a user message."""
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        """Create an assistant message."""
        return cls(role=MessageRole.ASSISTANT, content=content)

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> Message:
        """Create a tool result message."""
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the wire format."""
        return self.model_dump(mode="json", exclude_none=True)
