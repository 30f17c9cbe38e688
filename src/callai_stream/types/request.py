"""
Chat-completion request model.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from callai_stream.types.message import Message

DEFAULT_MODEL = "openai/gpt-3.5-turbo"


class SchemaMode(str, Enum):
    """How an output schema is put on the wire."""

    AUTO = "auto"
    JSON_SCHEMA = "json_schema"
    TOOL = "tool"


class OutputSchema(BaseModel):
    """JSON schema the model's answer must follow.

    Sent either as ``response_format`` (``json_schema`` mode) or as a single
    forced function tool (``tool`` mode), in which case the answer arrives as
    that tool call's arguments. ``auto`` picks tool mode for Claude models,
    which follow tool schemas more reliably than ``response_format``.

    Example:
        >>> schema = OutputSchema(name="book", properties={"title": {"type": "string"}})
        >>> ChatRequest.from_prompt("Recommend a book", output_schema=schema)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="result", description="Schema / tool name")
    properties: dict[str, Any] = Field(description="JSON schema properties")
    required: list[str] | None = Field(
        default=None, description="Required properties; all of them when None"
    )
    additional_properties: bool = False
    mode: SchemaMode = SchemaMode.AUTO

    @classmethod
    def from_pydantic(cls, model: type[BaseModel], **kwargs: Any) -> OutputSchema:
        """Build a schema from a pydantic model's JSON schema."""
        schema = model.model_json_schema()
        kwargs.setdefault("name", model.__name__)
        kwargs.setdefault("required", schema.get("required", []))
        return cls(properties=schema.get("properties", {}), **kwargs)

    def to_json_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": self.properties,
            "required": list(self.properties) if self.required is None else self.required,
            "additionalProperties": self.additional_properties,
        }

    def resolve_mode(self, model: str) -> SchemaMode:
        if self.mode is not SchemaMode.AUTO:
            return self.mode
        return SchemaMode.TOOL if "claude" in model.lower() else SchemaMode.JSON_SCHEMA

    def to_payload(self, model: str) -> dict[str, Any]:
        """Request body fields for this schema when sent to ``model``."""
        if self.resolve_mode(model) is SchemaMode.TOOL:
            return {
                "tools": [
                    {
                        "type": "function",
                        "function": {
                            "name": self.name,
                            "description": f"Generate structured {self.name} data",
                            "parameters": self.to_json_schema(),
                        },
                    }
                ],
                "tool_choice": {"type": "function", "function": {"name": self.name}},
            }
        return {
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": self.name,
                    "strict": True,
                    "schema": self.to_json_schema(),
                },
            }
        }


class ChatRequest(BaseModel):
    """One logical chat-completion request.

    ``extra`` carries provider passthrough options (``tools``,
    ``tool_choice``, ``response_format``, ...) copied verbatim into the body.
    They never override fields the request sets itself, including those an
    ``output_schema`` adds.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[Message] = Field(description="Conversation so far")
    model: str = Field(default=DEFAULT_MODEL, description="Model id")
    api_key: str | None = Field(default=None, description="Bearer credential", repr=False)
    stream: bool = Field(default=True, description="Request an SSE stream")
    max_tokens: int = 2048
    temperature: float = 0.7
    top_p: float = 1.0
    skip_retry: bool = Field(default=False, description="Disable invalid-model fallback")
    output_schema: OutputSchema | None = Field(default=None, description="Structured-output schema")
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_prompt(cls, prompt: str | list[Message], **kwargs: Any) -> ChatRequest:
        """Build a request from a plain prompt or a message list."""
        messages = [Message.user(prompt)] if isinstance(prompt, str) else list(prompt)
        return cls(messages=messages, **kwargs)

    def with_model(self, model: str) -> ChatRequest:
        """Copy with a different model id."""
        return self.model_copy(update={"model": model})

    def with_api_key(self, api_key: str) -> ChatRequest:
        """Copy with a different credential."""
        return self.model_copy(update={"api_key": api_key})

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON request body."""
        body: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_payload() for m in self.messages],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "stream": self.stream,
        }
        if self.output_schema is not None:
            body.update(self.output_schema.to_payload(self.model))
        for key, value in self.extra.items():
            body.setdefault(key, value)
        return body
